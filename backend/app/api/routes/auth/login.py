from fastapi import APIRouter, Depends, HTTPException, Response, status
from app.auth.schema import UserLoginRequestSchema
from app.auth.utils import create_jwt_token, set_auth_cookies
from app.core.database import get_session
from sqlmodel.ext.asyncio.session import AsyncSession
from app.core.config import settings

from app.api.services.user_auth import user_auth_service
from app.core.logging import get_logger

logger = get_logger()
router = APIRouter()


@router.post("/login", status_code=status.HTTP_200_OK)
async def login(
    login_data: UserLoginRequestSchema,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    try:
        user = await user_auth_service.authenticate(
            login_data.email, login_data.password, session
        )

        access_token = create_jwt_token(user.id)
        refresh_token = create_jwt_token(user.id, type=settings.COOKIE_REFRESH_NAME)
        set_auth_cookies(response, access_token, refresh_token)

        return {
            "message": "Login successful",
            "user": {
                "id": str(user.id),
                "email": user.email,
                "display_name": user.display_name,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "full_name": user.full_name,
                "roles": user.roles,
            },
        }

    except HTTPException as http_ex:
        raise http_ex
    except Exception as e:
        logger.error(f"Failed to verify login: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "status": "error",
                "message": "Failed to process login request",
                "action": "Please try again later",
            },
        )
