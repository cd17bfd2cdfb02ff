from typing import Optional
import uuid
import jwt
from fastapi import Depends, HTTPException, status, Cookie
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_session
from app.api.services.user_auth import user_auth_service
from app.auth.models import User
from app.auth.schema import RoleChoicesSchema
from app.core.logging import get_logger

logger = get_logger()


def decode_access_token(access_token: str) -> uuid.UUID:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            access_token, settings.SIGNING_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        user_id = payload.get("id")
        if user_id is None or payload.get("type") != settings.COOKIE_ACCESS_NAME:
            raise credentials_exception
        return uuid.UUID(user_id)
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, ValueError):
        raise credentials_exception


async def get_user_from_token(
    access_token: Optional[str], session: AsyncSession
) -> User:
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(access_token)

    user = await user_auth_service.get_user_by_id(
        user_id, session, include_inactive=True
    )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


def ensure_active(user: User) -> User:
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return user


async def get_current_user(
    session: AsyncSession = Depends(get_session),
    access_token: Optional[str] = Cookie(None, alias=settings.COOKIE_ACCESS_NAME),
) -> User:
    return await get_user_from_token(access_token, session)


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    return ensure_active(current_user)


async def get_current_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Verify that the current user has admin privileges"""
    if not current_user.has_role(RoleChoicesSchema.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )
    return current_user
