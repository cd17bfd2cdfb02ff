from fastapi import APIRouter, Response, status
from app.auth.utils import delete_auth_cookies

router = APIRouter()


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response):
    delete_auth_cookies(response)
    return {"message": "Logout successful"}
