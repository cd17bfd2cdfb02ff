from fastapi import APIRouter, Depends
from app.auth.schema import UserReadSchema
from app.auth.models import User
from app.core.auth import get_current_active_user

router = APIRouter()


@router.get("/me", response_model=UserReadSchema)
async def read_user_me(
    current_user: User = Depends(get_current_active_user),
):
    return current_user
