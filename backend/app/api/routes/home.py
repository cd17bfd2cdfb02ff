from fastapi import APIRouter
from app.core.config import settings

router = APIRouter(prefix="/home")


@router.get("/")
def home():
    return {"message": f"Welcome to the {settings.PROJECT_NAME}"}
