from pydantic import field_validator
from pydantic.functional_validators import AfterValidator
from sqlmodel import SQLModel, Field
from typing import List, Annotated
from fastapi import HTTPException, status
from enum import Enum
import uuid
import re
from sqlalchemy import Column, JSON


def validate_email_flexible(v: str) -> str:
    """Custom email validator that allows .local domains for development/testing."""
    if not v:
        raise ValueError("Email is required")

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(email_pattern, v):
        raise ValueError("Invalid email format")

    return v.lower()


FlexibleEmailStr = Annotated[str, AfterValidator(validate_email_flexible)]


class RoleChoicesSchema(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class UserBaseSchema(SQLModel):
    email: FlexibleEmailStr = Field(unique=True, index=True, max_length=255)
    display_name: str | None = Field(default=None, max_length=100, nullable=True)
    first_name: str | None = Field(default=None, max_length=30, nullable=True)
    last_name: str | None = Field(default=None, max_length=30, nullable=True)
    roles: List[RoleChoicesSchema] = Field(
        default=[RoleChoicesSchema.STUDENT], sa_column=Column(JSON)
    )
    is_active: bool = True
    is_premium: bool = False


class UserCreateSchema(SQLModel):
    email: FlexibleEmailStr
    first_name: str | None = Field(default=None, max_length=30)
    last_name: str | None = Field(default=None, max_length=30)
    display_name: str | None = Field(default=None, max_length=100)
    password: str = Field(min_length=8, max_length=40)
    confirm_password: str = Field(min_length=8, max_length=40)

    @field_validator("confirm_password")
    def validate_confirm_password(cls, v, values):
        if "password" in values.data and v != values.data["password"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "status": "error",
                    "message": "Passwords do not match",
                    "action": "Please ensure that the passwords you entered match",
                },
            )
        return v


class UserReadSchema(UserBaseSchema):
    id: uuid.UUID
    full_name: str


class UserLoginRequestSchema(SQLModel):
    email: FlexibleEmailStr
    password: str = Field(
        min_length=8,
        max_length=40,
    )
