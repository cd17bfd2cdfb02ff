import uuid
from datetime import datetime, timezone
from sqlmodel import Column, Field
from sqlalchemy import DateTime, text, func
from pydantic import computed_field
from app.auth.schema import UserBaseSchema, RoleChoicesSchema


class User(UserBaseSchema, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    failed_login_attempts: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            onupdate=func.current_timestamp(),
        ),
    )

    @computed_field
    @property
    def full_name(self) -> str:
        full_name = f"{self.first_name or ''} {self.last_name or ''}"
        return full_name.title().strip() or (self.display_name or self.email)

    def has_role(self, role: RoleChoicesSchema) -> bool:
        return role in (self.roles or [])
