import uuid
from fastapi import HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select

from app.auth.models import User
from app.auth.schema import UserCreateSchema
from app.auth.utils import generate_password_hash, generate_display_name, verify_password
from app.core.logging import get_logger

logger = get_logger()


class UserAuthService:

    # ---------------------------
    # Query helpers
    # ---------------------------
    async def get_user_by_email(
        self, email: str, session: AsyncSession, include_inactive: bool = False
    ) -> User | None:
        statement = select(User).where(User.email == email.lower())

        if not include_inactive:
            statement = statement.where(User.is_active)
        result = await session.exec(statement)
        return result.first()

    async def get_user_by_id(
        self, id: uuid.UUID, session: AsyncSession, include_inactive: bool = False
    ) -> User | None:
        statement = select(User).where(User.id == id)

        if not include_inactive:
            statement = statement.where(User.is_active)
        result = await session.exec(statement)
        return result.first()

    async def check_user_email_exists(self, email: str, session: AsyncSession) -> bool:
        user = await self.get_user_by_email(email, session, include_inactive=True)
        return bool(user)

    # ---------------------------
    # Password verification
    # ---------------------------
    async def verify_user_password(self, plain_password: str, hashed_password: str) -> bool:
        return verify_password(plain_password, hashed_password)

    # ---------------------------
    # User lifecycle
    # ---------------------------
    async def create_user(self, user_data: UserCreateSchema, session: AsyncSession) -> User:
        user = User(
            email=user_data.email,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            display_name=user_data.display_name or generate_display_name(),
            hashed_password=generate_password_hash(user_data.password),
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    async def record_failed_login(self, user: User, session: AsyncSession) -> None:
        user.failed_login_attempts += 1
        await session.commit()
        await session.refresh(user)

    async def reset_user_state(self, user: User, session: AsyncSession) -> None:
        if user.failed_login_attempts:
            user.failed_login_attempts = 0
            await session.commit()
            await session.refresh(user)

    async def authenticate(
        self, email: str, password: str, session: AsyncSession
    ) -> User:
        user = await self.get_user_by_email(email, session, include_inactive=True)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={
                    "status": "error",
                    "message": "Invalid credentials",
                    "action": "Please check your email and password and try again",
                },
            )

        if not await self.verify_user_password(password, user.hashed_password):
            await self.record_failed_login(user, session)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={
                    "status": "error",
                    "message": "Invalid credentials",
                    "action": "Please check your email and password and try again",
                },
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "status": "error",
                    "message": "Your account is not activated",
                    "action": "Please contact support",
                },
            )

        await self.reset_user_state(user, session)
        return user


user_auth_service = UserAuthService()
