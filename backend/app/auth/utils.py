import random
import string
import uuid
from datetime import datetime, timedelta, timezone
import jwt
from passlib.context import CryptContext
from fastapi import Response

from app.core.config import settings

# Password hashing with Argon2 (primary) and bcrypt (fallback for existing hashes)
pwd_context = CryptContext(
    schemes=["argon2", "bcrypt"],
    deprecated="auto",
    argon2__memory_cost=65536,  # 64 MB
    argon2__time_cost=2,
    argon2__parallelism=4,
    argon2__hash_len=32,
)


def generate_password_hash(password: str) -> str:
    """
    Hash a password using Argon2 (new hashes).
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.
    Automatically detects whether hash is argon2 or bcrypt.
    Returns True if password matches, False otherwise.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception:
        return False


def generate_display_name() -> str:
    words = settings.SITE_NAME.split()
    prefix = "".join([word[0] for word in words]).upper()
    remaining_length = 12 - len(prefix) - 1
    random_string = "".join(
        random.choices(string.ascii_uppercase + string.digits, k=remaining_length)
    )
    return f"{prefix}-{random_string}"


def create_jwt_token(id: uuid.UUID, type: str = settings.COOKIE_ACCESS_NAME) -> str:
    if type == settings.COOKIE_ACCESS_NAME:
        expire_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRATION_MINUTES)
    else:
        expire_delta = timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRATION_DAYS)

    payload = {
        "id": str(id),
        "type": type,
        "exp": datetime.now(timezone.utc) + expire_delta,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.SIGNING_KEY, algorithm=settings.JWT_ALGORITHM)


def set_auth_cookies(
    response: Response, access_token: str, refresh_token: str | None = None
) -> None:
    cookie_settings = {
        "path": settings.COOKIE_PATH,
        "secure": settings.COOKIE_SECURE,
        "httponly": settings.COOKIE_HTTP_ONLY,
        "samesite": settings.COOKIE_SAMESITE,
    }
    access_cookie_settings = cookie_settings.copy()
    access_cookie_settings["max_age"] = settings.JWT_ACCESS_TOKEN_EXPIRATION_MINUTES * 60
    response.set_cookie(
        settings.COOKIE_ACCESS_NAME, access_token, **access_cookie_settings
    )

    if refresh_token:
        refresh_cookie_settings = cookie_settings.copy()
        refresh_cookie_settings["max_age"] = (
            settings.JWT_REFRESH_TOKEN_EXPIRATION_DAYS * 24 * 60 * 60
        )
        response.set_cookie(
            settings.COOKIE_REFRESH_NAME,
            refresh_token,
            **refresh_cookie_settings,
        )

    logged_in_cookie_settings = cookie_settings.copy()
    logged_in_cookie_settings["httponly"] = False
    logged_in_cookie_settings["max_age"] = (
        settings.JWT_ACCESS_TOKEN_EXPIRATION_MINUTES * 60
    )
    response.set_cookie(
        settings.COOKIE_LOGGED_IN_NAME, "true", **logged_in_cookie_settings
    )


def delete_auth_cookies(response: Response) -> None:
    response.delete_cookie(settings.COOKIE_ACCESS_NAME)
    response.delete_cookie(settings.COOKIE_REFRESH_NAME)
    response.delete_cookie(settings.COOKIE_LOGGED_IN_NAME)
