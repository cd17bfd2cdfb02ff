"""
Tests for registration, cookie login and the current-user dependencies
"""
import pytest

from app.auth.models import User
from app.auth.utils import create_jwt_token
from app.core.config import settings

API = "/api/v1/auth"
TEST_PASSWORD = "SecureTestPass123!"


def _registration(email="new.user@example.com", **overrides):
    data = {
        "email": email,
        "first_name": "ada",
        "last_name": "lovelace",
        "password": TEST_PASSWORD,
        "confirm_password": TEST_PASSWORD,
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_register_user(client):
    response = await client.post(f"{API}/register", json=_registration())
    assert response.status_code == 201
    data = response.json()

    assert data["email"] == "new.user@example.com"
    assert data["full_name"] == "Ada Lovelace"
    assert data["roles"] == ["student"]
    assert data["is_active"] is True
    assert data["display_name"]
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_register_normalizes_email_and_rejects_duplicates(client):
    first = await client.post(
        f"{API}/register", json=_registration(email="Mixed.Case@Example.com")
    )
    assert first.json()["email"] == "mixed.case@example.com"

    duplicate = await client.post(
        f"{API}/register", json=_registration(email="mixed.case@example.com")
    )
    assert duplicate.status_code == 400


@pytest.mark.asyncio
async def test_register_password_mismatch(client):
    response = await client.post(
        f"{API}/register",
        json=_registration(confirm_password="SomethingElse123!"),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Passwords do not match"


@pytest.mark.asyncio
async def test_login_sets_auth_cookies(client, student):
    response = await client.post(
        f"{API}/login",
        json={"email": student.email, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["user"]["email"] == student.email

    assert settings.COOKIE_ACCESS_NAME in response.cookies
    assert settings.COOKIE_REFRESH_NAME in response.cookies
    assert response.cookies[settings.COOKIE_LOGGED_IN_NAME] == "true"


@pytest.mark.asyncio
async def test_login_wrong_password_counts_failure(client, session_maker, student):
    response = await client.post(
        f"{API}/login",
        json={"email": student.email, "password": "WrongPassword1!"},
    )
    assert response.status_code == 401

    async with session_maker() as session:
        user = await session.get(User, student.id)
        assert user.failed_login_attempts == 1


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    response = await client.post(
        f"{API}/login",
        json={"email": "nobody@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_cookie(client):
    response = await client.get(f"{API}/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_with_valid_cookie(client, student, auth_headers):
    response = await client.get(f"{API}/me", headers=auth_headers(student))
    assert response.status_code == 200
    assert response.json()["id"] == str(student.id)


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_token(client, student):
    token = create_jwt_token(student.id, type=settings.COOKIE_REFRESH_NAME)
    response = await client.get(
        f"{API}/me", headers={"Cookie": f"{settings.COOKIE_ACCESS_NAME}={token}"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_rejected(client):
    response = await client.get(
        f"{API}/me", headers={"Cookie": f"{settings.COOKIE_ACCESS_NAME}=not-a-jwt"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_rejected(client, db_session, student, auth_headers):
    student.is_active = False
    db_session.add(student)
    await db_session.commit()

    response = await client.get(f"{API}/me", headers=auth_headers(student))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_logout_clears_cookies(client):
    response = await client.post(f"{API}/logout")
    assert response.status_code == 200
    set_cookie = ",".join(response.headers.get_list("set-cookie"))
    assert settings.COOKIE_ACCESS_NAME in set_cookie
    assert settings.COOKIE_LOGGED_IN_NAME in set_cookie
