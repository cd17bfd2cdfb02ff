"""
Shared fixtures: an in-memory SQLite database per test and an HTTP client
bound to the FastAPI app with the session dependency overridden.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("SIGNING_KEY", "test-signing-key-for-mockitt-0123456789")
os.environ.setdefault("OPENROUTER_API_KEY", "")
os.environ.setdefault("OPENAI_API_KEY", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app import models  # noqa: F401
from app.auth.models import User
from app.auth.schema import RoleChoicesSchema
from app.auth.utils import create_jwt_token, generate_password_hash
from app.core.config import settings
from app.core.database import get_session
from app.core.services.ai import ai_service
from app.core.services.file import file_service
from app.courses.models import Course, CourseModule, Enrollment, Lesson
from app.main import app
from app.quizzes.models import Question, QuestionType, Quiz, QuizStatus

TEST_PASSWORD = "SecureTestPass123!"


@pytest.fixture(autouse=True)
def offline_services(monkeypatch, tmp_path):
    """No generative provider configured and uploads kept under tmp_path"""
    monkeypatch.setattr(ai_service, "openrouter_client", None)
    monkeypatch.setattr(ai_service, "openai_client", None)
    monkeypatch.setattr(ai_service, "client", None)
    monkeypatch.setattr(file_service, "upload_dir", str(tmp_path / "uploads"))


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _cookie_header(user: User) -> dict:
    token = create_jwt_token(user.id)
    return {"Cookie": f"{settings.COOKIE_ACCESS_NAME}={token}"}


@pytest.fixture
def auth_headers():
    """Cookie header carrying a fresh access token for a user"""
    return _cookie_header


async def _create_user(session: AsyncSession, email: str, **kwargs) -> User:
    user = User(
        email=email,
        first_name="Test",
        last_name="User",
        display_name="tester",
        hashed_password=generate_password_hash(TEST_PASSWORD),
        **kwargs,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def student(db_session):
    return await _create_user(db_session, "student@example.com")


@pytest_asyncio.fixture
async def other_student(db_session):
    return await _create_user(db_session, "other@example.com")


@pytest_asyncio.fixture
async def admin(db_session):
    return await _create_user(
        db_session,
        "admin@example.com",
        roles=[RoleChoicesSchema.ADMIN],
    )


@pytest_asyncio.fixture
async def course(db_session):
    """Published course with one module holding two lessons"""
    course = Course(
        title="System Design Interviews",
        description="Scalability, caching and storage trade-offs",
        is_published=True,
    )
    db_session.add(course)
    await db_session.flush()

    module = CourseModule(course_id=course.id, title="Fundamentals", order_index=0)
    db_session.add(module)
    await db_session.flush()

    db_session.add_all(
        [
            Lesson(module_id=module.id, title="Load balancing", order_index=0),
            Lesson(module_id=module.id, title="Caching", order_index=1),
        ]
    )
    await db_session.commit()
    await db_session.refresh(course)
    return course


@pytest_asyncio.fixture
async def module(db_session, course):
    result = await db_session.exec(
        select(CourseModule).where(CourseModule.course_id == course.id)
    )
    return result.one()


@pytest_asyncio.fixture
async def quiz(db_session, module):
    """
    Published quiz worth 4 points:
    single choice (2 pts), multiple select (1 pt) and short answer (1 pt).
    """
    quiz = Quiz(
        module_id=module.id,
        title="Caching basics",
        status=QuizStatus.PUBLISHED,
        passing_score=70,
        max_attempts=2,
    )
    db_session.add(quiz)
    await db_session.flush()

    db_session.add_all(
        [
            Question(
                quiz_id=quiz.id,
                text="Which cache policy evicts the least recently used entry?",
                type=QuestionType.SINGLE_CHOICE,
                options=["FIFO", "LRU", "LFU"],
                correct_answer="LRU",
                explanation="LRU evicts the entry unused for the longest time.",
                points=2,
                order_index=0,
            ),
            Question(
                quiz_id=quiz.id,
                text="Which of these are in-memory stores?",
                type=QuestionType.MULTIPLE_SELECT,
                options=["Redis", "Postgres", "Memcached"],
                correct_answer=["Redis", "Memcached"],
                points=1,
                order_index=1,
            ),
            Question(
                quiz_id=quiz.id,
                text="Name the header used for HTTP cache validation with hashes.",
                type=QuestionType.SHORT_ANSWER,
                correct_answer="ETag",
                points=1,
                order_index=2,
            ),
        ]
    )
    await db_session.commit()
    await db_session.refresh(quiz)
    return quiz


@pytest_asyncio.fixture
async def enrolled_student(db_session, student, course):
    db_session.add(Enrollment(user_id=student.id, course_id=course.id))
    await db_session.commit()
    return student
