import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.admin import admin_service
from app.auth.models import User
from app.core.auth import get_current_admin
from app.core.database import get_session
from app.core.logging import get_logger
from app.courses.schemas import (
    CourseCreate,
    CourseRead,
    LessonCreate,
    LessonRead,
    ModuleCreate,
    ModuleRead,
)
from app.quizzes.schemas import (
    QuestionCreate,
    QuestionRead,
    QuizCreate,
    QuizDetail,
    QuizUpdate,
)

logger = get_logger()

router = APIRouter()


@router.post("/courses", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
async def create_course(
    course_data: CourseCreate,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    """Create a course (admin only)"""
    logger.info(f"Admin {admin_user.email} creating course '{course_data.title}'")
    return await admin_service.create_course(course_data, session)


@router.post(
    "/courses/{course_id}/modules",
    response_model=ModuleRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_module(
    course_id: uuid.UUID,
    module_data: ModuleCreate,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    return await admin_service.create_module(course_id, module_data, session)


@router.post(
    "/modules/{module_id}/lessons",
    response_model=LessonRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_lesson(
    module_id: uuid.UUID,
    lesson_data: LessonCreate,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    return await admin_service.create_lesson(module_id, lesson_data, session)


@router.post(
    "/modules/{module_id}/quizzes",
    response_model=QuizDetail,
    status_code=status.HTTP_201_CREATED,
)
async def create_quiz(
    module_id: uuid.UUID,
    quiz_data: QuizCreate,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    """Create a quiz with its questions (admin only)"""
    logger.info(f"Admin {admin_user.email} creating quiz '{quiz_data.title}'")
    return await admin_service.create_quiz(module_id, quiz_data, session)


@router.patch("/quizzes/{quiz_id}", response_model=QuizDetail)
async def update_quiz(
    quiz_id: uuid.UUID,
    quiz_data: QuizUpdate,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    return await admin_service.update_quiz(quiz_id, quiz_data, session)


@router.delete("/quizzes/{quiz_id}", response_model=Dict[str, Any])
async def delete_quiz(
    quiz_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    """Delete a quiz that has never been attempted (admin only)"""
    logger.info(f"Admin {admin_user.email} deleting quiz {quiz_id}")
    return await admin_service.delete_quiz(quiz_id, session)


@router.post(
    "/quizzes/{quiz_id}/questions",
    response_model=QuestionRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_question(
    quiz_id: uuid.UUID,
    question_data: QuestionCreate,
    session: AsyncSession = Depends(get_session),
    admin_user: User = Depends(get_current_admin),
):
    return await admin_service.add_question(quiz_id, question_data, session)
