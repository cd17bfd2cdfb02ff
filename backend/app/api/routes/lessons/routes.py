import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.lesson import lesson_service
from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.database import get_session
from app.courses.schemas import (
    LessonNoteRead,
    LessonNoteUpdate,
    LessonProgressRead,
    LessonTimeSpent,
)
from app.quizzes.schemas import QuizOverview

router = APIRouter()


@router.get("/{lesson_id}", response_model=Dict[str, Any])
async def get_lesson(
    lesson_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Lesson content with its course outline, progress and notes"""
    return await lesson_service.get_lesson(current_user, lesson_id, session)


@router.get("/{lesson_id}/navigation", response_model=Dict[str, Any])
async def get_lesson_navigation(
    lesson_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await lesson_service.get_navigation(current_user, lesson_id, session)


@router.post("/{lesson_id}/complete", response_model=LessonProgressRead)
async def complete_lesson(
    lesson_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await lesson_service.mark_complete(current_user, lesson_id, session)


@router.post("/{lesson_id}/time-spent", response_model=LessonProgressRead)
async def track_time_spent(
    lesson_id: uuid.UUID,
    data: LessonTimeSpent,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Add reading time (seconds) to the lesson's progress"""
    return await lesson_service.track_time(
        current_user, lesson_id, data.time_spent, session
    )


@router.get("/{lesson_id}/notes", response_model=LessonNoteRead)
async def get_lesson_notes(
    lesson_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await lesson_service.get_notes(current_user, lesson_id, session)


@router.put("/{lesson_id}/notes", response_model=LessonNoteRead)
async def update_lesson_notes(
    lesson_id: uuid.UUID,
    data: LessonNoteUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await lesson_service.update_notes(
        current_user, lesson_id, data.content, session
    )


@router.get("/{lesson_id}/quiz", response_model=List[QuizOverview])
async def get_lesson_quiz(
    lesson_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await lesson_service.get_lesson_quizzes(current_user, lesson_id, session)
