import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.course import course_service
from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.database import get_session
from app.core.logging import get_logger
from app.courses.schemas import (
    CourseFilters,
    LessonProgressRead,
    LessonProgressUpdate,
)

logger = get_logger()

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def list_courses(
    filters: CourseFilters = Depends(),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """List published courses with filtering and pagination"""
    return await course_service.list_courses(filters, session)


@router.get("/my-courses", response_model=List[Dict[str, Any]])
async def get_my_courses(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Courses the current user is enrolled in, with lesson completion"""
    return await course_service.my_courses(current_user, session)


@router.get("/{course_id}", response_model=Dict[str, Any])
async def get_course(
    course_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get a published course with its modules, lessons and quizzes"""
    return await course_service.get_course(course_id, session)


@router.get("/{course_id}/modules", response_model=List[Dict[str, Any]])
async def get_course_modules(
    course_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    await course_service.get_published_course(course_id, session)
    return await course_service.get_course_modules(course_id, session)


@router.get("/{course_id}/progress", response_model=Dict[str, Any])
async def get_course_progress(
    course_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await course_service.course_progress(current_user, course_id, session)


@router.post("/{course_id}/enroll", status_code=status.HTTP_201_CREATED)
async def enroll_in_course(
    course_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Enroll the current user in a course"""
    try:
        return await course_service.enroll(current_user, course_id, session)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to enroll user {current_user.id} in {course_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "status": "error",
                "message": "Failed to enroll in course",
                "action": "Please try again later",
            },
        )


@router.delete("/{course_id}/enroll")
async def unenroll_from_course(
    course_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await course_service.unenroll(current_user, course_id, session)


@router.get("/{course_id}/enrollment-status")
async def get_enrollment_status(
    course_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await course_service.enrollment_status(current_user, course_id, session)


@router.patch("/lessons/{lesson_id}/progress", response_model=LessonProgressRead)
async def update_lesson_progress(
    lesson_id: uuid.UUID,
    progress_data: LessonProgressUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Mark a lesson as (in)complete and recompute course progress"""
    return await course_service.update_lesson_progress(
        current_user,
        lesson_id,
        progress_data.is_completed,
        progress_data.time_spent,
        session,
    )
