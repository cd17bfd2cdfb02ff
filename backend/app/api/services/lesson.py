import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.course import course_service
from app.api.services.quiz import quiz_service
from app.auth.models import User
from app.core.logging import get_logger
from app.courses.models import (
    Course,
    CourseModule,
    Enrollment,
    Lesson,
    LessonNote,
    LessonProgress,
)

logger = get_logger()


class LessonService:
    """
    Lesson reader: content with its course outline, prev/next navigation,
    completion, time tracking and private notes.

    Lessons of a published free course are readable by any signed-in user;
    premium course lessons require enrollment. Progress writes always
    require enrollment.
    """

    async def _get_readable_lesson(
        self, user: User, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Tuple[Lesson, CourseModule, Course, Optional[Enrollment]]:
        lesson = await session.get(Lesson, lesson_id)
        module = await session.get(CourseModule, lesson.module_id) if lesson else None
        course = await session.get(Course, module.course_id) if module else None
        if not course or not course.is_published:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found"
            )

        enrollment = await course_service.get_enrollment(user.id, course.id, session)
        if course.is_premium and not enrollment:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not enrolled in this course",
            )
        return lesson, module, course, enrollment

    async def _ordered_lessons(
        self, course_id: uuid.UUID, session: AsyncSession
    ) -> List[Tuple[Lesson, CourseModule]]:
        result = await session.exec(
            select(Lesson, CourseModule)
            .join(CourseModule, CourseModule.id == Lesson.module_id)
            .where(CourseModule.course_id == course_id)
            .order_by(col(CourseModule.order_index), col(Lesson.order_index))
        )
        return list(result.all())

    async def _get_note(
        self, user_id: uuid.UUID, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Optional[LessonNote]:
        result = await session.exec(
            select(LessonNote).where(
                LessonNote.user_id == user_id, LessonNote.lesson_id == lesson_id
            )
        )
        return result.first()

    async def get_lesson(
        self, user: User, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        lesson, module, course, enrollment = await self._get_readable_lesson(
            user, lesson_id, session
        )

        progress: Optional[LessonProgress] = None
        completed_ids = set()
        if enrollment:
            progress = await course_service.get_lesson_progress(
                enrollment.id, lesson.id, session
            )
            rows = await session.exec(
                select(LessonProgress.lesson_id).where(
                    LessonProgress.enrollment_id == enrollment.id,
                    LessonProgress.is_completed == True,  # noqa: E712
                )
            )
            completed_ids = set(rows.all())

        outline: Dict[uuid.UUID, Dict[str, Any]] = {}
        for item, item_module in await self._ordered_lessons(course.id, session):
            entry = outline.setdefault(
                item_module.id,
                {"id": item_module.id, "title": item_module.title, "lessons": []},
            )
            entry["lessons"].append(
                {
                    "id": item.id,
                    "title": item.title,
                    "duration": item.duration,
                    "order_index": item.order_index,
                    "is_completed": item.id in completed_ids,
                }
            )

        note = await self._get_note(user.id, lesson.id, session)
        return {
            **lesson.model_dump(),
            "module": {"id": module.id, "title": module.title},
            "course": {
                "id": course.id,
                "title": course.title,
                "is_premium": course.is_premium,
                "modules": list(outline.values()),
            },
            "progress": progress,
            "notes": note.content if note else "",
            "enrollment": (
                {
                    "enrolled_at": enrollment.enrolled_at,
                    "overall_progress": enrollment.progress_percent,
                }
                if enrollment
                else None
            ),
        }

    async def get_navigation(
        self, user: User, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        lesson, _, course, _ = await self._get_readable_lesson(user, lesson_id, session)
        ordered = [item for item, _ in await self._ordered_lessons(course.id, session)]
        position = next(i for i, item in enumerate(ordered) if item.id == lesson.id)

        def _brief(item: Optional[Lesson]) -> Optional[Dict[str, Any]]:
            if item is None:
                return None
            return {"id": item.id, "title": item.title, "module_id": item.module_id}

        return {
            "previous": _brief(ordered[position - 1] if position > 0 else None),
            "next": _brief(ordered[position + 1] if position + 1 < len(ordered) else None),
            "position": position + 1,
            "total": len(ordered),
        }

    async def mark_complete(
        self, user: User, lesson_id: uuid.UUID, session: AsyncSession
    ) -> LessonProgress:
        await self._get_readable_lesson(user, lesson_id, session)
        _, enrollment = await course_service.get_lesson_enrollment(
            user.id, lesson_id, session
        )
        progress = await course_service.save_lesson_progress(
            enrollment, lesson_id, session, is_completed=True
        )
        logger.info(f"User {user.id} completed lesson {lesson_id}")
        return progress

    async def track_time(
        self, user: User, lesson_id: uuid.UUID, seconds: int, session: AsyncSession
    ) -> LessonProgress:
        await self._get_readable_lesson(user, lesson_id, session)
        _, enrollment = await course_service.get_lesson_enrollment(
            user.id, lesson_id, session
        )
        return await course_service.save_lesson_progress(
            enrollment, lesson_id, session, add_time=seconds
        )

    async def get_notes(
        self, user: User, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        await self._get_readable_lesson(user, lesson_id, session)
        note = await self._get_note(user.id, lesson_id, session)
        return {
            "lesson_id": lesson_id,
            "content": note.content if note else "",
            "updated_at": note.updated_at if note else None,
        }

    async def update_notes(
        self, user: User, lesson_id: uuid.UUID, content: str, session: AsyncSession
    ) -> Dict[str, Any]:
        await self._get_readable_lesson(user, lesson_id, session)
        note = await self._get_note(user.id, lesson_id, session)
        if note is None:
            note = LessonNote(user_id=user.id, lesson_id=lesson_id)
        note.content = content
        session.add(note)
        await session.commit()
        await session.refresh(note)
        return {
            "lesson_id": lesson_id,
            "content": note.content,
            "updated_at": note.updated_at,
        }

    async def get_lesson_quizzes(
        self, user: User, lesson_id: uuid.UUID, session: AsyncSession
    ) -> List[Dict[str, Any]]:
        """Published quizzes of the module the lesson belongs to"""
        _, module, _, _ = await self._get_readable_lesson(user, lesson_id, session)
        return await quiz_service.get_module_quizzes(user, module.id, session)


lesson_service = LessonService()
