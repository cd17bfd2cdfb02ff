import math
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.auth.models import User
from app.core.logging import get_logger
from app.courses.models import (
    Course,
    CourseModule,
    Enrollment,
    Lesson,
    LessonProgress,
)
from app.courses.schemas import CourseFilters
from app.quizzes.models import Quiz, QuizStatus

logger = get_logger()


class CourseService:
    """Course catalog, enrollment and lesson progress"""

    # ---------------------------
    # Query helpers
    # ---------------------------
    async def get_enrollment(
        self, user_id: uuid.UUID, course_id: uuid.UUID, session: AsyncSession
    ) -> Optional[Enrollment]:
        statement = select(Enrollment).where(
            Enrollment.user_id == user_id, Enrollment.course_id == course_id
        )
        result = await session.exec(statement)
        return result.first()

    async def is_enrolled(
        self, user_id: uuid.UUID, course_id: uuid.UUID, session: AsyncSession
    ) -> bool:
        return await self.get_enrollment(user_id, course_id, session) is not None

    async def _get_module_ids(
        self, course_ids: List[uuid.UUID], session: AsyncSession
    ) -> Dict[uuid.UUID, List[uuid.UUID]]:
        modules_by_course: Dict[uuid.UUID, List[uuid.UUID]] = defaultdict(list)
        if not course_ids:
            return modules_by_course
        result = await session.exec(
            select(CourseModule.id, CourseModule.course_id).where(
                col(CourseModule.course_id).in_(course_ids)
            )
        )
        for module_id, course_id in result.all():
            modules_by_course[course_id].append(module_id)
        return modules_by_course

    async def _count_lessons(
        self, module_ids: List[uuid.UUID], session: AsyncSession
    ) -> int:
        if not module_ids:
            return 0
        result = await session.exec(
            select(func.count(Lesson.id)).where(col(Lesson.module_id).in_(module_ids))
        )
        return result.one()

    async def _count_quizzes(
        self, module_ids: List[uuid.UUID], session: AsyncSession
    ) -> int:
        if not module_ids:
            return 0
        result = await session.exec(
            select(func.count(Quiz.id)).where(
                col(Quiz.module_id).in_(module_ids),
                Quiz.status == QuizStatus.PUBLISHED,
            )
        )
        return result.one()

    async def _count_enrollments(
        self, course_id: uuid.UUID, session: AsyncSession
    ) -> int:
        result = await session.exec(
            select(func.count(Enrollment.id)).where(Enrollment.course_id == course_id)
        )
        return result.one()

    async def _course_stats(
        self, course: Course, module_ids: List[uuid.UUID], session: AsyncSession
    ) -> Dict[str, Any]:
        return {
            **course.model_dump(),
            "enrollment_count": await self._count_enrollments(course.id, session),
            "total_lessons": await self._count_lessons(module_ids, session),
            "total_quizzes": await self._count_quizzes(module_ids, session),
            "price": course.price if course.is_premium else 0,
        }

    # ---------------------------
    # Catalog
    # ---------------------------
    async def list_courses(
        self, filters: CourseFilters, session: AsyncSession
    ) -> Dict[str, Any]:
        conditions = [Course.is_published == True]  # noqa: E712
        if filters.category:
            conditions.append(Course.category == filters.category)
        if filters.level:
            conditions.append(Course.level == filters.level)
        if filters.is_premium is not None:
            conditions.append(Course.is_premium == filters.is_premium)
        if filters.search:
            pattern = f"%{filters.search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Course.title).like(pattern),
                    func.lower(Course.description).like(pattern),
                )
            )

        total = (
            await session.exec(select(func.count(Course.id)).where(*conditions))
        ).one()

        statement = (
            select(Course)
            .where(*conditions)
            .order_by(col(Course.created_at).desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        courses = (await session.exec(statement)).all()

        modules_by_course = await self._get_module_ids(
            [course.id for course in courses], session
        )
        items = [
            await self._course_stats(course, modules_by_course[course.id], session)
            for course in courses
        ]

        return {
            "courses": items,
            "pagination": {
                "page": filters.page,
                "limit": filters.limit,
                "total": total,
                "total_pages": math.ceil(total / filters.limit),
            },
        }

    async def get_published_course(
        self, course_id: uuid.UUID, session: AsyncSession
    ) -> Course:
        course = await session.get(Course, course_id)
        if not course or not course.is_published:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
            )
        return course

    async def get_course_modules(
        self, course_id: uuid.UUID, session: AsyncSession
    ) -> List[Dict[str, Any]]:
        modules = (
            await session.exec(
                select(CourseModule)
                .where(CourseModule.course_id == course_id)
                .order_by(col(CourseModule.order_index))
            )
        ).all()
        module_ids = [module.id for module in modules]
        if not module_ids:
            return []

        lessons = (
            await session.exec(
                select(Lesson)
                .where(col(Lesson.module_id).in_(module_ids))
                .order_by(col(Lesson.order_index))
            )
        ).all()
        quizzes = (
            await session.exec(
                select(Quiz)
                .where(
                    col(Quiz.module_id).in_(module_ids),
                    Quiz.status == QuizStatus.PUBLISHED,
                )
                .order_by(col(Quiz.created_at))
            )
        ).all()

        lessons_by_module = defaultdict(list)
        for lesson in lessons:
            lessons_by_module[lesson.module_id].append(lesson.model_dump())
        quizzes_by_module = defaultdict(list)
        for quiz in quizzes:
            quizzes_by_module[quiz.module_id].append(quiz.model_dump())

        return [
            {
                **module.model_dump(),
                "lessons": lessons_by_module[module.id],
                "quizzes": quizzes_by_module[module.id],
            }
            for module in modules
        ]

    async def get_course(
        self, course_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        course = await self.get_published_course(course_id, session)
        modules = await self.get_course_modules(course_id, session)
        return {
            **course.model_dump(),
            "enrollment_count": await self._count_enrollments(course_id, session),
            "modules": modules,
        }

    # ---------------------------
    # Enrollment
    # ---------------------------
    async def enroll(
        self, user: User, course_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        course = await session.get(Course, course_id)
        if not course:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Course not found"
            )

        if not course.is_published:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Course is not available for enrollment",
            )

        if await self.is_enrolled(user.id, course_id, session):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Already enrolled in this course",
            )

        if course.is_premium and not user.is_premium:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Premium subscription required for this course",
            )

        enrollment = Enrollment(user_id=user.id, course_id=course_id)
        session.add(enrollment)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Already enrolled in this course",
            )
        await session.refresh(enrollment)

        logger.info(f"User {user.id} enrolled in course {course_id}")
        return {
            "success": True,
            "message": f"Successfully enrolled in {course.title}",
            "enrollment": enrollment,
        }

    async def unenroll(
        self, user: User, course_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        enrollment = await self.get_enrollment(user.id, course_id, session)
        if not enrollment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found"
            )

        progress = (
            await session.exec(
                select(LessonProgress).where(
                    LessonProgress.enrollment_id == enrollment.id
                )
            )
        ).all()
        for row in progress:
            await session.delete(row)
        await session.delete(enrollment)
        await session.commit()

        logger.info(f"User {user.id} unenrolled from course {course_id}")
        return {"success": True, "message": "Successfully unenrolled from course"}

    async def enrollment_status(
        self, user: User, course_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        enrollment = await self.get_enrollment(user.id, course_id, session)
        return {"is_enrolled": enrollment is not None, "enrollment": enrollment}

    async def my_courses(self, user: User, session: AsyncSession) -> List[Dict[str, Any]]:
        enrollments = (
            await session.exec(
                select(Enrollment)
                .where(Enrollment.user_id == user.id)
                .order_by(col(Enrollment.enrolled_at).desc())
            )
        ).all()

        items = []
        for enrollment in enrollments:
            course = await session.get(Course, enrollment.course_id)
            modules_by_course = await self._get_module_ids([course.id], session)
            items.append(
                {
                    **enrollment.model_dump(),
                    "course": {
                        **course.model_dump(),
                        "total_lessons": await self._count_lessons(
                            modules_by_course[course.id], session
                        ),
                        "completed_lessons": await self._count_completed_lessons(
                            enrollment.id, session
                        ),
                    },
                }
            )
        return items

    # ---------------------------
    # Progress
    # ---------------------------
    async def _count_completed_lessons(
        self, enrollment_id: uuid.UUID, session: AsyncSession
    ) -> int:
        result = await session.exec(
            select(func.count(LessonProgress.id)).where(
                LessonProgress.enrollment_id == enrollment_id,
                LessonProgress.is_completed == True,  # noqa: E712
            )
        )
        return result.one()

    async def _progress_numbers(
        self, enrollment: Enrollment, session: AsyncSession
    ) -> Dict[str, Any]:
        modules_by_course = await self._get_module_ids([enrollment.course_id], session)
        total_lessons = await self._count_lessons(
            modules_by_course[enrollment.course_id], session
        )
        completed_lessons = await self._count_completed_lessons(enrollment.id, session)
        return {
            "total_lessons": total_lessons,
            "completed_lessons": completed_lessons,
            "progress_percent": (
                completed_lessons / total_lessons * 100 if total_lessons > 0 else 0
            ),
        }

    async def course_progress(
        self, user: User, course_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        enrollment = await self.get_enrollment(user.id, course_id, session)
        if not enrollment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found"
            )
        return {
            "enrollment": enrollment,
            "progress": await self._progress_numbers(enrollment, session),
        }

    async def get_lesson_enrollment(
        self, user_id: uuid.UUID, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Tuple[Lesson, Enrollment]:
        lesson = await session.get(Lesson, lesson_id)
        if not lesson:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found"
            )
        module = await session.get(CourseModule, lesson.module_id)

        enrollment = await self.get_enrollment(user_id, module.course_id, session)
        if not enrollment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not enrolled in this course",
            )
        return lesson, enrollment

    async def get_lesson_progress(
        self, enrollment_id: uuid.UUID, lesson_id: uuid.UUID, session: AsyncSession
    ) -> Optional[LessonProgress]:
        result = await session.exec(
            select(LessonProgress).where(
                LessonProgress.enrollment_id == enrollment_id,
                LessonProgress.lesson_id == lesson_id,
            )
        )
        return result.first()

    async def save_lesson_progress(
        self,
        enrollment: Enrollment,
        lesson_id: uuid.UUID,
        session: AsyncSession,
        is_completed: Optional[bool] = None,
        time_spent: Optional[int] = None,
        add_time: int = 0,
    ) -> LessonProgress:
        """
        Upsert one lesson's progress, then recompute the enrollment's
        percentage and completion stamp in the same transaction.
        """
        now = datetime.now(timezone.utc)
        progress = await self.get_lesson_progress(enrollment.id, lesson_id, session)
        if progress is None:
            progress = LessonProgress(enrollment_id=enrollment.id, lesson_id=lesson_id)
            session.add(progress)

        if is_completed is not None:
            progress.is_completed = is_completed
            progress.completed_at = now if is_completed else None
        if time_spent is not None:
            progress.time_spent = time_spent
        progress.time_spent = (progress.time_spent or 0) + add_time
        await session.flush()

        numbers = await self._progress_numbers(enrollment, session)
        enrollment.progress_percent = numbers["progress_percent"]
        enrollment.completed_at = now if numbers["progress_percent"] >= 100 else None

        await session.commit()
        await session.refresh(progress)
        return progress

    async def update_lesson_progress(
        self,
        user: User,
        lesson_id: uuid.UUID,
        is_completed: bool,
        time_spent: Optional[int],
        session: AsyncSession,
    ) -> LessonProgress:
        _, enrollment = await self.get_lesson_enrollment(user.id, lesson_id, session)
        return await self.save_lesson_progress(
            enrollment,
            lesson_id,
            session,
            is_completed=is_completed,
            time_spent=time_spent or 0,
        )


course_service = CourseService()
