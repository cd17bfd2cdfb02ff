import uuid
from typing import Any, Dict, List, Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlmodel import SQLModel, col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.logging import get_logger
from app.courses.models import Course, CourseModule, Lesson
from app.courses.schemas import CourseCreate, LessonCreate, ModuleCreate
from app.quizzes.models import Question, Quiz, QuizAttempt
from app.quizzes.schemas import QuestionCreate, QuizCreate, QuizUpdate

logger = get_logger()

ModelT = TypeVar("ModelT", bound=SQLModel)


class AdminService:
    """Authoring of courses, lessons and quizzes"""

    async def _next_order_index(
        self,
        column: Any,
        parent_column: Any,
        parent_id: uuid.UUID,
        session: AsyncSession,
    ) -> int:
        result = await session.exec(
            select(func.count(column)).where(parent_column == parent_id)
        )
        return result.one()

    async def _get_or_404(
        self,
        model: Type[ModelT],
        instance_id: uuid.UUID,
        session: AsyncSession,
        name: str,
    ) -> ModelT:
        instance = await session.get(model, instance_id)
        if not instance:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} not found"
            )
        return instance

    # ---------------------------
    # Courses
    # ---------------------------
    async def create_course(self, data: CourseCreate, session: AsyncSession) -> Course:
        course = Course(**data.model_dump())
        session.add(course)
        await session.commit()
        await session.refresh(course)
        logger.info(f"Course {course.id} created: {course.title}")
        return course

    async def create_module(
        self, course_id: uuid.UUID, data: ModuleCreate, session: AsyncSession
    ) -> CourseModule:
        await self._get_or_404(Course, course_id, session, "Course")
        module = CourseModule(
            course_id=course_id,
            order_index=await self._next_order_index(
                CourseModule.id, CourseModule.course_id, course_id, session
            ),
            **data.model_dump(),
        )
        session.add(module)
        await session.commit()
        await session.refresh(module)
        return module

    async def create_lesson(
        self, module_id: uuid.UUID, data: LessonCreate, session: AsyncSession
    ) -> Lesson:
        await self._get_or_404(CourseModule, module_id, session, "Module")
        lesson = Lesson(
            module_id=module_id,
            order_index=await self._next_order_index(
                Lesson.id, Lesson.module_id, module_id, session
            ),
            **data.model_dump(),
        )
        session.add(lesson)
        await session.commit()
        await session.refresh(lesson)
        return lesson

    # ---------------------------
    # Quizzes
    # ---------------------------
    async def _get_questions(self, quiz_id: uuid.UUID, session: AsyncSession) -> List[Question]:
        result = await session.exec(
            select(Question)
            .where(Question.quiz_id == quiz_id)
            .order_by(Question.order_index)
        )
        return list(result.all())

    async def _quiz_detail(self, quiz: Quiz, session: AsyncSession) -> Dict[str, Any]:
        return {
            **quiz.model_dump(),
            "questions": await self._get_questions(quiz.id, session),
        }

    async def create_quiz(
        self, module_id: uuid.UUID, data: QuizCreate, session: AsyncSession
    ) -> Dict[str, Any]:
        await self._get_or_404(CourseModule, module_id, session, "Module")

        quiz = Quiz(module_id=module_id, **data.model_dump(exclude={"questions"}))
        session.add(quiz)
        await session.flush()

        for index, question_data in enumerate(data.questions):
            session.add(
                Question(quiz_id=quiz.id, order_index=index, **question_data.model_dump())
            )

        await session.commit()
        await session.refresh(quiz)
        logger.info(
            f"Quiz {quiz.id} created in module {module_id} "
            f"with {len(data.questions)} questions"
        )
        return await self._quiz_detail(quiz, session)

    async def add_question(
        self, quiz_id: uuid.UUID, data: QuestionCreate, session: AsyncSession
    ) -> Question:
        await self._get_or_404(Quiz, quiz_id, session, "Quiz")

        open_attempts = (
            await session.exec(
                select(func.count(QuizAttempt.id)).where(
                    QuizAttempt.quiz_id == quiz_id,
                    col(QuizAttempt.completed_at).is_(None),
                )
            )
        ).one()
        if open_attempts > 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot add questions while attempts are in progress",
            )

        question = Question(
            quiz_id=quiz_id,
            order_index=await self._next_order_index(
                Question.id, Question.quiz_id, quiz_id, session
            ),
            **data.model_dump(),
        )
        session.add(question)
        await session.commit()
        await session.refresh(question)
        return question

    async def update_quiz(
        self, quiz_id: uuid.UUID, data: QuizUpdate, session: AsyncSession
    ) -> Dict[str, Any]:
        quiz = await self._get_or_404(Quiz, quiz_id, session, "Quiz")
        quiz.sqlmodel_update(data.model_dump(exclude_unset=True))
        await session.commit()
        await session.refresh(quiz)
        return await self._quiz_detail(quiz, session)

    async def delete_quiz(self, quiz_id: uuid.UUID, session: AsyncSession) -> Dict[str, Any]:
        quiz = await self._get_or_404(Quiz, quiz_id, session, "Quiz")

        attempts = (
            await session.exec(
                select(func.count(QuizAttempt.id)).where(QuizAttempt.quiz_id == quiz_id)
            )
        ).one()
        if attempts > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete quiz with existing attempts",
            )

        for question in await self._get_questions(quiz_id, session):
            await session.delete(question)
        await session.delete(quiz)
        await session.commit()
        logger.info(f"Quiz {quiz_id} deleted")
        return {"success": True, "message": "Quiz deleted"}


admin_service = AdminService()
