import random
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.course import course_service
from app.auth.models import User
from app.core.config import settings
from app.core.logging import get_logger
from app.courses.models import CourseModule
from app.quizzes.models import (
    Question,
    Quiz,
    QuizAttempt,
    QuizResponse,
    QuizStatus,
)
from app.quizzes.schemas import QuizResponseItem
from app.quizzes.scoring import check_answer, score_percentage

logger = get_logger()


def _public_question(question: Question) -> Dict[str, Any]:
    # correct_answer and explanation stay hidden until results
    return {
        "id": question.id,
        "text": question.text,
        "type": question.type,
        "options": question.options,
        "points": question.points,
    }


class QuizService:
    """
    Quiz attempt lifecycle: NOT_STARTED -> IN_PROGRESS -> COMPLETED.

    Responses are scored as they are submitted; finishing only aggregates.
    A completed attempt is never modified again.
    """

    # ---------------------------
    # Query helpers
    # ---------------------------
    async def _get_published_quiz(
        self, quiz_id: uuid.UUID, session: AsyncSession
    ) -> Quiz:
        quiz = await session.get(Quiz, quiz_id)
        if not quiz or quiz.status != QuizStatus.PUBLISHED:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quiz not found or not available",
            )
        return quiz

    async def _get_questions(
        self, quiz_id: uuid.UUID, session: AsyncSession
    ) -> List[Question]:
        result = await session.exec(
            select(Question)
            .where(Question.quiz_id == quiz_id)
            .order_by(col(Question.order_index))
        )
        return list(result.all())

    async def _get_course_id(self, quiz: Quiz, session: AsyncSession) -> uuid.UUID:
        module = await session.get(CourseModule, quiz.module_id)
        return module.course_id

    async def _count_attempts(
        self, user_id: uuid.UUID, quiz_id: uuid.UUID, session: AsyncSession
    ) -> int:
        result = await session.exec(
            select(func.count(QuizAttempt.id)).where(
                QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id
            )
        )
        return result.one()

    async def _recent_attempts(
        self,
        user_id: uuid.UUID,
        quiz_id: uuid.UUID,
        session: AsyncSession,
        limit: Optional[int] = None,
    ) -> List[QuizAttempt]:
        statement = (
            select(QuizAttempt)
            .where(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id)
            .order_by(col(QuizAttempt.attempt_number).desc())
        )
        if limit:
            statement = statement.limit(limit)
        result = await session.exec(statement)
        return list(result.all())

    async def _get_owned_attempt(
        self, user: User, attempt_id: uuid.UUID, session: AsyncSession
    ) -> QuizAttempt:
        attempt = await session.get(QuizAttempt, attempt_id)
        if not attempt or attempt.user_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quiz attempt not found",
            )
        return attempt

    async def _get_open_attempt(
        self, user_id: uuid.UUID, attempt_id: uuid.UUID, session: AsyncSession
    ) -> QuizAttempt:
        # row lock held until commit so concurrent finishes serialize
        attempt = (
            await session.exec(
                select(QuizAttempt)
                .where(QuizAttempt.id == attempt_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        ).first()
        if not attempt or attempt.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quiz attempt not found",
            )
        if attempt.is_completed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quiz attempt already completed",
            )
        return attempt

    async def _get_responses(
        self, attempt_id: uuid.UUID, session: AsyncSession
    ) -> List[QuizResponse]:
        result = await session.exec(
            select(QuizResponse).where(QuizResponse.attempt_id == attempt_id)
        )
        return list(result.all())

    # ---------------------------
    # Read operations
    # ---------------------------
    async def get_module_quizzes(
        self, user: User, module_id: uuid.UUID, session: AsyncSession
    ) -> List[Dict[str, Any]]:
        quizzes = (
            await session.exec(
                select(Quiz)
                .where(Quiz.module_id == module_id, Quiz.status == QuizStatus.PUBLISHED)
                .order_by(col(Quiz.created_at))
            )
        ).all()

        items = []
        for quiz in quizzes:
            questions = await self._get_questions(quiz.id, session)
            items.append(
                {
                    **quiz.model_dump(),
                    "question_count": len(questions),
                    "max_score": sum(q.points for q in questions),
                    "recent_attempts": await self._recent_attempts(
                        user.id, quiz.id, session, limit=settings.RECENT_ATTEMPTS_LIMIT
                    ),
                }
            )
        return items

    async def get_quiz(
        self, user: User, quiz_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        quiz = await self._get_published_quiz(quiz_id, session)
        questions = await self._get_questions(quiz.id, session)
        course_id = await self._get_course_id(quiz, session)

        is_enrolled = await course_service.is_enrolled(user.id, course_id, session)
        user_attempts = await self._count_attempts(user.id, quiz.id, session)

        return {
            **quiz.model_dump(),
            "questions": [_public_question(q) for q in questions],
            "max_score": sum(q.points for q in questions),
            "is_enrolled": is_enrolled,
            "user_attempts": user_attempts,
            "attempts_remaining": max(0, quiz.max_attempts - user_attempts),
            "can_attempt": is_enrolled and user_attempts < quiz.max_attempts,
            "recent_attempts": await self._recent_attempts(
                user.id, quiz.id, session, limit=5
            ),
        }

    async def get_user_attempts(
        self, user: User, quiz_id: uuid.UUID, session: AsyncSession
    ) -> List[QuizAttempt]:
        return await self._recent_attempts(user.id, quiz_id, session)

    async def get_quiz_history(
        self, user: User, session: AsyncSession, quiz_id: Optional[uuid.UUID] = None
    ) -> List[Dict[str, Any]]:
        statement = (
            select(QuizAttempt, Quiz)
            .join(Quiz, col(Quiz.id) == col(QuizAttempt.quiz_id))
            .where(QuizAttempt.user_id == user.id)
            .order_by(col(QuizAttempt.started_at).desc())
        )
        if quiz_id:
            statement = statement.where(QuizAttempt.quiz_id == quiz_id)

        rows = (await session.exec(statement)).all()
        return [
            {
                **attempt.model_dump(),
                "quiz_title": quiz.title,
                "passing_score": quiz.passing_score,
            }
            for attempt, quiz in rows
        ]

    # ---------------------------
    # Attempt lifecycle
    # ---------------------------
    async def start_attempt(
        self, user: User, quiz_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        quiz = await self._get_published_quiz(quiz_id, session)
        course_id = await self._get_course_id(quiz, session)

        if not await course_service.is_enrolled(user.id, course_id, session):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You must be enrolled in this course to take the quiz",
            )

        attempt_count = await self._count_attempts(user.id, quiz.id, session)
        if attempt_count >= quiz.max_attempts:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Maximum attempts ({quiz.max_attempts}) reached",
            )

        questions = await self._get_questions(quiz.id, session)
        if not questions:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quiz has no questions",
            )
        if quiz.is_randomized:
            random.shuffle(questions)

        attempt = QuizAttempt(
            user_id=user.id,
            quiz_id=quiz.id,
            attempt_number=attempt_count + 1,
            max_score=sum(q.points for q in questions),
        )
        session.add(attempt)
        try:
            await session.commit()
        except IntegrityError:
            # another request took this attempt number first
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="An attempt for this quiz is already being started",
            )
        await session.refresh(attempt)

        logger.info(
            f"User {user.id} started attempt {attempt.attempt_number}/"
            f"{quiz.max_attempts} on quiz {quiz.id}"
        )
        return {
            "attempt_id": attempt.id,
            "quiz": quiz,
            "questions": [_public_question(q) for q in questions],
            "attempt": attempt,
        }

    async def _upsert_response(
        self,
        attempt: QuizAttempt,
        question: Question,
        answer: Any,
        time_spent: Optional[int],
        session: AsyncSession,
    ) -> QuizResponse:
        is_correct = check_answer(question.type, question.correct_answer, answer)
        values = {
            "answer": answer,
            "is_correct": is_correct,
            "points_earned": question.points if is_correct else 0,
            "time_spent": time_spent or 0,
            "answered_at": datetime.now(timezone.utc),
        }

        response = (
            await session.exec(
                select(QuizResponse).where(
                    QuizResponse.attempt_id == attempt.id,
                    QuizResponse.question_id == question.id,
                )
            )
        ).first()
        if response is None:
            response = QuizResponse(
                attempt_id=attempt.id, question_id=question.id, **values
            )
            session.add(response)
        else:
            response.sqlmodel_update(values)
        return response

    async def answer_question(
        self,
        user: User,
        attempt_id: uuid.UUID,
        question_id: uuid.UUID,
        answer: Any,
        time_spent: Optional[int],
        session: AsyncSession,
    ) -> QuizResponse:
        user_id = user.id
        attempt = await self._get_open_attempt(user_id, attempt_id, session)

        question = await session.get(Question, question_id)
        if not question or question.quiz_id != attempt.quiz_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Question not found in this quiz",
            )

        response = await self._upsert_response(
            attempt, question, answer, time_spent, session
        )
        try:
            await session.commit()
        except IntegrityError:
            # a concurrent submission inserted the row first; update it instead
            await session.rollback()
            attempt = await self._get_open_attempt(user_id, attempt_id, session)
            question = await session.get(Question, question_id)
            response = await self._upsert_response(
                attempt, question, answer, time_spent, session
            )
            await session.commit()
        await session.refresh(response)
        return response

    async def submit_attempt(
        self,
        user: User,
        attempt_id: uuid.UUID,
        responses: Iterable[QuizResponseItem],
        session: AsyncSession,
    ) -> Dict[str, Any]:
        attempt = await self._get_open_attempt(user.id, attempt_id, session)
        questions = {q.id: q for q in await self._get_questions(attempt.quiz_id, session)}

        for item in responses:
            question = questions.get(item.question_id)
            if question is None:
                logger.warning(
                    f"Skipping answer for question {item.question_id} "
                    f"not in quiz {attempt.quiz_id}"
                )
                continue
            await self._upsert_response(
                attempt, question, item.answer, item.time_spent, session
            )
        await session.flush()

        return await self._complete(attempt, session)

    async def finish_attempt(
        self, user: User, attempt_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        attempt = await self._get_open_attempt(user.id, attempt_id, session)
        return await self._complete(attempt, session)

    async def _complete(
        self, attempt: QuizAttempt, session: AsyncSession
    ) -> Dict[str, Any]:
        quiz = await session.get(Quiz, attempt.quiz_id)
        responses = await self._get_responses(attempt.id, session)

        total_score = sum(r.points_earned or 0 for r in responses)
        percentage = score_percentage(total_score, attempt.max_score)

        attempt.score = total_score
        attempt.passed = percentage >= quiz.passing_score
        attempt.time_spent = sum(r.time_spent or 0 for r in responses)
        attempt.completed_at = datetime.now(timezone.utc)
        await session.commit()
        await session.refresh(attempt)

        logger.info(
            f"Attempt {attempt.id} completed: {total_score}/{attempt.max_score} "
            f"({percentage}%), passed={attempt.passed}"
        )

        questions = await self._get_questions(quiz.id, session)
        return self._build_outcome(attempt, quiz, questions, responses)

    def _build_outcome(
        self,
        attempt: QuizAttempt,
        quiz: Quiz,
        questions: List[Question],
        responses: List[QuizResponse],
    ) -> Dict[str, Any]:
        outcome: Dict[str, Any] = {
            "attempt": {
                "id": attempt.id,
                "attempt_number": attempt.attempt_number,
                "score": attempt.score,
                "max_score": attempt.max_score,
                "score_percentage": score_percentage(attempt.score, attempt.max_score),
                "passed": attempt.passed,
                "time_spent": attempt.time_spent,
                "completed_at": attempt.completed_at,
            },
            "quiz": {
                "id": quiz.id,
                "title": quiz.title,
                "passing_score": quiz.passing_score,
                "show_results": quiz.show_results,
                "allow_review": quiz.allow_review,
            },
            "results": None,
        }
        if not quiz.show_results:
            return outcome

        correct = sum(1 for r in responses if r.is_correct)
        results: Dict[str, Any] = {
            "total_questions": len(questions),
            "correct_answers": correct,
            "incorrect_answers": len(responses) - correct,
            "unanswered_questions": len(questions) - len(responses),
            "detailed_responses": None,
        }
        if quiz.allow_review:
            by_id = {q.id: q for q in questions}
            results["detailed_responses"] = [
                {
                    "question_id": r.question_id,
                    "question_text": by_id[r.question_id].text,
                    "user_answer": r.answer,
                    "correct_answer": by_id[r.question_id].correct_answer,
                    "is_correct": r.is_correct,
                    "points_earned": r.points_earned,
                    "explanation": by_id[r.question_id].explanation,
                }
                for r in responses
                if r.question_id in by_id
            ]
        outcome["results"] = results
        return outcome

    async def get_attempt_results(
        self, user: User, attempt_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        attempt = await self._get_owned_attempt(user, attempt_id, session)
        if not attempt.is_completed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Quiz attempt not yet completed",
            )

        quiz = await session.get(Quiz, attempt.quiz_id)
        questions = await self._get_questions(quiz.id, session)
        responses = await self._get_responses(attempt.id, session)
        return self._build_outcome(attempt, quiz, questions, responses)


quiz_service = QuizService()
