import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.quiz import quiz_service
from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.database import get_session
from app.core.logging import get_logger
from app.quizzes.schemas import (
    AttemptHistoryItem,
    AttemptOutcome,
    AttemptStarted,
    AttemptSummary,
    QuizForTaker,
    QuizOverview,
    QuizResponseRead,
    SubmitAnswer,
    SubmitQuizResponses,
)

logger = get_logger()

router = APIRouter()


@router.get("/modules/{module_id}", response_model=List[QuizOverview])
async def get_module_quizzes(
    module_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get all published quizzes for a module with the user's recent attempts"""
    return await quiz_service.get_module_quizzes(current_user, module_id, session)


@router.get("/history", response_model=List[AttemptHistoryItem])
async def get_quiz_history(
    quiz_id: Optional[uuid.UUID] = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get the user's quiz attempt history, optionally for one quiz"""
    return await quiz_service.get_quiz_history(current_user, session, quiz_id)


@router.get("/{quiz_id}", response_model=QuizForTaker)
async def get_quiz(
    quiz_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Get quiz details without correct answers"""
    return await quiz_service.get_quiz(current_user, quiz_id, session)


@router.get("/{quiz_id}/attempts", response_model=List[AttemptSummary])
async def get_user_attempts(
    quiz_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await quiz_service.get_user_attempts(current_user, quiz_id, session)


@router.post(
    "/{quiz_id}/attempts",
    response_model=AttemptStarted,
    status_code=status.HTTP_201_CREATED,
)
async def start_attempt(
    quiz_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Start a new quiz attempt"""
    try:
        return await quiz_service.start_attempt(current_user, quiz_id, session)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to start attempt on quiz {quiz_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "status": "error",
                "message": "Failed to start quiz attempt",
                "action": "Please try again later",
            },
        )


@router.patch(
    "/attempts/{attempt_id}/questions/{question_id}",
    response_model=QuizResponseRead,
)
async def submit_answer(
    attempt_id: uuid.UUID,
    question_id: uuid.UUID,
    answer_data: SubmitAnswer,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Submit (or resubmit) the answer to one question"""
    return await quiz_service.answer_question(
        current_user,
        attempt_id,
        question_id,
        answer_data.answer,
        answer_data.time_spent,
        session,
    )


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptOutcome)
async def submit_attempt(
    attempt_id: uuid.UUID,
    submit_data: SubmitQuizResponses,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Submit all answers at once and finish the attempt"""
    return await quiz_service.submit_attempt(
        current_user, attempt_id, submit_data.responses, session
    )


@router.post("/attempts/{attempt_id}/finish", response_model=AttemptOutcome)
async def finish_attempt(
    attempt_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Finish the attempt and calculate the final score"""
    return await quiz_service.finish_attempt(current_user, attempt_id, session)


@router.get("/attempts/{attempt_id}/results", response_model=AttemptOutcome)
async def get_attempt_results(
    attempt_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await quiz_service.get_attempt_results(current_user, attempt_id, session)
