from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.logging import get_logger
from app.core.services.ai import ai_service
from app.interviews.schemas import (
    FollowUpRequest,
    InstantTipsRequest,
    QuestionGenerationRequest,
    RealTimeAnalysisRequest,
)

logger = get_logger()

router = APIRouter()


@router.post("/analyze/real-time", response_model=Dict[str, Any])
async def analyze_real_time(
    request: RealTimeAnalysisRequest,
    current_user: User = Depends(get_current_active_user),
):
    """Score an answer while the candidate is still talking"""
    logger.info(f"Real-time analysis requested for role: {request.target_role}")
    return await ai_service.analyze_response(
        spoken_text=request.spoken_text,
        question=request.current_question,
        target_role=request.target_role,
        industry=request.industry,
    )


@router.post("/coaching/instant-tips", response_model=Dict[str, Any])
async def instant_tips(
    request: InstantTipsRequest,
    current_user: User = Depends(get_current_active_user),
):
    context = request.context.model_dump() if request.context else None
    return await ai_service.instant_coaching_tips(request.current_response, context)


@router.post("/questions/generate", response_model=Dict[str, Any])
async def generate_questions(
    request: QuestionGenerationRequest,
    current_user: User = Depends(get_current_active_user),
):
    logger.info(f"Question generation requested for {request.target_role}")
    return await ai_service.generate_interview_questions(
        target_role=request.target_role,
        target_industry=request.target_industry,
        difficulty=request.difficulty,
        question_types=list(request.question_types),
        count=request.count,
    )


@router.post("/questions/follow-up", response_model=Dict[str, Any])
async def follow_up_question(
    request: FollowUpRequest,
    current_user: User = Depends(get_current_active_user),
):
    context = request.context.model_dump() if request.context else None
    return await ai_service.generate_follow_up(
        request.original_question, request.user_response, context
    )
