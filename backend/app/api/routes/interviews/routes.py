import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.interview import interview_service
from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.config import settings
from app.core.database import get_session
from app.interviews.schemas import (
    InterviewResponseBatch,
    InterviewResponseCreate,
    InterviewResponseItem,
    InterviewResponseRead,
    InterviewResults,
    InterviewSessionCreate,
    InterviewSessionDetail,
    InterviewSessionList,
    InterviewSessionRead,
    InterviewSessionUpdate,
)

router = APIRouter()


@router.post(
    "/sessions",
    response_model=InterviewSessionRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    data: InterviewSessionCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Schedule a mock interview with generated questions"""
    return await interview_service.create_session(current_user, data, session)


@router.get("/sessions", response_model=InterviewSessionList)
async def list_sessions(
    skip: int = Query(default=0, ge=0),
    take: int = Query(default=settings.INTERVIEW_PAGE_SIZE, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.list_sessions(current_user, skip, take, session)


@router.get("/sessions/{session_id}", response_model=InterviewSessionDetail)
async def get_session_detail(
    session_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.get_session_detail(current_user, session_id, session)


@router.put("/sessions/{session_id}", response_model=InterviewSessionRead)
async def update_session(
    session_id: uuid.UUID,
    data: InterviewSessionUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.update_session(
        current_user, session_id, data, session
    )


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.delete_session(current_user, session_id, session)


@router.post("/sessions/{session_id}/start", response_model=InterviewSessionRead)
async def start_session(
    session_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.start_session(current_user, session_id, session)


@router.post("/sessions/{session_id}/end", response_model=InterviewSessionRead)
async def end_session(
    session_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Complete the session and compute its overall score"""
    return await interview_service.end_session(current_user, session_id, session)


@router.post(
    "/responses",
    response_model=InterviewResponseRead,
    status_code=status.HTTP_201_CREATED,
)
async def save_response(
    data: InterviewResponseCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Store one answer; a transcription is scored by the coach"""
    item = InterviewResponseItem(**data.model_dump(exclude={"session_id"}))
    return await interview_service.save_response(
        current_user, data.session_id, item, session
    )


@router.get(
    "/sessions/{session_id}/responses", response_model=List[InterviewResponseRead]
)
async def list_responses(
    session_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.list_responses(current_user, session_id, session)


@router.post(
    "/sessions/{session_id}/responses/batch",
    response_model=List[InterviewResponseRead],
    status_code=status.HTTP_201_CREATED,
)
async def save_responses_batch(
    session_id: uuid.UUID,
    data: InterviewResponseBatch,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await interview_service.save_responses(
        current_user, session_id, data.responses, session
    )


@router.get("/sessions/{session_id}/results", response_model=InterviewResults)
async def get_session_results(
    session_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
) -> Dict[str, Any]:
    return await interview_service.session_results(current_user, session_id, session)
