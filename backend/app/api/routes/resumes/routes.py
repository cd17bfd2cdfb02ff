import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.resume import resume_service
from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.database import get_session
from app.resumes.schemas import (
    AnalyzeResumeRequest,
    ResumeAnalysis,
    ResumeRead,
    ResumeSummary,
    ResumeUploadResponse,
)

router = APIRouter()


@router.get("/providers", response_model=List[Dict[str, Any]])
async def get_provider_status(
    current_user: User = Depends(get_current_active_user),
):
    """Which generative providers are configured"""
    return resume_service.provider_status()


@router.post(
    "/upload",
    response_model=ResumeUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_resume(
    file: UploadFile = File(...),
    auto_analyze: bool = Form(default=True),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Upload a PDF, DOCX or text resume and analyze it unless told not to"""
    return await resume_service.upload(current_user, file, auto_analyze, session)


@router.get("/", response_model=List[ResumeSummary])
async def list_resumes(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await resume_service.list_resumes(current_user, session)


@router.get("/{resume_id}", response_model=ResumeRead)
async def get_resume(
    resume_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await resume_service.get_resume(current_user.id, resume_id, session)


@router.get("/{resume_id}/download")
async def download_resume(
    resume_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    resume, path = await resume_service.download_path(current_user, resume_id, session)
    return FileResponse(path, media_type=resume.mime_type, filename=resume.original_name)


@router.delete("/{resume_id}")
async def delete_resume(
    resume_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await resume_service.delete(current_user, resume_id, session)


@router.post("/{resume_id}/analyze", response_model=ResumeAnalysis)
async def analyze_resume(
    resume_id: uuid.UUID,
    request: Optional[AnalyzeResumeRequest] = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Run (or re-run) the AI analysis, optionally for a target role"""
    return await resume_service.analyze(
        current_user,
        resume_id,
        session,
        target_role=request.target_role if request else None,
        target_industry=request.target_industry if request else None,
    )


@router.post("/{resume_id}/retry-analysis", response_model=ResumeAnalysis)
async def retry_resume_analysis(
    resume_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await resume_service.retry_analysis(current_user, resume_id, session)
