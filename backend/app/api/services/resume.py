import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, UploadFile, status
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.auth.models import User
from app.core.config import settings
from app.core.logging import get_logger
from app.core.services.ai import AIProviderError, ai_service
from app.core.services.file import file_service
from app.resumes.models import Resume

logger = get_logger()


class ResumeService:
    """Resume upload, storage and AI analysis. Every read is owner-scoped."""

    def validate_upload(self, file: UploadFile, data: bytes) -> None:
        if not data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty"
            )
        if len(data) > settings.MAX_RESUME_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File size exceeds limit of {settings.MAX_RESUME_SIZE // (1024 * 1024)}MB",
            )
        if file.content_type not in settings.ALLOWED_RESUME_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid file type. Only PDF, DOCX and plain text files are allowed",
            )
        if not file_service.looks_like(data, file.content_type):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="File does not match expected type",
            )

    async def get_resume(
        self, user_id: uuid.UUID, resume_id: uuid.UUID, session: AsyncSession
    ) -> Resume:
        resume = await session.get(Resume, resume_id)
        if not resume or resume.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Resume not found"
            )
        return resume

    @staticmethod
    def _analysis_view(resume: Resume) -> Dict[str, Any]:
        return {
            "id": resume.id,
            "analysis_score": resume.analysis_score,
            "ats_score": resume.ats_score,
            "skills_found": resume.skills_found,
            "skills_gaps": resume.skills_gaps,
            "strengths": resume.strengths,
            "improvements": resume.improvements,
            "suggestions": resume.suggestions,
            "analyzed_at": resume.analyzed_at,
            "provider": resume.analysis_provider,
        }

    async def upload(
        self,
        user: User,
        file: UploadFile,
        auto_analyze: bool,
        session: AsyncSession,
    ) -> Dict[str, Any]:
        data = await file.read()
        self.validate_upload(file, data)

        original_name = os.path.basename(file.filename or "resume")
        file_key = file_service.generate_file_key(user.id, original_name)
        extracted_text = file_service.extract_text(data, file.content_type)
        path = await file_service.save(file_key, data)

        resume = Resume(
            user_id=user.id,
            file_name=file_key,
            original_name=original_name,
            file_path=path,
            file_size=len(data),
            mime_type=file.content_type,
            extracted_text=extracted_text,
        )
        session.add(resume)
        await session.commit()
        await session.refresh(resume)
        logger.info(f"User {user.id} uploaded resume {resume.id} ({len(data)} bytes)")

        analysis = None
        if auto_analyze and extracted_text:
            try:
                analysis = await self.analyze(user, resume.id, session)
            except HTTPException as e:
                logger.warning(f"Auto-analysis failed for resume {resume.id}: {e.detail}")

        preview = extracted_text[: settings.RESUME_PREVIEW_CHARS]
        if len(extracted_text) > settings.RESUME_PREVIEW_CHARS:
            preview += "..."

        return {
            "id": resume.id,
            "original_name": resume.original_name,
            "file_size": resume.file_size,
            "mime_type": resume.mime_type,
            "uploaded_at": resume.created_at,
            "extracted_text": preview,
            "auto_analyzed": analysis is not None,
            "analysis_result": analysis,
        }

    async def list_resumes(self, user: User, session: AsyncSession) -> List[Resume]:
        result = await session.exec(
            select(Resume)
            .where(Resume.user_id == user.id)
            .order_by(col(Resume.created_at).desc())
        )
        return list(result.all())

    async def analyze(
        self,
        user: User,
        resume_id: uuid.UUID,
        session: AsyncSession,
        target_role: Optional[str] = None,
        target_industry: Optional[str] = None,
    ) -> Dict[str, Any]:
        resume = await self.get_resume(user.id, resume_id, session)
        if not resume.extracted_text:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No text extracted from resume",
            )

        try:
            analysis = await ai_service.analyze_resume(
                resume.extracted_text, target_role, target_industry
            )
        except AIProviderError as e:
            logger.error(f"Analysis failed for resume {resume.id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Analysis failed: {e}"
            )

        resume.analysis_score = analysis["overall_score"]
        resume.ats_score = analysis["ats_score"]
        resume.skills_found = analysis["skills_found"]
        resume.skills_gaps = analysis["skills_gaps"]
        resume.strengths = analysis["strengths"]
        resume.improvements = analysis["improvements"]
        resume.suggestions = analysis["suggestions"]
        resume.analysis_provider = analysis["provider"]
        resume.is_analyzed = True
        resume.analyzed_at = analysis.get("analysis_date") or datetime.now(timezone.utc)
        session.add(resume)
        await session.commit()
        await session.refresh(resume)

        logger.info(f"Resume {resume.id} analyzed by {resume.analysis_provider}")
        return self._analysis_view(resume)

    async def retry_analysis(
        self, user: User, resume_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        resume = await self.get_resume(user.id, resume_id, session)
        resume.is_analyzed = False
        resume.analysis_score = None
        resume.ats_score = None
        resume.analyzed_at = None
        session.add(resume)
        await session.commit()
        return await self.analyze(user, resume_id, session)

    async def delete(
        self, user: User, resume_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        resume = await self.get_resume(user.id, resume_id, session)
        file_service.delete(resume.file_name)
        await session.delete(resume)
        await session.commit()
        logger.info(f"User {user.id} deleted resume {resume_id}")
        return {"success": True, "message": "Resume deleted successfully"}

    async def download_path(
        self, user: User, resume_id: uuid.UUID, session: AsyncSession
    ) -> tuple:
        resume = await self.get_resume(user.id, resume_id, session)
        path = file_service.path_for(resume.file_name)
        if not os.path.exists(path):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Resume file not found"
            )
        return resume, path

    def provider_status(self) -> List[Dict[str, Any]]:
        return ai_service.get_available_providers()


resume_service = ResumeService()
