import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.auth.models import User
from app.core.logging import get_logger
from app.core.services.ai import ai_service
from app.interviews.models import (
    QUESTION_COUNTS,
    InterviewResponse,
    InterviewSession,
    InterviewStatus,
)
from app.interviews.schemas import (
    InterviewResponseItem,
    InterviewSessionCreate,
    InterviewSessionUpdate,
)

logger = get_logger()

NEXT_STEPS = [
    "Practice behavioral questions with specific examples",
    "Research company background for targeted practice",
    "Work on speaking pace and clarity",
    "Focus on quantifiable achievements",
    "Practice with industry-specific terminology",
]
DEFAULT_STRENGTHS = ["Clear communication", "Professional presentation"]
DEFAULT_IMPROVEMENTS = ["Add more specific examples", "Improve time management"]


def overall_score(scores: List[Optional[float]]) -> float:
    """Average of the scored responses, rounded to two places; 0 when none"""
    valid = [score for score in scores if score is not None]
    if not valid:
        return 0
    return round(sum(valid) / len(valid), 2)


def _unique(items: List[str], limit: int) -> List[str]:
    seen = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen[:limit]


class InterviewService:
    """Mock interview sessions owned by a single user"""

    async def get_session(
        self, user_id: uuid.UUID, session_id: uuid.UUID, session: AsyncSession
    ) -> InterviewSession:
        interview = await session.get(InterviewSession, session_id)
        if not interview or interview.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Interview session not found",
            )
        return interview

    async def _responses(
        self, session_id: uuid.UUID, session: AsyncSession
    ) -> List[InterviewResponse]:
        result = await session.exec(
            select(InterviewResponse)
            .where(InterviewResponse.session_id == session_id)
            .order_by(col(InterviewResponse.created_at))
        )
        return list(result.all())

    # ---------------------------
    # Sessions
    # ---------------------------
    async def create_session(
        self, user: User, data: InterviewSessionCreate, session: AsyncSession
    ) -> InterviewSession:
        generated = await ai_service.generate_interview_questions(
            target_role=data.settings.role,
            target_industry=data.settings.industry,
            difficulty="medium",
            question_types=["behavioral", "technical", "situational"],
            count=QUESTION_COUNTS.get(data.type, 5),
        )

        interview = InterviewSession(
            user_id=user.id,
            title=data.title,
            type=data.type,
            status=InterviewStatus.SCHEDULED,
            questions=generated["questions"],
            settings=data.settings.model_dump(),
        )
        session.add(interview)
        await session.commit()
        await session.refresh(interview)

        logger.info(
            f"Created interview session {interview.id} for user {user.id} "
            f"with {len(interview.questions)} questions ({generated['provider']})"
        )
        return interview

    async def list_sessions(
        self, user: User, skip: int, take: int, session: AsyncSession
    ) -> Dict[str, Any]:
        total = (
            await session.exec(
                select(func.count(InterviewSession.id)).where(
                    InterviewSession.user_id == user.id
                )
            )
        ).one()
        interviews = (
            await session.exec(
                select(InterviewSession)
                .where(InterviewSession.user_id == user.id)
                .order_by(col(InterviewSession.created_at).desc())
                .offset(skip)
                .limit(take)
            )
        ).all()

        responses_by_session = defaultdict(list)
        ids = [interview.id for interview in interviews]
        if ids:
            rows = await session.exec(
                select(
                    InterviewResponse.session_id,
                    InterviewResponse.id,
                    InterviewResponse.score,
                    InterviewResponse.duration,
                ).where(col(InterviewResponse.session_id).in_(ids))
            )
            for session_id, response_id, score, duration in rows.all():
                responses_by_session[session_id].append(
                    {"id": response_id, "score": score, "duration": duration}
                )

        return {
            "sessions": [
                {
                    **interview.model_dump(),
                    "responses": responses_by_session[interview.id],
                }
                for interview in interviews
            ],
            "total": total,
        }

    async def get_session_detail(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        interview = await self.get_session(user.id, session_id, session)
        return {
            **interview.model_dump(),
            "responses": await self._responses(interview.id, session),
        }

    async def update_session(
        self,
        user: User,
        session_id: uuid.UUID,
        data: InterviewSessionUpdate,
        session: AsyncSession,
    ) -> InterviewSession:
        interview = await self.get_session(user.id, session_id, session)
        updates = data.model_dump(exclude_unset=True)
        if "settings" in updates:
            updates["settings"] = {**interview.settings, **updates["settings"]}
        if updates.get("current_question_index", 0) >= max(len(interview.questions), 1):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Question index out of range",
            )
        for key, value in updates.items():
            setattr(interview, key, value)
        session.add(interview)
        await session.commit()
        await session.refresh(interview)
        return interview

    async def delete_session(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        interview = await self.get_session(user.id, session_id, session)
        for response in await self._responses(interview.id, session):
            await session.delete(response)
        await session.delete(interview)
        await session.commit()
        logger.info(f"Deleted interview session {session_id}")
        return {"success": True, "message": "Interview session deleted"}

    async def start_session(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> InterviewSession:
        interview = await self.get_session(user.id, session_id, session)
        if interview.status != InterviewStatus.SCHEDULED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Session cannot be started in current state",
            )
        interview.status = InterviewStatus.IN_PROGRESS
        interview.start_time = datetime.now(timezone.utc)
        session.add(interview)
        await session.commit()
        await session.refresh(interview)
        logger.info(f"Started interview session {session_id}")
        return interview

    async def end_session(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> InterviewSession:
        interview = await self.get_session(user.id, session_id, session)
        if interview.status != InterviewStatus.IN_PROGRESS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Session is not in progress",
            )

        end_time = datetime.now(timezone.utc)
        start_time = interview.start_time
        if start_time is not None and start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=timezone.utc)
        responses = await self._responses(interview.id, session)

        interview.status = InterviewStatus.COMPLETED
        interview.end_time = end_time
        interview.total_duration = (
            int((end_time - start_time).total_seconds()) if start_time else 0
        )
        interview.overall_score = overall_score([r.score for r in responses])
        session.add(interview)
        await session.commit()
        await session.refresh(interview)

        logger.info(
            f"Ended interview session {session_id} with score {interview.overall_score}"
        )
        return interview

    # ---------------------------
    # Responses
    # ---------------------------
    async def _build_response(
        self, interview: InterviewSession, item: InterviewResponseItem
    ) -> InterviewResponse:
        analysis = None
        score = None
        if item.transcription:
            result = await ai_service.analyze_response(
                spoken_text=item.transcription,
                question=item.question,
                target_role=interview.settings.get("role") or "General",
                industry=interview.settings.get("industry") or "Technology",
            )
            analysis = {**result["data"], "provider": result["provider"]}
            score = analysis.get("confidence")

        return InterviewResponse(
            session_id=interview.id,
            question_id=item.question_id,
            question=item.question,
            transcription=item.transcription,
            audio_url=item.audio_url,
            video_url=item.video_url,
            duration=item.duration,
            score=score,
            analysis=analysis,
        )

    async def _get_running_session(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> InterviewSession:
        interview = await self.get_session(user.id, session_id, session)
        if interview.status != InterviewStatus.IN_PROGRESS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Responses can only be saved while the session is in progress",
            )
        return interview

    async def save_response(
        self,
        user: User,
        session_id: uuid.UUID,
        item: InterviewResponseItem,
        session: AsyncSession,
    ) -> InterviewResponse:
        interview = await self._get_running_session(user, session_id, session)
        response = await self._build_response(interview, item)
        session.add(response)
        await session.commit()
        await session.refresh(response)
        logger.info(
            f"Saved response for session {session_id}, question {item.question_id}"
        )
        return response

    async def save_responses(
        self,
        user: User,
        session_id: uuid.UUID,
        items: List[InterviewResponseItem],
        session: AsyncSession,
    ) -> List[InterviewResponse]:
        interview = await self._get_running_session(user, session_id, session)
        responses = [await self._build_response(interview, item) for item in items]
        session.add_all(responses)
        await session.commit()
        for response in responses:
            await session.refresh(response)
        logger.info(f"Saved {len(responses)} responses for session {session_id}")
        return responses

    async def list_responses(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> List[InterviewResponse]:
        interview = await self.get_session(user.id, session_id, session)
        return await self._responses(interview.id, session)

    # ---------------------------
    # Results
    # ---------------------------
    def _insights(self, responses: List[InterviewResponse]) -> Dict[str, List[str]]:
        strengths, improvements = [], []
        for response in responses:
            analysis = response.analysis or {}
            strengths.extend(analysis.get("strengths") or [])
            improvements.extend(analysis.get("improvement_areas") or [])

        return {
            "top_strengths": _unique(strengths, 5) or DEFAULT_STRENGTHS,
            "key_improvements": _unique(improvements, 5) or DEFAULT_IMPROVEMENTS,
            "next_steps": NEXT_STEPS,
        }

    async def session_results(
        self, user: User, session_id: uuid.UUID, session: AsyncSession
    ) -> Dict[str, Any]:
        interview = await self.get_session(user.id, session_id, session)
        responses = await self._responses(interview.id, session)

        return {
            "session_id": interview.id,
            "title": interview.title,
            "completed_at": interview.end_time,
            "total_duration": interview.total_duration,
            "overall_score": interview.overall_score or 0,
            "questions_completed": len(responses),
            "total_questions": len(interview.questions),
            "question_results": [
                {
                    "question_id": response.question_id,
                    "question": response.question,
                    "duration": response.duration,
                    "score": response.score or 0,
                    "analysis": response.analysis or {},
                }
                for response in responses
            ],
            "insights": self._insights(responses),
        }


interview_service = InterviewService()
