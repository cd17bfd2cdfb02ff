import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import DateTime, ForeignKey, JSON, Text, Uuid, text


class InterviewType(str, Enum):
    QUICK_PREP = "QUICK_PREP"
    PRACTICE = "PRACTICE"
    FULL_MOCK = "FULL_MOCK"


class InterviewStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


QUESTION_COUNTS = {
    InterviewType.QUICK_PREP: 3,
    InterviewType.PRACTICE: 5,
    InterviewType.FULL_MOCK: 10,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewSession(SQLModel, table=True):
    __tablename__ = "interview_sessions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    title: str = Field(nullable=False)
    type: InterviewType = Field(default=InterviewType.PRACTICE)
    status: InterviewStatus = Field(default=InterviewStatus.SCHEDULED, index=True)
    questions: List[Dict[str, Any]] = Field(default=[], sa_column=Column(JSON))
    settings: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))
    current_question_index: int = Field(default=0)

    start_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    end_time: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    total_duration: int = Field(default=0)  # seconds
    overall_score: Optional[float] = Field(default=None)

    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )


class InterviewResponse(SQLModel, table=True):
    __tablename__ = "interview_responses"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    session_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("interview_sessions.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    question_id: str = Field(max_length=128)
    question: str = Field(sa_column=Column(Text, nullable=False))
    transcription: Optional[str] = Field(
        default=None, sa_column=Column(Text, nullable=True)
    )
    audio_url: Optional[str] = Field(default=None)
    video_url: Optional[str] = Field(default=None)
    duration: int = Field(default=0)  # seconds
    score: Optional[float] = Field(default=None)
    analysis: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
