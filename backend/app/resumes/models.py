import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import DateTime, ForeignKey, JSON, Text, Uuid, text


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Resume(SQLModel, table=True):
    __tablename__ = "resumes"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    file_name: str = Field(nullable=False)  # stored name under UPLOAD_DIR
    original_name: str = Field(nullable=False)
    file_path: str = Field(nullable=False)
    file_size: int = Field(default=0)
    mime_type: str = Field(nullable=False)
    extracted_text: str = Field(default="", sa_column=Column(Text, nullable=False))

    analysis_score: Optional[float] = Field(default=None)
    ats_score: Optional[float] = Field(default=None)
    skills_found: List[str] = Field(default=[], sa_column=Column(JSON))
    skills_gaps: List[str] = Field(default=[], sa_column=Column(JSON))
    strengths: List[str] = Field(default=[], sa_column=Column(JSON))
    improvements: List[str] = Field(default=[], sa_column=Column(JSON))
    suggestions: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))
    analysis_provider: Optional[str] = Field(default=None)
    is_analyzed: bool = Field(default=False)
    analyzed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
            onupdate=_utcnow,
        ),
    )
