import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import DateTime, ForeignKey, JSON, Text, Uuid, text


class SpeechAnalysisResult(SQLModel, table=True):
    __tablename__ = "speech_analysis_results"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    session_id: str = Field(index=True, max_length=128)
    user_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(
            Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
        ),
    )
    full_transcript: str = Field(default="", sa_column=Column(Text, nullable=False))
    metrics: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
