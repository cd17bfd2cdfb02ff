from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
import uuid


class SpeechMetrics(BaseModel):
    pace: int
    clarity: int
    confidence: int
    filler_words: int
    words_per_minute: int
    word_count: int


class SpeechAnalysis(SpeechMetrics):
    suggestions: List[str] = []
    timestamp: datetime


class SpeechAnalysisResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: str
    user_id: Optional[uuid.UUID] = None
    full_transcript: str
    metrics: Dict[str, Any]
    created_at: datetime


class SocketMessage(BaseModel):
    """Inbound frame on the speech-analysis socket"""

    event: Literal["start-session", "audio-chunk", "end-session"]
    data: Dict[str, Any] = {}


class SessionPayload(BaseModel):
    session_id: str = Field(min_length=1, max_length=128)


class AudioChunkPayload(SessionPayload):
    audio_data: str = Field(min_length=1)  # base64 encoded WEBM_OPUS
    timestamp: Optional[float] = None
