from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
import uuid

from app.interviews.models import InterviewStatus, InterviewType


class InterviewSettings(BaseModel):
    record_video: bool = False
    record_audio: bool = True
    enable_hints: bool = True
    time_per_question: int = Field(default=120, ge=10, le=1800)
    industry: str = Field(default="Technology", max_length=120)
    role: str = Field(default="Software Engineer", max_length=120)


class InterviewSessionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    type: InterviewType = InterviewType.PRACTICE
    settings: InterviewSettings = InterviewSettings()


class InterviewSessionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    current_question_index: Optional[int] = Field(default=None, ge=0)
    settings: Optional[InterviewSettings] = None

    @field_validator("title", "current_question_index", "settings")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class InterviewResponseCreate(BaseModel):
    session_id: uuid.UUID
    question_id: str = Field(min_length=1, max_length=128)
    question: str = Field(min_length=1)
    transcription: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    duration: int = Field(default=0, ge=0)


class InterviewResponseItem(BaseModel):
    question_id: str = Field(min_length=1, max_length=128)
    question: str = Field(min_length=1)
    transcription: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    duration: int = Field(default=0, ge=0)


class InterviewResponseBatch(BaseModel):
    responses: List[InterviewResponseItem] = Field(min_length=1)


class InterviewResponseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    session_id: uuid.UUID
    question_id: str
    question: str
    transcription: Optional[str] = None
    audio_url: Optional[str] = None
    video_url: Optional[str] = None
    duration: int
    score: Optional[float] = None
    analysis: Optional[Dict[str, Any]] = None
    created_at: datetime


class InterviewSessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    type: InterviewType
    status: InterviewStatus
    questions: List[Dict[str, Any]] = []
    settings: Dict[str, Any] = {}
    current_question_index: int
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    total_duration: int
    overall_score: Optional[float] = None
    created_at: datetime


class InterviewSessionDetail(InterviewSessionRead):
    responses: List[InterviewResponseRead] = []


class InterviewSessionList(BaseModel):
    sessions: List[Dict[str, Any]]
    total: int


class InterviewInsights(BaseModel):
    top_strengths: List[str]
    key_improvements: List[str]
    next_steps: List[str]


class InterviewResults(BaseModel):
    session_id: uuid.UUID
    title: str
    completed_at: Optional[datetime] = None
    total_duration: int
    overall_score: float
    questions_completed: int
    total_questions: int
    question_results: List[Dict[str, Any]]
    insights: InterviewInsights


class CoachingContext(BaseModel):
    target_role: Optional[str] = None
    industry: Optional[str] = None
    current_question: Optional[str] = None


class RealTimeAnalysisRequest(BaseModel):
    spoken_text: str = Field(min_length=1)
    current_question: str = Field(min_length=1)
    target_role: str = Field(min_length=1)
    industry: str = Field(min_length=1)


class InstantTipsRequest(BaseModel):
    current_response: str = Field(min_length=1)
    context: Optional[CoachingContext] = None


class QuestionGenerationRequest(BaseModel):
    target_role: str = Field(min_length=1)
    target_industry: str = Field(min_length=1)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    question_types: List[
        Literal["behavioral", "technical", "situational", "company-specific"]
    ] = Field(default=["behavioral", "technical", "situational"], min_length=1)
    count: int = Field(default=5, ge=1, le=20)


class FollowUpRequest(BaseModel):
    original_question: str = Field(min_length=1)
    user_response: str = Field(min_length=1)
    context: Optional[CoachingContext] = None
