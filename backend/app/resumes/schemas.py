from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
import uuid


class ResumeSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    original_name: str
    file_size: int
    mime_type: str
    analysis_score: Optional[float] = None
    ats_score: Optional[float] = None
    is_analyzed: bool
    analyzed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ResumeRead(ResumeSummary):
    extracted_text: str
    skills_found: List[str] = []
    skills_gaps: List[str] = []
    strengths: List[str] = []
    improvements: List[str] = []
    suggestions: Dict[str, Any] = {}
    analysis_provider: Optional[str] = None


class ResumeAnalysis(BaseModel):
    id: uuid.UUID
    analysis_score: Optional[float] = None
    ats_score: Optional[float] = None
    skills_found: List[str] = []
    skills_gaps: List[str] = []
    strengths: List[str] = []
    improvements: List[str] = []
    suggestions: Dict[str, Any] = {}
    analyzed_at: Optional[datetime] = None
    provider: Optional[str] = None


class ResumeUploadResponse(BaseModel):
    id: uuid.UUID
    original_name: str
    file_size: int
    mime_type: str
    uploaded_at: datetime
    extracted_text: str
    auto_analyzed: bool
    analysis_result: Optional[ResumeAnalysis] = None


class AnalyzeResumeRequest(BaseModel):
    target_role: Optional[str] = Field(default=None, max_length=200)
    target_industry: Optional[str] = Field(default=None, max_length=200)
