from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
import uuid

from app.core.config import settings
from app.courses.models import CourseCategory, CourseLevel


class CourseFilters(BaseModel):
    category: Optional[CourseCategory] = None
    level: Optional[CourseLevel] = None
    is_premium: Optional[bool] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(
        default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE
    )


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    short_description: Optional[str] = None
    level: CourseLevel = CourseLevel.BEGINNER
    category: CourseCategory = CourseCategory.INTERVIEW_PREP
    tags: List[str] = []
    estimated_hours: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    is_premium: bool = False
    is_published: bool = False


class ModuleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class LessonCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = ""
    duration: int = Field(default=0, ge=0)


class CourseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    short_description: Optional[str] = None
    level: CourseLevel
    category: CourseCategory
    tags: List[str] = []
    estimated_hours: float
    price: float
    is_premium: bool
    is_published: bool
    created_at: datetime


class ModuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    description: Optional[str] = None
    order_index: int


class LessonRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    module_id: uuid.UUID
    title: str
    content: str
    duration: int
    order_index: int


class LessonProgressUpdate(BaseModel):
    is_completed: bool
    time_spent: Optional[int] = Field(default=None, ge=0)


class LessonProgressRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    enrollment_id: uuid.UUID
    lesson_id: uuid.UUID
    is_completed: bool
    time_spent: int
    completed_at: Optional[datetime] = None


class LessonTimeSpent(BaseModel):
    time_spent: int = Field(gt=0, le=24 * 60 * 60)  # seconds since last report


class LessonNoteUpdate(BaseModel):
    content: str = Field(max_length=20000)


class LessonNoteRead(BaseModel):
    lesson_id: uuid.UUID
    content: str
    updated_at: Optional[datetime] = None
