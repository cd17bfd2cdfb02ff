import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import DateTime, ForeignKey, JSON, Text, UniqueConstraint, Uuid, text


class CourseLevel(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class CourseCategory(str, Enum):
    FRONTEND = "FRONTEND"
    BACKEND = "BACKEND"
    FULLSTACK = "FULLSTACK"
    DATA_SCIENCE = "DATA_SCIENCE"
    DEVOPS = "DEVOPS"
    SOFT_SKILLS = "SOFT_SKILLS"
    INTERVIEW_PREP = "INTERVIEW_PREP"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Course(SQLModel, table=True):
    __tablename__ = "courses"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(nullable=False)
    description: str = Field(default="")
    short_description: Optional[str] = Field(default=None)
    level: CourseLevel = Field(default=CourseLevel.BEGINNER)
    category: CourseCategory = Field(default=CourseCategory.INTERVIEW_PREP, index=True)
    tags: List[str] = Field(default=[], sa_column=Column(JSON))
    estimated_hours: float = Field(default=0)
    price: float = Field(default=0)
    is_premium: bool = Field(default=False)
    is_published: bool = Field(default=False, index=True)

    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )


class CourseModule(SQLModel, table=True):
    __tablename__ = "course_modules"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    course_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    title: str = Field(nullable=False)
    description: Optional[str] = Field(default=None)
    order_index: int = Field(default=0)


class Lesson(SQLModel, table=True):
    __tablename__ = "lessons"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    module_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("course_modules.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    title: str = Field(nullable=False)
    content: str = Field(default="")
    duration: int = Field(default=0)  # minutes
    order_index: int = Field(default=0)


class Enrollment(SQLModel, table=True):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    course_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    progress_percent: float = Field(default=0)
    enrolled_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class LessonProgress(SQLModel, table=True):
    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint(
            "enrollment_id", "lesson_id", name="uq_lesson_progress_enrollment_lesson"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    enrollment_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    lesson_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False
        )
    )
    is_completed: bool = Field(default=False)
    time_spent: int = Field(default=0)  # seconds
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class LessonNote(SQLModel, table=True):
    __tablename__ = "lesson_notes"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_lesson_note_user_lesson"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    lesson_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False
        )
    )
    content: str = Field(default="", sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
            onupdate=_utcnow,
        ),
    )
