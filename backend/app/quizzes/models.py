import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import DateTime, ForeignKey, JSON, UniqueConstraint, Uuid, text


class QuizStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class QuestionType(str, Enum):
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_SELECT = "MULTIPLE_SELECT"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    FILL_IN_BLANK = "FILL_IN_BLANK"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Quiz(SQLModel, table=True):
    __tablename__ = "quizzes"

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
    description: Optional[str] = Field(default=None)
    status: QuizStatus = Field(default=QuizStatus.DRAFT, index=True)
    passing_score: int = Field(default=70)  # percent
    max_attempts: int = Field(default=3)
    is_randomized: bool = Field(default=False)
    duration: Optional[int] = Field(default=None)  # minutes
    time_limit: bool = Field(default=False)
    show_results: bool = Field(default=True)
    allow_review: bool = Field(default=True)

    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )


class Question(SQLModel, table=True):
    __tablename__ = "questions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    quiz_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    text: str = Field(nullable=False)
    type: QuestionType = Field(default=QuestionType.SINGLE_CHOICE)
    options: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    # str for most types, List[str] for multi-select and multi-blank questions
    correct_answer: Any = Field(default=None, sa_column=Column(JSON, nullable=False))
    explanation: Optional[str] = Field(default=None)
    points: int = Field(default=1)
    order_index: int = Field(default=0)


class QuizAttempt(SQLModel, table=True):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    quiz_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )

    attempt_number: int = Field(default=1)
    score: Optional[int] = Field(default=None)
    max_score: int = Field(default=0)
    passed: bool = Field(default=False)
    time_spent: int = Field(default=0)  # seconds

    started_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
    # null while the attempt is in progress
    completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class QuizResponse(SQLModel, table=True):
    __tablename__ = "quiz_responses"
    __table_args__ = (
        UniqueConstraint(
            "attempt_id", "question_id", name="uq_quiz_response_attempt_question"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    attempt_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid,
            ForeignKey("quiz_attempts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    question_id: uuid.UUID = Field(
        sa_column=Column(
            Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
        )
    )
    answer: Any = Field(default=None, sa_column=Column(JSON))
    is_correct: bool = Field(default=False)
    points_earned: int = Field(default=0)
    time_spent: int = Field(default=0)  # seconds

    answered_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=text("CURRENT_TIMESTAMP"),
        ),
    )
