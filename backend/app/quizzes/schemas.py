from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Any, List, Optional
from datetime import datetime
import uuid

from app.quizzes.models import QuestionType, QuizStatus


class QuestionBase(BaseModel):
    text: str = Field(min_length=1)
    type: QuestionType = QuestionType.SINGLE_CHOICE
    options: Optional[List[str]] = None
    points: int = Field(default=1, gt=0)


class QuestionCreate(QuestionBase):
    correct_answer: Any
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def validate_answer_shape(self):
        if self.correct_answer is None:
            raise ValueError("correct_answer is required")
        is_list = isinstance(self.correct_answer, list)
        if self.type == QuestionType.MULTIPLE_SELECT:
            if is_list and not self.correct_answer:
                raise ValueError("multi-select questions need at least one answer")
        elif self.type != QuestionType.FILL_IN_BLANK and is_list:
            raise ValueError(f"{self.type.value} questions take a single answer")
        if self.type in (
            QuestionType.SINGLE_CHOICE,
            QuestionType.MULTIPLE_SELECT,
        ) and not self.options:
            raise ValueError(f"{self.type.value} questions need options")
        return self


class QuestionPublic(QuestionBase):
    """Question as shown to a quiz taker, without the answer"""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID


class QuestionRead(QuestionPublic):
    quiz_id: uuid.UUID
    correct_answer: Any
    explanation: Optional[str] = None
    order_index: int


class QuizSettings(BaseModel):
    description: Optional[str] = None
    passing_score: int = Field(default=70, ge=0, le=100)
    max_attempts: int = Field(default=3, ge=1)
    is_randomized: bool = False
    duration: Optional[int] = Field(default=None, ge=1)
    time_limit: bool = False
    show_results: bool = True
    allow_review: bool = True


class QuizCreate(QuizSettings):
    title: str = Field(min_length=1, max_length=200)
    status: QuizStatus = QuizStatus.DRAFT
    questions: List[QuestionCreate] = []


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[QuizStatus] = None
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    is_randomized: Optional[bool] = None
    duration: Optional[int] = Field(default=None, ge=1)
    time_limit: Optional[bool] = None
    show_results: Optional[bool] = None
    allow_review: Optional[bool] = None

    @field_validator(
        "title",
        "status",
        "passing_score",
        "max_attempts",
        "is_randomized",
        "time_limit",
        "show_results",
        "allow_review",
    )
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class QuizRead(QuizSettings):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    module_id: uuid.UUID
    title: str
    status: QuizStatus
    created_at: datetime


class QuizDetail(QuizRead):
    questions: List[QuestionRead] = []


class AttemptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quiz_id: uuid.UUID
    attempt_number: int
    score: Optional[int] = None
    max_score: int
    passed: bool
    time_spent: int
    started_at: datetime
    completed_at: Optional[datetime] = None


class AttemptHistoryItem(AttemptSummary):
    quiz_title: str
    passing_score: int


class QuizOverview(QuizRead):
    question_count: int
    max_score: int
    recent_attempts: List[AttemptSummary] = []


class QuizForTaker(QuizRead):
    questions: List[QuestionPublic] = []
    max_score: int
    is_enrolled: bool
    user_attempts: int
    attempts_remaining: int
    can_attempt: bool
    recent_attempts: List[AttemptSummary] = []


class AttemptStarted(BaseModel):
    attempt_id: uuid.UUID
    quiz: QuizRead
    questions: List[QuestionPublic]
    attempt: AttemptSummary


class SubmitAnswer(BaseModel):
    answer: Any
    time_spent: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_answer_present(self):
        if self.answer is None or self.answer == "" or self.answer == []:
            raise ValueError("answer must not be empty")
        return self


class QuizResponseItem(SubmitAnswer):
    question_id: uuid.UUID


class SubmitQuizResponses(BaseModel):
    responses: List[QuizResponseItem]


class QuizResponseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    attempt_id: uuid.UUID
    question_id: uuid.UUID
    answer: Any
    is_correct: bool
    points_earned: int
    time_spent: int
    answered_at: datetime


class ResponseReview(BaseModel):
    question_id: uuid.UUID
    question_text: str
    user_answer: Any
    correct_answer: Any
    is_correct: bool
    points_earned: int
    explanation: Optional[str] = None


class AttemptResult(BaseModel):
    id: uuid.UUID
    attempt_number: int
    score: int
    max_score: int
    score_percentage: int
    passed: bool
    time_spent: int
    completed_at: datetime


class ResultQuizInfo(BaseModel):
    id: uuid.UUID
    title: str
    passing_score: int
    show_results: bool
    allow_review: bool


class ResultBreakdown(BaseModel):
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered_questions: int
    detailed_responses: Optional[List[ResponseReview]] = None


class AttemptOutcome(BaseModel):
    attempt: AttemptResult
    quiz: ResultQuizInfo
    results: Optional[ResultBreakdown] = None
