from app.auth.models import User
from app.courses.models import (
    Course,
    CourseModule,
    Lesson,
    Enrollment,
    LessonProgress,
    LessonNote,
)
from app.quizzes.models import Quiz, Question, QuizAttempt, QuizResponse
from app.speech.models import SpeechAnalysisResult
from app.resumes.models import Resume
from app.interviews.models import InterviewSession, InterviewResponse

__all__ = [
    "User",
    "Course",
    "CourseModule",
    "Lesson",
    "Enrollment",
    "LessonProgress",
    "LessonNote",
    "Quiz",
    "Question",
    "QuizAttempt",
    "QuizResponse",
    "SpeechAnalysisResult",
    "Resume",
    "InterviewSession",
    "InterviewResponse",
]
