from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import select, col
from sqlmodel.ext.asyncio.session import AsyncSession

from app.auth.models import User
from app.courses.models import Course, Enrollment
from app.interviews.models import InterviewSession, InterviewStatus
from app.quizzes.models import Quiz, QuizAttempt
from app.resumes.models import Resume

TOTAL_TASKS = 20
WEEKLY_GOAL = 5
RECENT_PER_SOURCE = 3


def career_readiness(resumes: int, interviews: int, courses: int) -> int:
    return round(min(100, resumes * 15 + interviews * 20 + courses * 25 + 25))


def relative_time(moment: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    seconds = int((now - moment).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{seconds // 60} min ago"
    if seconds < 86400:
        return f"{seconds // 3600} hours ago"
    return f"{seconds // 86400} days ago"


def activity_streak(days: List[date], today: date) -> int:
    """Consecutive active days ending today (or yesterday if today is idle)"""
    active = set(days)
    cursor = today if today in active else today - timedelta(days=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


class DashboardService:
    """Per-user summary across resumes, interviews, courses and quizzes"""

    async def _count(self, statement, session: AsyncSession) -> int:
        return (await session.exec(statement)).one()

    async def _counts(self, user: User, session: AsyncSession) -> Dict[str, int]:
        return {
            "resumes": await self._count(
                select(func.count(Resume.id)).where(Resume.user_id == user.id),
                session,
            ),
            "resumes_analyzed": await self._count(
                select(func.count(Resume.id)).where(
                    Resume.user_id == user.id,
                    Resume.is_analyzed == True,  # noqa: E712
                ),
                session,
            ),
            "interviews": await self._count(
                select(func.count(InterviewSession.id)).where(
                    InterviewSession.user_id == user.id
                ),
                session,
            ),
            "interviews_completed": await self._count(
                select(func.count(InterviewSession.id)).where(
                    InterviewSession.user_id == user.id,
                    InterviewSession.status == InterviewStatus.COMPLETED,
                ),
                session,
            ),
            "courses_completed": await self._count(
                select(func.count(Enrollment.id)).where(
                    Enrollment.user_id == user.id,
                    col(Enrollment.completed_at).is_not(None),
                ),
                session,
            ),
            "quizzes_passed": await self._count(
                select(func.count(QuizAttempt.id)).where(
                    QuizAttempt.user_id == user.id,
                    QuizAttempt.passed == True,  # noqa: E712
                ),
                session,
            ),
        }

    async def stats(self, user: User, session: AsyncSession) -> Dict[str, Any]:
        counts = await self._counts(user, session)
        return {
            "resumes_analyzed": counts["resumes_analyzed"],
            "mock_interviews": counts["interviews"],
            "courses_completed": counts["courses_completed"],
            "quizzes_passed": counts["quizzes_passed"],
            "career_readiness": career_readiness(
                counts["resumes_analyzed"],
                counts["interviews"],
                counts["courses_completed"],
            ),
        }

    async def recent_activity(
        self, user: User, limit: int, session: AsyncSession
    ) -> List[Dict[str, Any]]:
        activities = []

        interviews = await session.exec(
            select(InterviewSession)
            .where(InterviewSession.user_id == user.id)
            .order_by(col(InterviewSession.created_at).desc())
            .limit(RECENT_PER_SOURCE)
        )
        for interview in interviews.all():
            kind = interview.type.value.replace("_", " ").lower()
            verb = "Completed" if interview.status == InterviewStatus.COMPLETED else "Scheduled"
            activities.append(
                {
                    "id": interview.id,
                    "type": "interview",
                    "action": f"{verb} {kind} interview",
                    "timestamp": interview.end_time or interview.created_at,
                }
            )

        resumes = await session.exec(
            select(Resume)
            .where(Resume.user_id == user.id)
            .order_by(col(Resume.created_at).desc())
            .limit(RECENT_PER_SOURCE)
        )
        for resume in resumes.all():
            verb = "Analyzed" if resume.is_analyzed else "Uploaded"
            activities.append(
                {
                    "id": resume.id,
                    "type": "resume",
                    "action": f"{verb} resume: {resume.original_name}",
                    "timestamp": resume.analyzed_at or resume.created_at,
                }
            )

        enrollments = await session.exec(
            select(Enrollment, Course.title)
            .join(Course, Course.id == Enrollment.course_id)
            .where(Enrollment.user_id == user.id)
            .order_by(col(Enrollment.enrolled_at).desc())
            .limit(RECENT_PER_SOURCE)
        )
        for enrollment, title in enrollments.all():
            activities.append(
                {
                    "id": enrollment.id,
                    "type": "course",
                    "action": f"Enrolled in course: {title}",
                    "timestamp": enrollment.enrolled_at,
                }
            )

        attempts = await session.exec(
            select(QuizAttempt, Quiz.title)
            .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
            .where(
                QuizAttempt.user_id == user.id,
                col(QuizAttempt.completed_at).is_not(None),
            )
            .order_by(col(QuizAttempt.completed_at).desc())
            .limit(RECENT_PER_SOURCE)
        )
        for attempt, title in attempts.all():
            verb = "Passed" if attempt.passed else "Attempted"
            activities.append(
                {
                    "id": attempt.id,
                    "type": "quiz",
                    "action": f"{verb} quiz: {title}",
                    "timestamp": attempt.completed_at,
                }
            )

        for activity in activities:
            if activity["timestamp"].tzinfo is None:
                activity["timestamp"] = activity["timestamp"].replace(tzinfo=timezone.utc)
        activities.sort(key=lambda activity: activity["timestamp"], reverse=True)

        now = datetime.now(timezone.utc)
        return [
            {**activity, "time": relative_time(activity["timestamp"], now)}
            for activity in activities[:limit]
        ]

    async def _activity_days(self, user: User, session: AsyncSession) -> List[date]:
        interviews = await session.exec(
            select(InterviewSession.created_at).where(InterviewSession.user_id == user.id)
        )
        attempts = await session.exec(
            select(QuizAttempt.completed_at).where(
                QuizAttempt.user_id == user.id,
                col(QuizAttempt.completed_at).is_not(None),
            )
        )
        return [moment.date() for moment in [*interviews.all(), *attempts.all()]]

    async def _achievements(
        self, user: User, counts: Dict[str, int], session: AsyncSession
    ) -> List[Dict[str, Any]]:
        achievements = []
        if counts["interviews"] >= 1:
            first = (
                await session.exec(
                    select(func.min(InterviewSession.created_at)).where(
                        InterviewSession.user_id == user.id
                    )
                )
            ).one()
            achievements.append(
                {
                    "id": "first_interview",
                    "title": "First Interview",
                    "description": "Completed your first mock interview",
                    "earned_at": first,
                }
            )
        if counts["interviews"] >= 10:
            achievements.append(
                {
                    "id": "interview_master",
                    "title": "Interview Master",
                    "description": "Completed 10 mock interviews",
                    "earned_at": None,
                }
            )
        if counts["courses_completed"] >= 1:
            achievements.append(
                {
                    "id": "first_course",
                    "title": "Course Graduate",
                    "description": "Finished every lesson of a course",
                    "earned_at": None,
                }
            )
        return achievements

    async def user_progress(self, user: User, session: AsyncSession) -> Dict[str, Any]:
        counts = await self._counts(user, session)
        today = datetime.now(timezone.utc).date()
        return {
            "completed_tasks": counts["resumes"]
            + counts["interviews_completed"]
            + counts["courses_completed"],
            "total_tasks": TOTAL_TASKS,
            "weekly_goal": WEEKLY_GOAL,
            "current_streak": activity_streak(
                await self._activity_days(user, session), today
            ),
            "achievements": await self._achievements(user, counts, session),
        }


dashboard_service = DashboardService()
