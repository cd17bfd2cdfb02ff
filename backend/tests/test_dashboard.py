"""
Tests for the per-user dashboard summary
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.api.services.dashboard import activity_streak, career_readiness, relative_time
from app.courses.models import Enrollment
from app.interviews.models import InterviewSession, InterviewStatus, InterviewType
from app.quizzes.models import QuizAttempt
from app.resumes.models import Resume

API = "/api/v1/dashboard"


def _resume(user_id, name="cv.pdf", analyzed=True, created_at=None):
    created_at = created_at or datetime.now(timezone.utc)
    return Resume(
        user_id=user_id,
        file_name=f"resumes/{name}",
        original_name=name,
        file_path=f"uploads/resumes/{name}",
        mime_type="application/pdf",
        extracted_text="text",
        is_analyzed=analyzed,
        analyzed_at=created_at if analyzed else None,
        created_at=created_at,
    )


def test_career_readiness_is_capped():
    assert career_readiness(0, 0, 0) == 25
    assert career_readiness(1, 1, 1) == 85
    assert career_readiness(3, 4, 2) == 100


def test_activity_streak_counts_consecutive_days():
    today = date(2026, 3, 10)
    assert activity_streak([], today) == 0
    assert activity_streak([today, today - timedelta(days=1), today - timedelta(days=2)], today) == 3
    # idle today still keeps yesterday's run alive
    assert activity_streak([today - timedelta(days=1), today - timedelta(days=2)], today) == 2
    assert activity_streak([today, today - timedelta(days=2)], today) == 1


def test_relative_time_buckets():
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    assert relative_time(now - timedelta(seconds=10), now) == "Just now"
    assert relative_time(now - timedelta(minutes=5), now) == "5 min ago"
    assert relative_time(now - timedelta(hours=3), now) == "3 hours ago"
    assert relative_time(now - timedelta(days=2), now) == "2 days ago"


@pytest.mark.asyncio
async def test_new_user_dashboard(client, student, auth_headers):
    headers = auth_headers(student)
    stats = (await client.get(f"{API}/stats", headers=headers)).json()
    assert stats == {
        "resumes_analyzed": 0,
        "mock_interviews": 0,
        "courses_completed": 0,
        "quizzes_passed": 0,
        "career_readiness": 25,
    }
    assert (await client.get(f"{API}/recent-activity", headers=headers)).json() == []

    progress = (await client.get(f"{API}/user-progress", headers=headers)).json()
    assert progress["completed_tasks"] == 0
    assert progress["current_streak"] == 0
    assert progress["achievements"] == []


@pytest.mark.asyncio
async def test_dashboard_reflects_activity(
    client, db_session, student, other_student, course, quiz, auth_headers
):
    now = datetime.now(timezone.utc)
    db_session.add_all(
        [
            _resume(student.id, "old.pdf", created_at=now - timedelta(days=3)),
            _resume(student.id, "draft.pdf", analyzed=False, created_at=now - timedelta(hours=2)),
            InterviewSession(
                user_id=student.id,
                title="Mock",
                type=InterviewType.FULL_MOCK,
                status=InterviewStatus.COMPLETED,
                created_at=now - timedelta(days=1),
                end_time=now - timedelta(minutes=30),
            ),
            InterviewSession(user_id=student.id, title="Later", created_at=now),
            Enrollment(
                user_id=student.id,
                course_id=course.id,
                progress_percent=100,
                enrolled_at=now - timedelta(days=5),
                completed_at=now - timedelta(days=1),
            ),
            QuizAttempt(
                user_id=student.id,
                quiz_id=quiz.id,
                score=4,
                max_score=4,
                passed=True,
                completed_at=now - timedelta(minutes=10),
            ),
            _resume(other_student.id, "theirs.pdf"),
        ]
    )
    await db_session.commit()
    headers = auth_headers(student)

    stats = (await client.get(f"{API}/stats", headers=headers)).json()
    assert stats["resumes_analyzed"] == 1
    assert stats["mock_interviews"] == 2
    assert stats["courses_completed"] == 1
    assert stats["quizzes_passed"] == 1
    assert stats["career_readiness"] == 100

    activity = (
        await client.get(f"{API}/recent-activity", params={"limit": 4}, headers=headers)
    ).json()
    assert [a["type"] for a in activity] == ["interview", "quiz", "interview", "resume"]
    assert activity[0]["time"] == "Just now"
    assert activity[1]["action"] == "Passed quiz: Caching basics"
    assert activity[2]["action"] == "Completed full mock interview"
    assert activity[3]["action"] == "Uploaded resume: draft.pdf"

    progress = (await client.get(f"{API}/user-progress", headers=headers)).json()
    # two resumes, one completed interview, one completed course
    assert progress["completed_tasks"] == 4
    assert progress["current_streak"] == 2
    assert [a["id"] for a in progress["achievements"]] == ["first_interview", "first_course"]
