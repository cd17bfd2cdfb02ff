"""
Tests for the course catalog, enrollment and lesson progress endpoints
"""
import uuid

import pytest
import pytest_asyncio
from sqlmodel import select

from app.courses.models import Course, CourseCategory, Lesson

API = "/api/v1/courses"


@pytest_asyncio.fixture
async def extra_courses(db_session):
    db_session.add_all(
        [
            Course(
                title="React Hooks Deep Dive",
                description="State and effects",
                category=CourseCategory.FRONTEND,
                is_published=True,
            ),
            Course(
                title="Kubernetes for Interviews",
                description="Pods, services and deployments",
                category=CourseCategory.DEVOPS,
                is_premium=True,
                price=49,
                is_published=True,
            ),
            Course(title="Unreleased draft", description="", is_published=False),
        ]
    )
    await db_session.commit()


async def _lessons(db_session, module_id):
    result = await db_session.exec(
        select(Lesson).where(Lesson.module_id == module_id).order_by(Lesson.order_index)
    )
    return result.all()


@pytest.mark.asyncio
async def test_list_courses_only_published(
    client, student, course, extra_courses, auth_headers
):
    response = await client.get(f"{API}/", headers=auth_headers(student))
    assert response.status_code == 200
    data = response.json()

    titles = {c["title"] for c in data["courses"]}
    assert "Unreleased draft" not in titles
    assert data["pagination"]["total"] == 3

    system_design = next(c for c in data["courses"] if c["id"] == str(course.id))
    assert system_design["total_lessons"] == 2
    assert system_design["enrollment_count"] == 0


@pytest.mark.asyncio
async def test_list_courses_filters_and_pagination(
    client, student, course, extra_courses, auth_headers
):
    headers = auth_headers(student)

    frontend = await client.get(
        f"{API}/", params={"category": "FRONTEND"}, headers=headers
    )
    assert [c["title"] for c in frontend.json()["courses"]] == ["React Hooks Deep Dive"]

    search = await client.get(f"{API}/", params={"search": "KUBERNETES"}, headers=headers)
    assert search.json()["pagination"]["total"] == 1

    page = await client.get(f"{API}/", params={"page": 2, "limit": 2}, headers=headers)
    assert len(page.json()["courses"]) == 1
    assert page.json()["pagination"]["total_pages"] == 2

    invalid = await client.get(f"{API}/", params={"page": 0}, headers=headers)
    assert invalid.status_code == 422


@pytest.mark.asyncio
async def test_course_detail_includes_modules(client, student, course, quiz, auth_headers):
    response = await client.get(f"{API}/{course.id}", headers=auth_headers(student))
    assert response.status_code == 200
    data = response.json()

    assert len(data["modules"]) == 1
    module = data["modules"][0]
    assert [lesson["title"] for lesson in module["lessons"]] == [
        "Load balancing",
        "Caching",
    ]
    assert [q["title"] for q in module["quizzes"]] == ["Caching basics"]


@pytest.mark.asyncio
async def test_unknown_course_not_found(client, student, auth_headers):
    response = await client.get(f"{API}/{uuid.uuid4()}", headers=auth_headers(student))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_enroll_and_duplicate_enrollment(client, student, course, auth_headers):
    headers = auth_headers(student)

    response = await client.post(f"{API}/{course.id}/enroll", headers=headers)
    assert response.status_code == 201
    assert response.json()["success"] is True
    assert response.json()["enrollment"]["progress_percent"] == 0

    again = await client.post(f"{API}/{course.id}/enroll", headers=headers)
    assert again.status_code == 409

    status_response = await client.get(
        f"{API}/{course.id}/enrollment-status", headers=headers
    )
    assert status_response.json()["is_enrolled"] is True


@pytest.mark.asyncio
async def test_enroll_rejects_premium_and_unpublished(
    client, db_session, student, extra_courses, auth_headers
):
    headers = auth_headers(student)
    courses = {
        c.title: c for c in (await db_session.exec(select(Course))).all()
    }

    premium = await client.post(
        f"{API}/{courses['Kubernetes for Interviews'].id}/enroll", headers=headers
    )
    assert premium.status_code == 403

    draft = await client.post(
        f"{API}/{courses['Unreleased draft'].id}/enroll", headers=headers
    )
    assert draft.status_code == 403

    missing = await client.post(f"{API}/{uuid.uuid4()}/enroll", headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_lesson_progress_updates_course_progress(
    client, db_session, enrolled_student, course, module, auth_headers
):
    headers = auth_headers(enrolled_student)
    first, second = await _lessons(db_session, module.id)

    response = await client.patch(
        f"{API}/lessons/{first.id}/progress",
        json={"is_completed": True, "time_spent": 300},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["is_completed"] is True
    assert response.json()["time_spent"] == 300

    progress = await client.get(f"{API}/{course.id}/progress", headers=headers)
    assert progress.json()["progress"] == {
        "total_lessons": 2,
        "completed_lessons": 1,
        "progress_percent": 50.0,
    }
    assert progress.json()["enrollment"]["completed_at"] is None

    await client.patch(
        f"{API}/lessons/{second.id}/progress",
        json={"is_completed": True},
        headers=headers,
    )
    progress = await client.get(f"{API}/{course.id}/progress", headers=headers)
    assert progress.json()["progress"]["progress_percent"] == 100.0
    assert progress.json()["enrollment"]["completed_at"] is not None

    # unmarking a lesson reopens the course
    await client.patch(
        f"{API}/lessons/{second.id}/progress",
        json={"is_completed": False},
        headers=headers,
    )
    progress = await client.get(f"{API}/{course.id}/progress", headers=headers)
    assert progress.json()["progress"]["completed_lessons"] == 1
    assert progress.json()["enrollment"]["completed_at"] is None


@pytest.mark.asyncio
async def test_lesson_progress_requires_enrollment(
    client, db_session, student, module, auth_headers
):
    first, _ = await _lessons(db_session, module.id)
    response = await client.patch(
        f"{API}/lessons/{first.id}/progress",
        json={"is_completed": True},
        headers=auth_headers(student),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_my_courses_and_unenroll(
    client, enrolled_student, course, auth_headers
):
    headers = auth_headers(enrolled_student)

    mine = await client.get(f"{API}/my-courses", headers=headers)
    assert mine.status_code == 200
    assert mine.json()[0]["course"]["title"] == "System Design Interviews"
    assert mine.json()[0]["course"]["total_lessons"] == 2
    assert mine.json()[0]["course"]["completed_lessons"] == 0

    response = await client.delete(f"{API}/{course.id}/enroll", headers=headers)
    assert response.status_code == 200

    status_response = await client.get(
        f"{API}/{course.id}/enrollment-status", headers=headers
    )
    assert status_response.json() == {"is_enrolled": False, "enrollment": None}

    again = await client.delete(f"{API}/{course.id}/enroll", headers=headers)
    assert again.status_code == 404
