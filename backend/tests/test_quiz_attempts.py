"""
Tests for the quiz attempt lifecycle: start, answer, finish and results
"""
import uuid
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from app.api.services.quiz import quiz_service
from app.quizzes.models import Quiz, QuizAttempt, QuizResponse, QuizStatus

API = "/api/v1/quizzes"


async def _start(client, quiz_id, headers):
    response = await client.post(f"{API}/{quiz_id}/attempts", headers=headers)
    assert response.status_code == 201, response.text
    data = response.json()
    question_ids = {q["type"]: q["id"] for q in data["questions"]}
    return data["attempt_id"], question_ids


async def _answer(client, attempt_id, question_id, answer, headers, time_spent=None):
    return await client.patch(
        f"{API}/attempts/{attempt_id}/questions/{question_id}",
        json={"answer": answer, "time_spent": time_spent},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_start_attempt_requires_enrollment(client, student, quiz, auth_headers):
    """Users outside the course cannot start an attempt"""
    response = await client.post(
        f"{API}/{quiz.id}/attempts", headers=auth_headers(student)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_start_attempt_hides_answers(client, enrolled_student, quiz, auth_headers):
    response = await client.post(
        f"{API}/{quiz.id}/attempts", headers=auth_headers(enrolled_student)
    )
    assert response.status_code == 201
    data = response.json()

    assert data["attempt"]["attempt_number"] == 1
    assert data["attempt"]["max_score"] == 4
    assert data["attempt"]["score"] is None
    assert data["attempt"]["completed_at"] is None
    assert len(data["questions"]) == 3
    for question in data["questions"]:
        assert "correct_answer" not in question
        assert "explanation" not in question


@pytest.mark.asyncio
async def test_requires_authentication(client, quiz):
    response = await client.post(f"{API}/{quiz.id}/attempts")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_full_attempt_passes_with_all_correct(
    client, enrolled_student, quiz, auth_headers
):
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)

    first = await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers, 10)
    assert first.status_code == 200
    assert first.json()["is_correct"] is True
    assert first.json()["points_earned"] == 2

    await _answer(
        client, attempt_id, ids["MULTIPLE_SELECT"], ["Memcached", "Redis"], headers, 5
    )
    await _answer(client, attempt_id, ids["SHORT_ANSWER"], " etag ", headers, 7)

    response = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)
    assert response.status_code == 200
    outcome = response.json()

    assert outcome["attempt"]["score"] == 4
    assert outcome["attempt"]["score_percentage"] == 100
    assert outcome["attempt"]["passed"] is True
    assert outcome["attempt"]["time_spent"] == 22
    assert outcome["results"]["correct_answers"] == 3
    assert outcome["results"]["incorrect_answers"] == 0
    assert outcome["results"]["unanswered_questions"] == 0
    assert len(outcome["results"]["detailed_responses"]) == 3


@pytest.mark.asyncio
async def test_resubmitting_answer_replaces_previous(
    client, enrolled_student, quiz, auth_headers
):
    """A later answer to the same question overwrites the earlier one"""
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)

    correct = await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers)
    wrong = await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "FIFO", headers)

    assert wrong.status_code == 200
    assert wrong.json()["id"] == correct.json()["id"]
    assert wrong.json()["is_correct"] is False
    assert wrong.json()["points_earned"] == 0

    response = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)
    outcome = response.json()
    assert outcome["attempt"]["score"] == 0
    assert outcome["results"]["incorrect_answers"] == 1
    assert outcome["results"]["unanswered_questions"] == 2


@pytest.mark.asyncio
async def test_partial_score_below_passing(client, enrolled_student, quiz, auth_headers):
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)

    await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers)
    await _answer(client, attempt_id, ids["MULTIPLE_SELECT"], ["Redis"], headers)

    response = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)
    outcome = response.json()

    assert outcome["attempt"]["score"] == 2
    assert outcome["attempt"]["score_percentage"] == 50
    assert outcome["attempt"]["passed"] is False
    assert outcome["results"]["correct_answers"] == 1
    assert outcome["results"]["incorrect_answers"] == 1
    assert outcome["results"]["unanswered_questions"] == 1


@pytest.mark.asyncio
async def test_completed_attempt_is_frozen(client, enrolled_student, quiz, auth_headers):
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)
    await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers)
    finished = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)
    assert finished.json()["attempt"]["score"] == 2

    answer = await _answer(client, attempt_id, ids["SHORT_ANSWER"], "ETag", headers)
    assert answer.status_code == 400

    finish_again = await client.post(
        f"{API}/attempts/{attempt_id}/finish", headers=headers
    )
    assert finish_again.status_code == 400

    results = await client.get(f"{API}/attempts/{attempt_id}/results", headers=headers)
    stored = results.json()["attempt"]
    assert stored["score"] == 2
    assert stored["completed_at"] == finished.json()["attempt"]["completed_at"]


@pytest.mark.asyncio
async def test_empty_answer_is_rejected(client, enrolled_student, quiz, auth_headers):
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)

    response = await _answer(client, attempt_id, ids["SHORT_ANSWER"], "", headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_question_from_another_quiz_is_not_found(
    client, enrolled_student, quiz, auth_headers
):
    headers = auth_headers(enrolled_student)
    attempt_id, _ = await _start(client, quiz.id, headers)

    response = await _answer(client, attempt_id, uuid.uuid4(), "LRU", headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_max_attempts_enforced(client, enrolled_student, quiz, auth_headers):
    headers = auth_headers(enrolled_student)
    for _ in range(quiz.max_attempts):
        await _start(client, quiz.id, headers)

    response = await client.post(f"{API}/{quiz.id}/attempts", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Maximum attempts (2) reached"

    attempts = await client.get(f"{API}/{quiz.id}/attempts", headers=headers)
    assert [a["attempt_number"] for a in attempts.json()] == [2, 1]


@pytest.mark.asyncio
async def test_attempt_numbers_are_sequential(
    client, enrolled_student, quiz, auth_headers
):
    headers = auth_headers(enrolled_student)
    first = await client.post(f"{API}/{quiz.id}/attempts", headers=headers)
    second = await client.post(f"{API}/{quiz.id}/attempts", headers=headers)

    assert first.json()["attempt"]["attempt_number"] == 1
    assert second.json()["attempt"]["attempt_number"] == 2


@pytest.mark.asyncio
async def test_other_users_cannot_touch_attempt(
    client, enrolled_student, other_student, quiz, auth_headers
):
    attempt_id, ids = await _start(client, quiz.id, auth_headers(enrolled_student))
    intruder = auth_headers(other_student)

    answer = await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", intruder)
    assert answer.status_code == 404

    results = await client.get(f"{API}/attempts/{attempt_id}/results", headers=intruder)
    assert results.status_code == 404


@pytest.mark.asyncio
async def test_results_require_completed_attempt(
    client, enrolled_student, quiz, auth_headers
):
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)

    pending = await client.get(f"{API}/attempts/{attempt_id}/results", headers=headers)
    assert pending.status_code == 400

    await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers)
    await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)

    results = await client.get(f"{API}/attempts/{attempt_id}/results", headers=headers)
    assert results.status_code == 200
    review = results.json()["results"]["detailed_responses"][0]
    assert review["correct_answer"] == "LRU"
    assert review["explanation"].startswith("LRU evicts")


@pytest.mark.asyncio
async def test_submit_attempt_scores_all_answers(
    client, enrolled_student, quiz, auth_headers
):
    """Bulk submission ignores answers to questions outside the quiz"""
    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)

    response = await client.post(
        f"{API}/attempts/{attempt_id}/submit",
        json={
            "responses": [
                {"question_id": ids["SINGLE_CHOICE"], "answer": "LRU"},
                {"question_id": ids["MULTIPLE_SELECT"], "answer": ["Redis", "Memcached"]},
                {"question_id": ids["SHORT_ANSWER"], "answer": "ETag"},
                {"question_id": str(uuid.uuid4()), "answer": "ignored"},
            ]
        },
        headers=headers,
    )
    assert response.status_code == 200
    outcome = response.json()
    assert outcome["attempt"]["score"] == 4
    assert outcome["attempt"]["passed"] is True
    assert outcome["results"]["total_questions"] == 3


@pytest.mark.asyncio
async def test_hidden_results_and_review(
    client, db_session, enrolled_student, quiz, auth_headers
):
    quiz_row = await db_session.get(Quiz, quiz.id)
    quiz_row.show_results = False
    await db_session.commit()

    headers = auth_headers(enrolled_student)
    attempt_id, _ = await _start(client, quiz.id, headers)
    response = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)

    outcome = response.json()
    assert outcome["results"] is None
    assert outcome["attempt"]["score"] == 0


@pytest.mark.asyncio
async def test_review_disabled_keeps_breakdown(
    client, db_session, enrolled_student, quiz, auth_headers
):
    quiz_row = await db_session.get(Quiz, quiz.id)
    quiz_row.allow_review = False
    await db_session.commit()

    headers = auth_headers(enrolled_student)
    attempt_id, ids = await _start(client, quiz.id, headers)
    await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers)
    response = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)

    results = response.json()["results"]
    assert results["correct_answers"] == 1
    assert results["detailed_responses"] is None


@pytest.mark.asyncio
async def test_draft_quiz_is_not_available(
    client, db_session, enrolled_student, quiz, auth_headers
):
    quiz_row = await db_session.get(Quiz, quiz.id)
    quiz_row.status = QuizStatus.DRAFT
    await db_session.commit()

    headers = auth_headers(enrolled_student)
    assert (await client.get(f"{API}/{quiz.id}", headers=headers)).status_code == 404
    start = await client.post(f"{API}/{quiz.id}/attempts", headers=headers)
    assert start.status_code == 404


@pytest.mark.asyncio
async def test_get_quiz_reports_attempt_allowance(
    client, enrolled_student, quiz, auth_headers
):
    headers = auth_headers(enrolled_student)
    await _start(client, quiz.id, headers)

    response = await client.get(f"{API}/{quiz.id}", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["is_enrolled"] is True
    assert data["user_attempts"] == 1
    assert data["attempts_remaining"] == 1
    assert data["can_attempt"] is True
    assert data["max_score"] == 4
    assert all("correct_answer" not in q for q in data["questions"])


@pytest.mark.asyncio
async def test_module_quizzes_and_history(
    client, enrolled_student, module, quiz, auth_headers
):
    headers = auth_headers(enrolled_student)
    attempt_id, _ = await _start(client, quiz.id, headers)
    await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)

    quizzes = await client.get(f"{API}/modules/{module.id}", headers=headers)
    assert quizzes.status_code == 200
    overview = quizzes.json()[0]
    assert overview["question_count"] == 3
    assert len(overview["recent_attempts"]) == 1

    history = await client.get(f"{API}/history", headers=headers)
    assert history.status_code == 200
    assert history.json()[0]["quiz_title"] == "Caching basics"
    assert history.json()[0]["passing_score"] == 70

    filtered = await client.get(
        f"{API}/history", params={"quiz_id": str(uuid.uuid4())}, headers=headers
    )
    assert filtered.json() == []


@pytest.mark.asyncio
async def test_conflicting_start_returns_409(
    client, db_session, enrolled_student, quiz, auth_headers
):
    # a concurrent start already claimed attempt number 2
    db_session.add(
        QuizAttempt(
            user_id=enrolled_student.id, quiz_id=quiz.id, attempt_number=2, max_score=4
        )
    )
    await db_session.commit()

    response = await client.post(
        f"{API}/{quiz.id}/attempts", headers=auth_headers(enrolled_student)
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_answer_racing_finish_is_refused(db_session, enrolled_student, quiz):
    started = await quiz_service.start_attempt(enrolled_student, quiz.id, db_session)
    attempt_id = started["attempt_id"]
    question_id = started["questions"][0]["id"]

    real_commit = db_session.commit
    commits = []

    async def commit_after_concurrent_finish():
        commits.append(True)
        if len(commits) == 1:
            # another request finishes the attempt, then our insert collides
            await db_session.rollback()
            await db_session.exec(
                update(QuizAttempt)
                .where(QuizAttempt.id == attempt_id)
                .values(completed_at=datetime.now(timezone.utc), score=0, passed=False)
            )
            await real_commit()
            raise IntegrityError("INSERT INTO quiz_responses", {}, Exception("UNIQUE"))
        await real_commit()

    with patch.object(db_session, "commit", commit_after_concurrent_finish):
        with pytest.raises(HTTPException) as exc_info:
            await quiz_service.answer_question(
                enrolled_student, attempt_id, question_id, "LRU", None, db_session
            )

    assert exc_info.value.status_code == 400
    responses = await db_session.exec(
        select(QuizResponse).where(QuizResponse.attempt_id == attempt_id)
    )
    assert responses.all() == []


@pytest.mark.asyncio
async def test_questions_cannot_be_added_during_open_attempt(
    client, admin, enrolled_student, quiz, auth_headers
):
    attempt_id, ids = await _start(client, quiz.id, auth_headers(enrolled_student))
    new_question = {
        "text": "Which status code means Not Modified?",
        "type": "SHORT_ANSWER",
        "correct_answer": "304",
        "points": 3,
    }

    refused = await client.post(
        f"/api/v1/admin/quizzes/{quiz.id}/questions",
        json=new_question,
        headers=auth_headers(admin),
    )
    assert refused.status_code == 409

    headers = auth_headers(enrolled_student)
    await _answer(client, attempt_id, ids["SINGLE_CHOICE"], "LRU", headers)
    await _answer(client, attempt_id, ids["MULTIPLE_SELECT"], ["Redis", "Memcached"], headers)
    await _answer(client, attempt_id, ids["SHORT_ANSWER"], "ETag", headers)
    finished = await client.post(f"{API}/attempts/{attempt_id}/finish", headers=headers)
    assert finished.json()["attempt"]["score_percentage"] == 100

    added = await client.post(
        f"/api/v1/admin/quizzes/{quiz.id}/questions",
        json=new_question,
        headers=auth_headers(admin),
    )
    assert added.status_code == 201
