"""
Tests for the generative provider client and the /ai coaching endpoints.
Provider clients are replaced with in-memory fakes.
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.core.services.ai import AIProviderError, ai_service

API = "/api/v1/ai"


def _completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def _fake_client(*replies):
    """Client whose chat.completions.create yields the replies in order"""
    side_effect = [
        reply if isinstance(reply, Exception) else _completion(reply)
        for reply in replies
    ]
    create = AsyncMock(side_effect=side_effect)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.fixture
def providers(monkeypatch):
    def _configure(openrouter=None, openai=None):
        monkeypatch.setattr(ai_service, "openrouter_client", openrouter)
        monkeypatch.setattr(ai_service, "openai_client", openai)
        monkeypatch.setattr(ai_service, "client", openrouter or openai)

    return _configure


def test_extract_json_strips_fences_and_prose():
    fenced = '```json\n{"overall_score": 80}\n```'
    assert ai_service.extract_json(fenced) == {"overall_score": 80}

    chatty = 'Sure! Here it is: ["a", "b"] Hope that helps.'
    assert ai_service.extract_json(chatty) == ["a", "b"]

    with pytest.raises(ValueError):
        ai_service.extract_json("no json at all")


def test_available_providers_reflect_configuration(providers):
    providers(openai=_fake_client())
    status = {p["name"]: p["available"] for p in ai_service.get_available_providers()}
    assert status == {"openrouter": False, "openai": True}


@pytest.mark.asyncio
async def test_resume_analysis_without_providers_returns_sample():
    analysis = await ai_service.analyze_resume("Senior engineer, Python, Kubernetes")
    assert analysis["provider"] == "sample"
    assert 0 <= analysis["overall_score"] <= 100
    assert analysis["skills_found"]


@pytest.mark.asyncio
async def test_resume_analysis_clamps_scores_and_trims_lists(providers):
    reply = json.dumps(
        {
            "overall_score": 140,
            "ats_score": -5,
            "skills_found": [f"skill {i}" for i in range(30)],
            "skills_gaps": "not a list",
            "strengths": ["clear"],
            "suggestions": {"formatting": [str(i) for i in range(9)]},
        }
    )
    providers(openrouter=_fake_client(f"```json\n{reply}\n```"))

    analysis = await ai_service.analyze_resume("resume text")

    assert analysis["provider"] == "openrouter"
    assert analysis["overall_score"] == 100
    assert analysis["ats_score"] == 0
    assert len(analysis["skills_found"]) == 20
    assert analysis["skills_gaps"] == []
    assert len(analysis["suggestions"]["formatting"]) == 5
    assert analysis["suggestions"]["keywords"] == []


@pytest.mark.asyncio
async def test_resume_analysis_falls_back_to_second_provider(providers):
    failing = _fake_client(RuntimeError("rate limited"))
    backup = _fake_client('{"overall_score": 70, "ats_score": 65}')
    providers(openrouter=failing, openai=backup)

    analysis = await ai_service.analyze_resume("resume text")

    assert analysis["provider"] == "openai"
    assert analysis["overall_score"] == 70
    failing.chat.completions.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_resume_analysis_raises_when_every_provider_fails(providers):
    providers(
        openrouter=_fake_client(RuntimeError("down")),
        openai=_fake_client("this is not json"),
    )
    with pytest.raises(AIProviderError):
        await ai_service.analyze_resume("resume text")


@pytest.mark.asyncio
async def test_response_analysis_uses_fallback_without_providers():
    result = await ai_service.analyze_response(
        "I led the migration", "Tell me about a project", "Engineer", "Tech"
    )
    assert result["provider"] == "fallback"
    assert result["data"]["confidence"] == 75
    assert result["data"]["improvement_areas"]


@pytest.mark.asyncio
async def test_response_analysis_clamps_provider_scores(providers):
    providers(
        openrouter=_fake_client(
            '{"confidence": 130, "clarity": 80, "strengths": ["structure"]}'
        )
    )
    result = await ai_service.analyze_response("answer", "question", "Engineer", "Tech")
    assert result["provider"] == "openrouter"
    assert result["data"]["confidence"] == 100
    assert result["data"]["pace"] == 75
    assert result["data"]["strengths"] == ["structure"]


@pytest.mark.asyncio
async def test_generated_questions_are_normalized(providers):
    reply = json.dumps(
        [
            {"question": "Design a URL shortener", "type": "technical", "hints": ["scale"]},
            {"question": "Describe a conflict", "type": "behavioral"},
            {"question": "Extra question beyond count"},
        ]
    )
    providers(openrouter=_fake_client(reply))

    result = await ai_service.generate_interview_questions(
        "Backend Engineer", "Fintech", count=2
    )

    assert result["provider"] == "openrouter"
    assert result["count"] == 2
    first = result["questions"][0]
    assert first["question"] == "Design a URL shortener"
    assert first["role"] == "Backend Engineer"
    assert first["expected_duration"] == 120


@pytest.mark.asyncio
async def test_fallback_questions_fill_requested_count():
    result = await ai_service.generate_interview_questions(
        "Data Analyst", "Retail", count=7
    )
    assert result["provider"] == "fallback"
    assert [q["id"] for q in result["questions"]] == [f"fallback-{i}" for i in range(1, 8)]
    assert "Data Analyst" in result["questions"][0]["question"]


@pytest.mark.asyncio
async def test_follow_up_strips_code_fences(providers):
    providers(openrouter=_fake_client("```\nWhat metric did you move?\n```"))
    result = await ai_service.generate_follow_up("Tell me about X", "I did Y")
    assert result["follow_up_question"] == "What metric did you move?"


@pytest.mark.asyncio
async def test_coaching_endpoints_require_login(client):
    response = await client.post(
        f"{API}/coaching/instant-tips", json={"current_response": "Hello"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_instant_tips_endpoint_mentions_role(client, student, auth_headers):
    response = await client.post(
        f"{API}/coaching/instant-tips",
        json={
            "current_response": "I improved latency",
            "context": {"target_role": "SRE"},
        },
        headers=auth_headers(student),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["provider"] == "fallback"
    assert len(data["tips"]) == 3
    assert "SRE" in data["tips"][0]


@pytest.mark.asyncio
async def test_question_generation_endpoint_validates_input(
    client, student, auth_headers
):
    headers = auth_headers(student)
    invalid = await client.post(
        f"{API}/questions/generate",
        json={"target_role": "PM", "target_industry": "Health", "difficulty": "insane"},
        headers=headers,
    )
    assert invalid.status_code == 422

    response = await client.post(
        f"{API}/questions/generate",
        json={"target_role": "PM", "target_industry": "Health", "count": 3},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["count"] == 3


@pytest.mark.asyncio
async def test_real_time_and_follow_up_endpoints(client, student, auth_headers):
    headers = auth_headers(student)
    analysis = await client.post(
        f"{API}/analyze/real-time",
        json={
            "spoken_text": "I shipped the feature early",
            "current_question": "Tell me about a success",
            "target_role": "Engineer",
            "industry": "Tech",
        },
        headers=headers,
    )
    assert analysis.status_code == 200
    assert analysis.json()["data"]["confidence"] == 75

    follow_up = await client.post(
        f"{API}/questions/follow-up",
        json={"original_question": "Why us?", "user_response": "Great culture"},
        headers=headers,
    )
    assert follow_up.status_code == 200
    assert follow_up.json()["follow_up_question"].endswith("?")
