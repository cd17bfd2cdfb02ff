"""
Tests for resume upload, text extraction, storage and AI analysis
"""
import io
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock

import docx
import fitz
import pytest
from sqlmodel import select

from app.core.config import settings
from app.core.services.ai import ai_service
from app.core.services.file import DOCX_TYPE, PDF_TYPE, file_service
from app.resumes.models import Resume

API = "/api/v1/resumes"

RESUME_TEXT = (
    "Jane Doe\nBackend engineer with 6 years of Python, PostgreSQL and Kubernetes.\n"
    "Led a team of four to cut p99 latency by 40%."
)


def _upload(text=RESUME_TEXT, name="cv.txt", content_type="text/plain"):
    payload = text.encode() if isinstance(text, str) else text
    return {"file": (name, payload, content_type)}


@pytest.fixture
def failing_provider(monkeypatch):
    create = AsyncMock(side_effect=RuntimeError("provider down"))
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    monkeypatch.setattr(ai_service, "openrouter_client", client)
    monkeypatch.setattr(ai_service, "client", client)
    return create


def test_extracts_text_from_pdf_and_docx():
    pdf = fitz.open()
    page = pdf.new_page()
    page.insert_text((72, 72), "Kubernetes and Terraform")
    pdf_bytes = pdf.tobytes()
    pdf.close()

    document = docx.Document()
    document.add_paragraph("Managed a team of five")
    buffer = io.BytesIO()
    document.save(buffer)

    assert "Kubernetes" in file_service.extract_text(pdf_bytes, PDF_TYPE)
    assert "team of five" in file_service.extract_text(buffer.getvalue(), DOCX_TYPE)
    assert file_service.extract_text(b"%PDF-broken", PDF_TYPE) == ""


@pytest.mark.asyncio
async def test_upload_stores_file_and_auto_analyzes(client, student, auth_headers):
    headers = auth_headers(student)
    response = await client.post(f"{API}/upload", files=_upload(), headers=headers)
    assert response.status_code == 201
    data = response.json()

    assert data["original_name"] == "cv.txt"
    assert data["file_size"] == len(RESUME_TEXT.encode())
    assert data["extracted_text"] == RESUME_TEXT
    assert data["auto_analyzed"] is True
    assert data["analysis_result"]["provider"] == "sample"

    listing = await client.get(f"{API}/", headers=headers)
    assert [r["id"] for r in listing.json()] == [data["id"]]
    assert listing.json()[0]["is_analyzed"] is True

    detail = await client.get(f"{API}/{data['id']}", headers=headers)
    assert detail.json()["extracted_text"] == RESUME_TEXT
    assert detail.json()["skills_found"]

    stored = os.listdir(os.path.join(file_service.upload_dir, "resumes", str(student.id)))
    assert len(stored) == 1


@pytest.mark.asyncio
async def test_upload_without_analysis_and_long_preview(client, student, auth_headers):
    long_text = "Python " * 200
    response = await client.post(
        f"{API}/upload",
        files=_upload(long_text),
        data={"auto_analyze": "false"},
        headers=auth_headers(student),
    )
    data = response.json()
    assert data["auto_analyzed"] is False
    assert data["analysis_result"] is None
    assert data["extracted_text"].endswith("...")
    assert len(data["extracted_text"]) == settings.RESUME_PREVIEW_CHARS + 3


@pytest.mark.asyncio
async def test_upload_validation(client, student, auth_headers, monkeypatch):
    headers = auth_headers(student)

    wrong_type = await client.post(
        f"{API}/upload", files=_upload(name="cv.png", content_type="image/png"), headers=headers
    )
    assert wrong_type.status_code == 400

    fake_pdf = await client.post(
        f"{API}/upload",
        files=_upload(b"not really a pdf", name="cv.pdf", content_type=PDF_TYPE),
        headers=headers,
    )
    assert fake_pdf.status_code == 400
    assert fake_pdf.json()["detail"] == "File does not match expected type"

    empty = await client.post(f"{API}/upload", files=_upload(""), headers=headers)
    assert empty.status_code == 400

    monkeypatch.setattr(settings, "MAX_RESUME_SIZE", 16)
    too_big = await client.post(f"{API}/upload", files=_upload(), headers=headers)
    assert too_big.status_code == 400

    assert (await client.get(f"{API}/", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_resumes_are_private(client, student, other_student, auth_headers):
    upload = await client.post(
        f"{API}/upload", files=_upload(), headers=auth_headers(student)
    )
    resume_id = upload.json()["id"]
    intruder = auth_headers(other_student)

    assert (await client.get(f"{API}/{resume_id}", headers=intruder)).status_code == 404
    assert (
        await client.get(f"{API}/{resume_id}/download", headers=intruder)
    ).status_code == 404
    assert (
        await client.post(f"{API}/{resume_id}/analyze", headers=intruder)
    ).status_code == 404
    assert (await client.delete(f"{API}/{resume_id}", headers=intruder)).status_code == 404
    assert (await client.get(f"{API}/", headers=intruder)).json() == []


@pytest.mark.asyncio
async def test_download_and_delete(client, db_session, student, auth_headers):
    headers = auth_headers(student)
    upload = await client.post(f"{API}/upload", files=_upload(), headers=headers)
    resume_id = upload.json()["id"]

    download = await client.get(f"{API}/{resume_id}/download", headers=headers)
    assert download.status_code == 200
    assert download.content == RESUME_TEXT.encode()
    assert "cv.txt" in download.headers["content-disposition"]

    resume = (await db_session.exec(select(Resume))).one()
    path = file_service.path_for(resume.file_name)
    assert os.path.exists(path)

    deleted = await client.delete(f"{API}/{resume_id}", headers=headers)
    assert deleted.status_code == 200
    assert not os.path.exists(path)
    assert (await client.get(f"{API}/{resume_id}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_provider_failure_keeps_upload_and_reports_502(
    client, student, auth_headers, failing_provider
):
    headers = auth_headers(student)
    upload = await client.post(f"{API}/upload", files=_upload(), headers=headers)
    assert upload.status_code == 201
    assert upload.json()["auto_analyzed"] is False
    resume_id = upload.json()["id"]

    analyze = await client.post(f"{API}/{resume_id}/analyze", headers=headers)
    assert analyze.status_code == 502
    assert analyze.json()["detail"].startswith("Analysis failed")

    detail = await client.get(f"{API}/{resume_id}", headers=headers)
    assert detail.json()["is_analyzed"] is False


@pytest.mark.asyncio
async def test_analyze_and_retry_for_target_role(
    client, student, auth_headers, monkeypatch
):
    headers = auth_headers(student)
    upload = await client.post(
        f"{API}/upload",
        files=_upload(),
        data={"auto_analyze": "false"},
        headers=headers,
    )
    resume_id = upload.json()["id"]

    analyze_resume = AsyncMock(wraps=ai_service.analyze_resume)
    monkeypatch.setattr(ai_service, "analyze_resume", analyze_resume)

    analyzed = await client.post(
        f"{API}/{resume_id}/analyze",
        json={"target_role": "Staff Engineer", "target_industry": "Fintech"},
        headers=headers,
    )
    assert analyzed.status_code == 200
    assert analyzed.json()["analysis_score"] == 75
    analyze_resume.assert_awaited_with(RESUME_TEXT, "Staff Engineer", "Fintech")

    retried = await client.post(f"{API}/{resume_id}/retry-analysis", headers=headers)
    assert retried.status_code == 200
    assert retried.json()["provider"] == "sample"
    assert analyze_resume.await_count == 2


@pytest.mark.asyncio
async def test_analyze_requires_extracted_text(client, db_session, student, auth_headers):
    resume = Resume(
        user_id=student.id,
        file_name="resumes/scan.pdf",
        original_name="scan.pdf",
        file_path="uploads/resumes/scan.pdf",
        mime_type=PDF_TYPE,
        extracted_text="",
    )
    db_session.add(resume)
    await db_session.commit()

    response = await client.post(
        f"{API}/{resume.id}/analyze", headers=auth_headers(student)
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "No text extracted from resume"


@pytest.mark.asyncio
async def test_provider_status(client, student, auth_headers):
    response = await client.get(f"{API}/providers", headers=auth_headers(student))
    assert response.status_code == 200
    assert {p["name"] for p in response.json()} == {"openrouter", "openai"}
    assert not any(p["available"] for p in response.json())
