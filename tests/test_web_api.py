from __future__ import annotations

import dataclasses
import io
import json

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from legalitea.services.ai_service import AIService, REQUIRED_ANALYSIS_KEYS

from conftest import VALID_ANALYSIS


def _assert_complete_analysis(payload: dict) -> None:
    for key in REQUIRED_ANALYSIS_KEYS:
        assert payload.get(key), f"missing {key}"


# --- /api/analyze ---
def test_analyze_returns_model_json(client, stub_model) -> None:
    stub_model.queue(VALID_ANALYSIS)

    response = client.post("/api/analyze", json={"text": "This lease runs for one year.", "language": "es"})

    assert response.status_code == 200
    assert response.json() == VALID_ANALYSIS
    assert "Spanish" in stub_model.prompts[0]
    assert stub_model.stream_flags == [True]


def test_analyze_strips_markdown_fence(client, stub_model) -> None:
    stub_model.queue("```json\n" + json.dumps(VALID_ANALYSIS) + "\n```")

    response = client.post("/api/analyze", json={"text": "Agreement text"})

    assert response.status_code == 200
    assert response.json()["summary"]["tldr"] == "A one-year lease."


def test_analyze_falls_back_when_model_raises(client, stub_model) -> None:
    stub_model.queue(RuntimeError("Gemini API error: quota exceeded"))

    response = client.post("/api/analyze", json={"text": "The tenant shall pay rent monthly."})

    assert response.status_code == 200
    payload = response.json()
    _assert_complete_analysis(payload)
    assert payload["summary"]["keyPoints"][0] == "Document type: LEASE"
    assert payload["summary"]["confidence"] == 0.75


def test_analyze_falls_back_on_malformed_json(client, stub_model) -> None:
    stub_model.queue("Sorry, I cannot help with that.")

    response = client.post("/api/analyze", json={"text": "Some text", "documentType": "will"})

    assert response.status_code == 200
    payload = response.json()
    _assert_complete_analysis(payload)
    assert "This will contains 2 words" in payload["summary"]["tldr"]


def test_analyze_falls_back_when_required_fields_missing(client, stub_model) -> None:
    incomplete = dict(VALID_ANALYSIS)
    incomplete.pop("actionPlan")
    stub_model.queue(incomplete)

    response = client.post("/api/analyze", json={"text": "Confidential information shall not be shared."})

    assert response.status_code == 200
    payload = response.json()
    _assert_complete_analysis(payload)
    assert payload["summary"]["keyPoints"][0] == "Document type: NDA"


def test_analyze_without_api_key_uses_fallback(make_app) -> None:
    client = TestClient(make_app(ai_service=AIService(api_key=None)))

    response = client.post("/api/analyze", json={"text": "A service contract."})

    assert response.status_code == 200
    _assert_complete_analysis(response.json())


def test_analyze_accepts_text_just_under_limit(client, stub_model) -> None:
    stub_model.queue(VALID_ANALYSIS)

    response = client.post("/api/analyze", json={"text": "a" * 49_999})

    assert response.status_code == 200


@pytest.mark.parametrize("length", [50_000, 50_001, 60_000])
def test_analyze_rejects_text_at_or_over_limit(client, stub_model, length) -> None:
    response = client.post("/api/analyze", json={"text": "a" * length})

    assert response.status_code == 400
    assert response.json()["error"] == "Text too long. Maximum 50,000 characters allowed."
    assert stub_model.prompts == []


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, "Text is required and must be a string"),
        ({"text": 42}, "Text is required and must be a string"),
        ({"text": ""}, "Text cannot be empty"),
        ({"text": "  \n\t "}, "Text cannot be empty"),
        ({"text": "ok", "language": 7}, "Language must be a string"),
        ({"text": "ok", "documentType": ["lease"]}, "Document type must be a string"),
    ],
)
def test_analyze_validation_errors(client, body, message) -> None:
    response = client.post("/api/analyze", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == message
    assert message in response.json()["details"]


def test_invalid_json_body_is_rejected(client) -> None:
    response = client.post(
        "/api/analyze", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON in request body"


def test_fallback_disabled_surfaces_503(make_app, stub_model) -> None:
    service = AIService(model=stub_model, fallback_enabled=False)
    client = TestClient(make_app(ai_service=service))
    stub_model.queue(RuntimeError("connection reset"))

    response = client.post("/api/analyze", json={"text": "Agreement"})

    assert response.status_code == 503
    assert "Gemini API error during analysis" in response.json()["error"]


# --- Other AI endpoints ---
def test_explain_term(client, stub_model) -> None:
    stub_model.queue({"term": "Indemnify", "definition": "Cover someone's losses", "category": "legal"})

    response = client.post(
        "/api/explain-term", json={"term": "Indemnify", "context": "Tenant shall indemnify Landlord", "language": "fr"}
    )

    assert response.status_code == 200
    assert response.json()["definition"] == "Cover someone's losses"
    assert "Tenant shall indemnify Landlord" in stub_model.prompts[0]
    assert "French" in stub_model.prompts[0]


def test_explain_term_fallback(client, stub_model) -> None:
    stub_model.queue(RuntimeError("timeout"))

    response = client.post("/api/explain-term", json={"term": "Escrow"})

    assert response.status_code == 200
    assert response.json() == {
        "term": "Escrow",
        "definition": "This appears to be a legal term. Please consult a legal professional for accurate definition.",
        "category": "legal",
        "complexity": "intermediate",
    }


def test_explain_term_rejects_blank_term(client) -> None:
    response = client.post("/api/explain-term", json={"term": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "Term cannot be empty"


def test_generate_scenarios(client, stub_model) -> None:
    stub_model.queue({"scenarios": [{"id": "scenario_1", "title": "Late rent"}]})

    response = client.post("/api/generate-scenarios", json={"clause": "Rent is due on the 1st."})

    assert response.status_code == 200
    assert response.json()["scenarios"][0]["title"] == "Late rent"


def test_generate_scenarios_fallback(client, stub_model) -> None:
    stub_model.queue("not json at all")

    response = client.post("/api/generate-scenarios", json={"clause": "Rent is due on the 1st."})

    assert response.status_code == 200
    scenarios = response.json()["scenarios"]
    assert len(scenarios) == 1
    assert scenarios[0]["id"] == "fallback_1"


def test_generate_quiz_uses_document_excerpt(client, stub_model) -> None:
    stub_model.queue({"quiz": {"title": "Quiz", "questions": []}})
    document = "A" * 2000 + "TAIL-MARKER"

    response = client.post("/api/generate-quiz", json={"documentText": document, "difficulty": "hard"})

    assert response.status_code == 200
    assert response.json()["quiz"]["title"] == "Quiz"
    assert "TAIL-MARKER" not in stub_model.prompts[0]
    assert "Difficulty level: hard" in stub_model.prompts[0]


def test_generate_quiz_fallback_keeps_difficulty(client, stub_model) -> None:
    stub_model.queue(RuntimeError("boom"))

    response = client.post("/api/generate-quiz", json={"documentText": "Some lease"})

    assert response.status_code == 200
    quiz = response.json()["quiz"]
    assert quiz["difficulty"] == "medium"
    assert quiz["questions"][0]["correctAnswer"] == "Read carefully"


def test_generate_quiz_rejects_unknown_difficulty(client) -> None:
    response = client.post("/api/generate-quiz", json={"documentText": "Some lease", "difficulty": "expert"})

    assert response.status_code == 400
    assert response.json()["error"] == "Difficulty must be easy, medium, or hard"


# --- Saving ---
def test_save_and_fetch_analysis(client) -> None:
    analysis = dict(VALID_ANALYSIS, originalText="Lease text", documentType="pdf")

    saved = client.post("/api/save", json={"email": "Jo@Example.com", "analysis": analysis})

    assert saved.status_code == 200
    body = saved.json()
    assert body["message"] == "Analysis saved successfully"
    assert body["id"]
    assert body["expires_at"]

    fetched = client.get(f"/api/saved/{body['id']}")
    assert fetched.status_code == 200
    record = fetched.json()
    assert record["email"] == "jo@example.com"
    assert record["original_text"] == "Lease text"
    assert record["document_type"] == "pdf"
    assert record["analysis_result"]["summary"] == VALID_ANALYSIS["summary"]

    listed = client.get("/api/saved", params={"email": "jo@example.com"})
    assert [item["id"] for item in listed.json()["analyses"]] == [body["id"]]

    deleted = client.delete(f"/api/saved/{body['id']}")
    assert deleted.status_code == 200
    assert client.get(f"/api/saved/{body['id']}").status_code == 404


def test_missing_saved_analysis_returns_404(client) -> None:
    response = client.get("/api/saved/does-not-exist")

    assert response.status_code == 404
    assert "not found" in response.json()["error"]


def test_saved_analysis_with_non_string_metadata_stays_readable(client) -> None:
    analysis = dict(VALID_ANALYSIS, originalText=["page 1", "page 2"], documentType=5)

    saved = client.post("/api/save", json={"email": "jo@example.com", "analysis": analysis})
    assert saved.status_code == 200

    fetched = client.get(f"/api/saved/{saved.json()['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["original_text"] == ""
    assert fetched.json()["document_type"] == "unknown"
    assert fetched.json()["analysis_result"]["originalText"] == ["page 1", "page 2"]

    listed = client.get("/api/saved", params={"email": "jo@example.com"})
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()["analyses"]] == [saved.json()["id"]]


@pytest.mark.parametrize(
    "body, message",
    [
        ({"analysis": {}}, "Email is required and must be a string"),
        ({"email": "not-an-email", "analysis": {}}, "Invalid email format"),
        ({"email": "jo@example.com"}, "Analysis is required and must be an object"),
        ({"email": "jo@example.com", "analysis": "summary"}, "Analysis is required and must be an object"),
    ],
)
def test_save_validation_errors(client, body, message) -> None:
    response = client.post("/api/save", json=body)

    assert response.status_code == 400
    assert response.json()["error"] == message


def test_save_is_rate_limited_per_email(client) -> None:
    payload = {"email": "busy@example.com", "analysis": VALID_ANALYSIS}

    statuses = [client.post("/api/save", json=payload).status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    other = client.post("/api/save", json={"email": "other@example.com", "analysis": VALID_ANALYSIS})
    assert other.status_code == 200


# --- Middleware ---
def test_request_rate_limit_rejects_extra_requests(make_app, settings) -> None:
    client = TestClient(make_app(settings=dataclasses.replace(settings, rate_limit_max=2)))

    first = client.get("/api/health")
    second = client.get("/api/health")
    third = client.get("/api/health")

    assert first.status_code == 200
    assert first.headers["X-RateLimit-Limit"] == "2"
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert second.headers["X-RateLimit-Remaining"] == "0"
    assert third.status_code == 429
    body = third.json()
    assert body["error"] == "Too many requests"
    assert body["retryAfter"] > 0


def test_rate_limit_uses_forwarded_address(make_app, settings) -> None:
    client = TestClient(make_app(settings=dataclasses.replace(settings, rate_limit_max=1)))

    assert client.get("/api/health", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 200
    assert client.get("/api/health", headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 200
    assert client.get("/api/health", headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429


def test_oversized_body_is_rejected(make_app, settings) -> None:
    client = TestClient(make_app(settings=dataclasses.replace(settings, max_body_bytes=100)))

    response = client.post("/api/analyze", json={"text": "x" * 500})

    assert response.status_code == 413
    assert response.json()["error"] == "Payload too large"


def _chunked(*parts: bytes):
    # A generator body is sent with Transfer-Encoding: chunked and no Content-Length
    yield from parts


def test_oversized_chunked_body_is_rejected(make_app, settings, stub_model) -> None:
    client = TestClient(make_app(settings=dataclasses.replace(settings, max_body_bytes=100)))

    response = client.post(
        "/api/analyze",
        content=_chunked(b'{"text": "', b"x" * 5000, b'"}'),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json()["error"] == "Payload too large"
    assert stub_model.prompts == []


def test_small_chunked_body_reaches_the_route(make_app, settings, stub_model) -> None:
    client = TestClient(make_app(settings=dataclasses.replace(settings, max_body_bytes=100)))
    stub_model.queue(VALID_ANALYSIS)

    response = client.post(
        "/api/analyze",
        content=_chunked(b'{"text": ', b'"Lease text"}'),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == VALID_ANALYSIS
    assert "Lease text" in stub_model.prompts[0]


class _ExplodingAIService(AIService):
    async def analyze_document(self, text, document_type="document", language="en"):
        raise RuntimeError("secret internals")


def test_unexpected_errors_include_stack_in_development(make_app, settings) -> None:
    app = make_app(settings=dataclasses.replace(settings, environment="development"), ai_service=_ExplodingAIService())
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/analyze", json={"text": "Agreement"})

    assert response.status_code == 500
    assert response.json()["error"] == "secret internals"
    assert "RuntimeError" in response.json()["stack"]


def test_unexpected_errors_are_masked_in_production(make_app, settings) -> None:
    app = make_app(settings=dataclasses.replace(settings, environment="production"), ai_service=_ExplodingAIService())
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/analyze", json={"text": "Agreement"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_unknown_route_returns_json_error(client) -> None:
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert "error" in response.json()


# --- Documents ---
def test_extract_plain_text_upload(client) -> None:
    response = client.post(
        "/api/extract", files={"file": ("lease.txt", b"  The tenant pays rent.  ", "text/plain")}
    )

    assert response.status_code == 200
    assert response.json() == {
        "filename": "lease.txt",
        "documentType": "text",
        "text": "The tenant pays rent.",
        "characters": 21,
    }


def test_extract_docx_upload(client) -> None:
    docx = pytest.importorskip("docx")
    document = docx.Document()
    document.add_paragraph("Section 1. Rent")
    document.add_paragraph("Rent is due monthly.")
    buffer = io.BytesIO()
    document.save(buffer)

    response = client.post("/api/extract", files={"file": ("lease.docx", buffer.getvalue())})

    assert response.status_code == 200
    assert response.json()["documentType"] == "docx"
    assert response.json()["text"] == "Section 1. Rent\nRent is due monthly."


def test_extract_pdf_upload(client) -> None:
    fitz = pytest.importorskip("fitz")
    document = fitz.open()
    page = document.new_page()
    page.insert_text((72, 72), "Non-disclosure agreement")
    buffer = io.BytesIO()
    document.save(buffer)
    document.close()

    response = client.post("/api/extract", files={"file": ("nda.pdf", buffer.getvalue(), "application/pdf")})

    assert response.status_code == 200
    assert response.json()["documentType"] == "pdf"
    assert "Non-disclosure agreement" in response.json()["text"]


def test_extract_rejects_unsupported_type(client) -> None:
    response = client.post("/api/extract", files={"file": ("photo.png", b"\x89PNG", "image/png")})

    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["error"]


def test_extract_rejects_empty_document(client) -> None:
    response = client.post("/api/extract", files={"file": ("blank.txt", b"   \n", "text/plain")})

    assert response.status_code == 400
    assert response.json()["error"] == "Could not extract text from document."


def test_extract_rejects_large_upload(make_app, settings) -> None:
    client = TestClient(make_app(settings=dataclasses.replace(settings, max_upload_bytes=10)))

    response = client.post("/api/extract", files={"file": ("lease.txt", b"x" * 11, "text/plain")})

    assert response.status_code == 413
    assert response.json()["error"] == "File too large"


# --- Health & languages ---
def test_health(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == "test"
    assert body["geminiConfigured"] is True
    assert body["uptime"] >= 0


def test_health_reports_unconfigured_gemini(make_app) -> None:
    client = TestClient(make_app(ai_service=AIService(api_key=None)))

    assert client.get("/api/health").json()["geminiConfigured"] is False
    assert client.get("/api/health/detailed").json()["services"]["geminiAI"] is False


def test_detailed_health(client) -> None:
    body = client.get("/api/health/detailed").json()

    assert body["services"]["geminiAI"] is True
    assert body["services"]["storage"] == "memory"
    assert set(body["system"]) >= {"memory", "pythonVersion", "platform", "arch"}


def test_languages(client) -> None:
    languages = client.get("/api/languages").json()["languages"]

    codes = [language["code"] for language in languages]
    assert codes[0] == "en"
    assert {"hi", "kn", "gu", "ar"} <= set(codes)


def test_store_is_created_at_startup_not_import(monkeypatch, settings, ai_service, store) -> None:
    from legalitea import main

    calls = []

    def fake_create_store(app_settings):
        calls.append(app_settings)
        return store

    monkeypatch.setattr(main, "create_store", fake_create_store)
    app = main.create_app(settings, ai_service=ai_service)

    assert calls == []
    with TestClient(app) as client:
        assert calls == [settings]
        assert client.get("/api/health/detailed").json()["services"]["storage"] == "memory"
