"""
End-to-end tests for the FastAPI application.
Tests the API endpoints with a real test client and a temporary database.
"""

import json
from datetime import timedelta
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from app.auth import create_access_token
from app.pdf import PDFContent

PDF_BYTES = b"%PDF-1.4\n%fake test document\n"

FLASHCARD_REPLY = json.dumps([
    {"question": "What is a group?", "answer": "A set with an associative operation"},
    {"question": "What is a ring?", "answer": "A group with a second operation"},
])

QUIZ_REPLY = json.dumps([
    {"question": "Which is a group?", "options": ["Z under +", "N under +"], "correctAnswer": 0,
     "explanation": "Z has inverses."},
    {"question": "Is every field a ring?", "options": ["No", "Yes"], "correctAnswer": 1,
     "explanation": "Fields are commutative rings."},
])


async def fake_generate(prompt: str) -> str:
    if "flashcards" in prompt:
        return FLASHCARD_REPLY
    if "multiple-choice" in prompt:
        return QUIZ_REPLY
    return "A generated answer."


@pytest.fixture
def client(temp_dir: Path, monkeypatch):
    """Create a test client backed by a temporary database and upload directory."""
    from app.config import Config
    from app.db import db
    from app.main import app
    from app.services.ai_service import ai_service
    from app.services.document_service import document_service

    monkeypatch.setattr(Config, "UPLOAD_DIR", temp_dir / "uploads")
    db.close()
    monkeypatch.setattr(db, "db_path", temp_dir / "api.db")
    monkeypatch.setattr(
        document_service, "extract",
        lambda path: PDFContent(text="Groups, rings and fields.", page_count=2),
    )
    monkeypatch.setattr(ai_service, "_generate", AsyncMock(side_effect=fake_generate))

    with TestClient(app) as test_client:
        yield test_client
    db.close()


@pytest.fixture
def auth() -> dict:
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def other_auth() -> dict:
    return {"Authorization": f"Bearer {create_access_token('user-2')}"}


def upload(client: TestClient, headers: dict, name: str = "Abstract Algebra.pdf") -> dict:
    response = client.post(
        "/api/documents/upload",
        files={"file": (name, PDF_BYTES, "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["document"]


class TestHealthEndpoint:
    """Tests for GET /api/health."""

    def test_health_without_token(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/api/search", params={"q": "algebra"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Access denied. No token provided."}

    def test_invalid_token(self, client):
        response = client.get(
            "/api/search", params={"q": "algebra"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token."

    def test_expired_token(self, client):
        token = create_access_token("user-1", expires_delta=timedelta(minutes=-1))

        response = client.get(
            "/api/search", params={"q": "algebra"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired."


class TestSearchEndpoint:
    """Tests for GET /api/search."""

    def test_short_query(self, client, auth):
        response = client.get("/api/search", params={"q": "a"}, headers=auth)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Search query must be at least 2 characters",
        }

    def test_missing_query(self, client, auth):
        response = client.get("/api/search", headers=auth)

        assert response.status_code == 400

    def test_whitespace_query(self, client, auth):
        response = client.get("/api/search", params={"q": "  x  "}, headers=auth)

        assert response.status_code == 400

    def test_no_matches(self, client, auth):
        response = client.get("/api/search", params={"q": "zz"}, headers=auth)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {"documents": [], "quizzes": [], "flashcards": []},
        }

    def test_document_without_summary(self, client, auth):
        document = upload(client, auth)

        response = client.get("/api/search", params={"q": "ab"}, headers=auth)

        data = response.json()["data"]
        assert len(data["documents"]) == 1
        item = data["documents"][0]
        assert item["id"] == document["id"]
        assert item["title"] == "Abstract Algebra.pdf"
        assert item["subtitle"] == "No summary"
        assert item["category"] == "document"
        assert data["quizzes"] == []
        assert data["flashcards"] == []

    def test_search_spans_all_categories(self, client, auth):
        document = upload(client, auth)
        client.post(f"/api/ai/flashcards/{document['id']}", headers=auth)
        client.post(f"/api/ai/quiz/{document['id']}", headers=auth)

        response = client.get("/api/search", params={"q": "GROUP"}, headers=auth)
        data = response.json()["data"]

        assert [f["id"] for f in data["flashcards"]] == [document["id"]] * 2
        assert data["flashcards"][0]["category"] == "flashcard"

        quizzes = client.get("/api/search", params={"q": "quiz: abstract"}, headers=auth).json()["data"]["quizzes"]
        assert quizzes[0]["subtitle"] == "Not completed"

    def test_results_isolated_per_user(self, client, auth, other_auth):
        upload(client, auth)

        response = client.get("/api/search", params={"q": "algebra"}, headers=other_auth)

        assert response.json()["data"]["documents"] == []

    def test_store_failure(self, client, auth, monkeypatch, caplog):
        from app.services.search_service import search_service
        monkeypatch.setattr(
            search_service.executor.quizzes, "search",
            AsyncMock(side_effect=RuntimeError("database is locked")),
        )

        response = client.get("/api/search", params={"q": "algebra"}, headers=auth)

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Search failed"}
        search_errors = [r for r in caplog.records if r.getMessage().startswith("Search error")]
        assert len(search_errors) == 1
        assert "database is locked" in search_errors[0].getMessage()


class TestDocumentEndpoints:
    def test_upload_rejects_non_pdf(self, client, auth):
        response = client.post(
            "/api/documents/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only PDF files are allowed"

    def test_upload_without_file(self, client, auth):
        response = client.post("/api/documents/upload", headers=auth)

        assert response.status_code == 400

    def test_upload_list_get_delete(self, client, auth):
        document = upload(client, auth)
        assert document["page_count"] == 2

        listed = client.get("/api/documents", headers=auth).json()["data"]["documents"]
        assert [d["id"] for d in listed] == [document["id"]]

        fetched = client.get(f"/api/documents/{document['id']}", headers=auth)
        assert fetched.json()["data"]["document"]["file_name"] == "Abstract Algebra.pdf"

        pdf = client.get(f"/api/documents/{document['id']}/file", headers=auth)
        assert pdf.status_code == 200
        assert pdf.content == PDF_BYTES
        assert pdf.headers["content-type"] == "application/pdf"

        deleted = client.delete(f"/api/documents/{document['id']}", headers=auth)
        assert deleted.json() == {"success": True, "data": None, "message": "Document deleted successfully"}

        missing = client.get(f"/api/documents/{document['id']}", headers=auth)
        assert missing.status_code == 404
        assert missing.json()["message"] == "Document not found"

    def test_other_user_cannot_read(self, client, auth, other_auth):
        document = upload(client, auth)

        assert client.get(f"/api/documents/{document['id']}", headers=other_auth).status_code == 404
        assert client.delete(f"/api/documents/{document['id']}", headers=other_auth).status_code == 404

    def test_stats(self, client, auth):
        upload(client, auth)

        data = client.get("/api/documents/stats", headers=auth).json()["data"]

        assert data["stats"]["total_documents"] == 1
        assert data["recent_activity"]["documents"][0]["name"] == "Abstract Algebra.pdf"


class TestAIEndpoints:
    def test_chat_and_history(self, client, auth):
        document = upload(client, auth)

        response = client.post(
            f"/api/ai/chat/{document['id']}", json={"message": "What is a group?"}, headers=auth,
        )
        assert response.status_code == 200
        assert response.json()["data"]["message"] == "A generated answer."

        history = client.get(f"/api/ai/chat/{document['id']}/history", headers=auth).json()["data"]
        assert [m["role"] for m in history["messages"]] == ["user", "assistant"]

    def test_chat_requires_message(self, client, auth):
        document = upload(client, auth)

        response = client.post(f"/api/ai/chat/{document['id']}", json={"message": ""}, headers=auth)

        assert response.status_code == 400
        assert response.json()["message"] == "Message is required"

    def test_summary_cached(self, client, auth):
        document = upload(client, auth)

        first = client.post(f"/api/ai/summary/{document['id']}", headers=auth).json()["data"]
        second = client.post(f"/api/ai/summary/{document['id']}", headers=auth).json()["data"]

        assert first == {"summary": "A generated answer.", "cached": False}
        assert second["cached"] is True

    def test_summary_failure(self, client, auth, monkeypatch):
        from app.services.ai_service import ai_service
        monkeypatch.setattr(ai_service, "_generate", AsyncMock(side_effect=RuntimeError("quota")))
        document = upload(client, auth)

        response = client.post(f"/api/ai/summary/{document['id']}", headers=auth)

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to generate summary"}

    def test_explain(self, client, auth):
        document = upload(client, auth)

        response = client.post(f"/api/ai/explain/{document['id']}", json={"concept": "groups"}, headers=auth)

        assert response.json()["data"] == {"explanation": "A generated answer."}

    def test_flashcards_created_then_cached(self, client, auth):
        document = upload(client, auth)

        first = client.post(f"/api/ai/flashcards/{document['id']}", headers=auth)
        second = client.post(f"/api/ai/flashcards/{document['id']}", headers=auth)

        assert first.status_code == 201
        assert len(first.json()["data"]["flashcards"]) == 2
        assert second.status_code == 200
        assert second.json()["data"]["cached"] is True

    def test_unknown_document(self, client, auth):
        response = client.post("/api/ai/quiz/does-not-exist", headers=auth)

        assert response.status_code == 404


class TestFlashcardEndpoints:
    def test_favorite_flow(self, client, auth):
        document = upload(client, auth)
        client.post(f"/api/ai/flashcards/{document['id']}", headers=auth)
        cards = client.get(f"/api/flashcards/document/{document['id']}", headers=auth).json()["data"]["flashcards"]

        toggled = client.patch(f"/api/flashcards/{cards[0]['id']}/favorite", headers=auth)
        assert toggled.json()["data"]["flashcard"]["is_favorite"] is True

        favorites = client.get("/api/flashcards/favorites", headers=auth).json()["data"]["flashcards"]
        assert [f["id"] for f in favorites] == [cards[0]["id"]]
        assert favorites[0]["document_name"] == "Abstract Algebra.pdf"

    def test_toggle_unknown(self, client, auth):
        response = client.patch("/api/flashcards/nope/favorite", headers=auth)

        assert response.status_code == 404
        assert response.json()["message"] == "Flashcard not found"

    def test_delete_document_flashcards(self, client, auth):
        document = upload(client, auth)
        client.post(f"/api/ai/flashcards/{document['id']}", headers=auth)

        response = client.delete(f"/api/flashcards/document/{document['id']}", headers=auth)

        assert response.json()["data"] == {"deleted": 2}
        regenerated = client.post(f"/api/ai/flashcards/{document['id']}", headers=auth)
        assert regenerated.status_code == 201


class TestQuizEndpoints:
    def _quiz(self, client, auth) -> dict:
        document = upload(client, auth)
        response = client.post(f"/api/ai/quiz/{document['id']}", headers=auth)
        assert response.status_code == 201
        return response.json()["data"]["quiz"]

    def test_generated_quiz_hides_answers(self, client, auth):
        quiz = self._quiz(client, auth)

        assert quiz["title"] == "Quiz: Abstract Algebra.pdf"
        assert all(set(q) == {"question", "options"} for q in quiz["questions"])

        pending = client.get(f"/api/quizzes/{quiz['id']}", headers=auth).json()["data"]["quiz"]
        assert pending["id"] == quiz["id"]

    def test_submit_result_and_history(self, client, auth):
        quiz = self._quiz(client, auth)

        submitted = client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": [0, 0]}, headers=auth)
        data = submitted.json()["data"]
        assert data["score"] == 1
        assert data["percentage"] == 50
        assert [r["is_correct"] for r in data["results"]] == [True, False]

        result = client.get(f"/api/quizzes/{quiz['id']}/result", headers=auth).json()["data"]["quiz"]
        assert result["score"] == 1

        history = client.get("/api/quizzes/history", headers=auth).json()["data"]["quizzes"]
        assert history[0]["document_name"] == "Abstract Algebra.pdf"

        search = client.get("/api/search", params={"q": "quiz:"}, headers=auth).json()["data"]
        assert search["quizzes"][0]["subtitle"] == "Score: 1/2"

    def test_submit_twice(self, client, auth):
        quiz = self._quiz(client, auth)
        client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": [0, 1]}, headers=auth)

        response = client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": [0, 1]}, headers=auth)

        assert response.status_code == 400
        assert response.json()["message"] == "Quiz already completed"

    def test_invalid_body(self, client, auth):
        quiz = self._quiz(client, auth)

        response = client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": "nope"}, headers=auth)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unknown_quiz(self, client, auth):
        response = client.get("/api/quizzes/does-not-exist", headers=auth)

        assert response.status_code == 404
        assert response.json()["message"] == "Quiz not found"
