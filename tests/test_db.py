"""
Unit tests for the database module.
"""

import sqlite3

import pytest
from pathlib import Path

from app.db import Database, _regexp, utc_now


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_creates_database_file(self, temp_dir: Path):
        """Database file should be created on initialization."""
        db_path = temp_dir / "new.db"
        db = Database(db_path)
        db.initialize()

        assert db_path.exists()
        db.close()

    def test_creates_required_tables(self, temp_db: Database):
        """All required tables should be created."""
        with temp_db.cursor() as cur:
            cur.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row["name"] for row in cur.fetchall()}

        assert {"documents", "flashcards", "quizzes", "chat_sessions", "chat_messages"} <= tables

    def test_creates_indexes(self, temp_db: Database):
        """Per-user ordering indexes should be created."""
        with temp_db.cursor() as cur:
            cur.execute("SELECT name FROM sqlite_master WHERE type='index' AND name LIKE 'idx_%'")
            indexes = {row["name"] for row in cur.fetchall()}

        assert "idx_documents_user_uploaded" in indexes
        assert "idx_flashcards_user_created" in indexes
        assert "idx_quizzes_user_created" in indexes

    def test_initialize_is_idempotent(self, temp_db: Database):
        temp_db.initialize()
        temp_db.initialize()


class TestRegexp:
    def test_case_insensitive(self):
        assert _regexp("algebra", "Abstract ALGEBRA")

    def test_null_never_matches(self):
        assert not _regexp("algebra", None)
        assert not _regexp(None, "algebra")

    def test_utc_now_sorts_lexically(self):
        first = utc_now()
        second = utc_now()

        assert first <= second


class TestDocuments:
    """Tests for document records."""

    def test_create_and_get(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf", extracted_text="Vertices and edges")

        assert doc["original_name"] == "Graphs.pdf"
        assert "extracted_text" not in doc

        full = temp_db.get_document(doc["id"], "user-1", include_text=True)
        assert full["extracted_text"] == "Vertices and edges"

    def test_get_other_users_document(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")

        assert temp_db.get_document(doc["id"], "user-2") is None

    def test_list_newest_first(self, temp_db: Database, document_factory):
        document_factory("old.pdf", uploaded_at="2024-01-01T00:00:00.000000+00:00")
        document_factory("new.pdf", uploaded_at="2024-02-01T00:00:00.000000+00:00")
        document_factory("theirs.pdf", user_id="user-2")

        names = [d["original_name"] for d in temp_db.list_documents("user-1")]

        assert names == ["new.pdf", "old.pdf"]
        assert [d["original_name"] for d in temp_db.list_documents("user-1", limit=1)] == ["new.pdf"]
        assert temp_db.count_documents("user-1") == 2

    def test_summary_and_text_updates(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")

        temp_db.set_document_summary(doc["id"], "About graphs")
        temp_db.set_document_text(doc["id"], "text", page_count=4)

        updated = temp_db.get_document(doc["id"], "user-1", include_text=True)
        assert updated["summary"] == "About graphs"
        assert updated["extracted_text"] == "text"
        assert updated["page_count"] == 4

    def test_delete_cascades(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        temp_db.add_flashcards(doc["id"], "user-1", [{"question": "Q", "answer": "A"}])
        temp_db.create_quiz(doc["id"], "user-1", "Quiz: Graphs.pdf", [
            {"question": "Q", "options": ["a", "b"], "correct_answer": 0},
        ])
        session = temp_db.get_or_create_chat_session(doc["id"], "user-1")
        temp_db.add_chat_messages(session["id"], [{"role": "user", "content": "hi"}])

        assert temp_db.delete_document(doc["id"], "user-1")

        assert temp_db.count_flashcards("user-1") == 0
        assert temp_db.search_quizzes("user-1", "graphs", 5) == []
        assert temp_db.get_chat_session(doc["id"], "user-1") is None
        with temp_db.cursor() as cur:
            cur.execute("SELECT COUNT(*) AS count FROM chat_messages")
            assert cur.fetchone()["count"] == 0

    def test_delete_requires_owner(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")

        assert not temp_db.delete_document(doc["id"], "user-2")
        assert temp_db.get_document(doc["id"], "user-1") is not None


class TestFlashcards:
    def test_oldest_first(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        temp_db.add_flashcards(doc["id"], "user-1", [
            {"question": "second", "answer": "b", "created_at": "2024-01-02T00:00:00.000000+00:00"},
            {"question": "first", "answer": "a", "created_at": "2024-01-01T00:00:00.000000+00:00"},
        ])

        cards = temp_db.get_flashcards(doc["id"], "user-1")

        assert [c["question"] for c in cards] == ["first", "second"]
        assert cards[0]["is_favorite"] is False

    def test_favorites_include_document_name(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        card = temp_db.add_flashcards(doc["id"], "user-1", [{"question": "Q", "answer": "A"}])[0]

        temp_db.set_flashcard_favorite(card["id"], True)

        favorites = temp_db.get_favorite_flashcards("user-1")
        assert len(favorites) == 1
        assert favorites[0]["document_name"] == "Graphs.pdf"
        assert favorites[0]["is_favorite"] is True

    def test_delete_for_document(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        temp_db.add_flashcards(doc["id"], "user-1", [
            {"question": "Q1", "answer": "A"}, {"question": "Q2", "answer": "A"},
        ])

        assert temp_db.delete_flashcards(doc["id"], "user-2") == 0
        assert temp_db.delete_flashcards(doc["id"], "user-1") == 2

    def test_search_newest_first_and_limited(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        temp_db.add_flashcards(doc["id"], "user-1", [
            {"question": f"Edge {i}", "answer": "x", "created_at": f"2024-01-0{i}T00:00:00.000000+00:00"}
            for i in range(1, 8)
        ])

        found = temp_db.search_flashcards("user-1", "edge", 5)

        assert [f["question"] for f in found] == ["Edge 7", "Edge 6", "Edge 5", "Edge 4", "Edge 3"]
        assert set(found[0]) == {"id", "question", "answer", "document_id", "created_at"}


class TestQuizzes:
    QUESTIONS = [
        {"question": "Q1", "options": ["a", "b"], "correct_answer": 1, "explanation": "b"},
        {"question": "Q2", "options": ["a", "b"], "correct_answer": 0, "explanation": "a"},
    ]

    def test_create_pending(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")

        quiz = temp_db.create_quiz(doc["id"], "user-1", "Quiz: Graphs.pdf", self.QUESTIONS)

        assert quiz["questions"] == self.QUESTIONS
        assert quiz["total_questions"] == 2
        assert quiz["is_completed"] is False
        assert quiz["score"] is None

    def test_completion_filter(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        quiz = temp_db.create_quiz(doc["id"], "user-1", "Quiz: Graphs.pdf", self.QUESTIONS)

        assert temp_db.get_quiz(quiz["id"], "user-1", completed=True) is None

        temp_db.complete_quiz(quiz["id"], self.QUESTIONS, score=2)

        assert temp_db.get_quiz(quiz["id"], "user-1", completed=False) is None
        completed = temp_db.get_quiz(quiz["id"], "user-1", completed=True)
        assert completed["score"] == 2
        assert completed["completed_at"] is not None

    def test_completed_history_and_count(self, seeded_db: Database):
        history = seeded_db.get_completed_quizzes("user-1")

        assert [q["title"] for q in history] == ["Quiz: Abstract Algebra.pdf"]
        assert history[0]["document_name"] == "Abstract Algebra.pdf"
        assert seeded_db.count_completed_quizzes("user-1") == 1

    def test_search_returns_completion_as_bool(self, seeded_db: Database):
        found = seeded_db.search_quizzes("user-1", "algebra", 5)

        assert [q["is_completed"] for q in found] == [False, True]


class TestChat:
    def test_session_created_once(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")

        first = temp_db.get_or_create_chat_session(doc["id"], "user-1")
        second = temp_db.get_or_create_chat_session(doc["id"], "user-1")

        assert first["id"] == second["id"]
        assert first["messages"] == []

    def test_messages_kept_in_order(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        session = temp_db.get_or_create_chat_session(doc["id"], "user-1")

        temp_db.add_chat_messages(session["id"], [
            {"role": "user", "content": "What is a graph?"},
            {"role": "assistant", "content": "Vertices and edges."},
        ])

        messages = temp_db.get_chat_session(doc["id"], "user-1")["messages"]
        assert [(m["role"], m["content"]) for m in messages] == [
            ("user", "What is a graph?"),
            ("assistant", "Vertices and edges."),
        ]

    def test_unknown_role_rejected(self, temp_db: Database, document_factory):
        doc = document_factory("Graphs.pdf")
        session = temp_db.get_or_create_chat_session(doc["id"], "user-1")

        with pytest.raises(sqlite3.IntegrityError):
            temp_db.add_chat_messages(session["id"], [{"role": "system", "content": "x"}])
