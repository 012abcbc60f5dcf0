"""
Database module for the Study Assistant API.
Manages the SQLite database holding documents, flashcards, quizzes and chat sessions.
"""

import json
import re
import sqlite3
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional, Generator

from app.config import config

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as a sortable ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def new_id() -> str:
    """Generate a record id."""
    return uuid.uuid4().hex


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def _regexp(pattern: Optional[str], value: Optional[str]) -> bool:
    """Case-insensitive REGEXP operator: ``value REGEXP pattern``."""
    if pattern is None or value is None:
        return False
    return _compile(pattern).search(value) is not None


class Database:
    """SQLite database manager for study records."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or config.DATABASE_PATH
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def connect(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False
            )
            self._connection.row_factory = sqlite3.Row
            self._connection.create_function("REGEXP", 2, _regexp, deterministic=True)
            # Enable foreign keys
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None

    @contextmanager
    def cursor(self) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database cursor with auto-commit."""
        with self._lock:
            conn = self.connect()
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def initialize(self) -> None:
        """Create database schema if not exists."""
        logger.info("Initializing database at %s", self.db_path)

        with self.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    file_name TEXT NOT NULL,
                    original_name TEXT NOT NULL,
                    file_path TEXT NOT NULL,
                    file_size INTEGER NOT NULL,
                    mime_type TEXT NOT NULL DEFAULT 'application/pdf',
                    page_count INTEGER,
                    summary TEXT,
                    extracted_text TEXT,
                    uploaded_at TEXT NOT NULL
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS flashcards (
                    id TEXT PRIMARY KEY,
                    document_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    question TEXT NOT NULL,
                    answer TEXT NOT NULL,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
                )
            """)

            # Questions are stored as a JSON array
            cur.execute("""
                CREATE TABLE IF NOT EXISTS quizzes (
                    id TEXT PRIMARY KEY,
                    document_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    questions TEXT NOT NULL,
                    score INTEGER,
                    total_questions INTEGER NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS chat_sessions (
                    id TEXT PRIMARY KEY,
                    document_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (user_id, document_id),
                    FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS chat_messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL,
                    role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    FOREIGN KEY (session_id) REFERENCES chat_sessions(id) ON DELETE CASCADE
                )
            """)

            # Create indexes for performance
            cur.execute("CREATE INDEX IF NOT EXISTS idx_documents_user_uploaded ON documents(user_id, uploaded_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_flashcards_user_created ON flashcards(user_id, created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_flashcards_document_id ON flashcards(document_id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_flashcards_user_favorite ON flashcards(user_id, is_favorite)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_quizzes_user_created ON quizzes(user_id, created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_quizzes_document_id ON quizzes(document_id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_chat_messages_session_id ON chat_messages(session_id)")

        logger.info("Database initialized successfully")

    # =========================================================================
    # Documents
    # =========================================================================

    def create_document(
        self,
        user_id: str,
        file_name: str,
        original_name: str,
        file_path: str,
        file_size: int,
        mime_type: str = "application/pdf",
        page_count: Optional[int] = None,
        extracted_text: Optional[str] = None,
        summary: Optional[str] = None,
        uploaded_at: Optional[str] = None,
    ) -> dict:
        """Insert a document record and return it (without extracted text)."""
        doc_id = new_id()
        with self.cursor() as cur:
            cur.execute("""
                INSERT INTO documents (
                    id, user_id, file_name, original_name, file_path, file_size,
                    mime_type, page_count, summary, extracted_text, uploaded_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                doc_id, user_id, file_name, original_name, file_path, file_size,
                mime_type, page_count, summary, extracted_text, uploaded_at or utc_now(),
            ))
        return self.get_document(doc_id, user_id)

    def get_document(
        self,
        doc_id: str,
        user_id: str,
        include_text: bool = False,
    ) -> Optional[dict]:
        """Get a document owned by the user. Extracted text is opt-in."""
        columns = "*" if include_text else _DOCUMENT_COLUMNS
        with self.cursor() as cur:
            cur.execute(
                f"SELECT {columns} FROM documents WHERE id = ? AND user_id = ?",
                (doc_id, user_id),
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def list_documents(self, user_id: str, limit: Optional[int] = None) -> list[dict]:
        """All documents of a user, newest upload first."""
        sql = f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE user_id = ? ORDER BY uploaded_at DESC"
        params: tuple = (user_id,)
        if limit is not None:
            sql += " LIMIT ?"
            params = (user_id, limit)
        with self.cursor() as cur:
            cur.execute(sql, params)
            return [dict(row) for row in cur.fetchall()]

    def count_documents(self, user_id: str) -> int:
        with self.cursor() as cur:
            cur.execute("SELECT COUNT(*) AS count FROM documents WHERE user_id = ?", (user_id,))
            return cur.fetchone()["count"]

    def set_document_summary(self, doc_id: str, summary: str) -> None:
        with self.cursor() as cur:
            cur.execute("UPDATE documents SET summary = ? WHERE id = ?", (summary, doc_id))

    def set_document_text(self, doc_id: str, text: str, page_count: Optional[int] = None) -> None:
        with self.cursor() as cur:
            if page_count is None:
                cur.execute("UPDATE documents SET extracted_text = ? WHERE id = ?", (text, doc_id))
            else:
                cur.execute(
                    "UPDATE documents SET extracted_text = ?, page_count = ? WHERE id = ?",
                    (text, page_count, doc_id),
                )

    def delete_document(self, doc_id: str, user_id: str) -> bool:
        """Delete a document and, by cascade, its flashcards, quizzes and chat."""
        with self.cursor() as cur:
            cur.execute("DELETE FROM documents WHERE id = ? AND user_id = ?", (doc_id, user_id))
            return cur.rowcount > 0

    def search_documents(self, user_id: str, pattern: str, limit: int) -> list[dict]:
        """Documents whose name or summary match ``pattern``, newest first."""
        with self.cursor() as cur:
            cur.execute("""
                SELECT id, original_name, summary, uploaded_at
                FROM documents
                WHERE user_id = ?
                  AND (original_name REGEXP ? OR summary REGEXP ?)
                ORDER BY uploaded_at DESC
                LIMIT ?
            """, (user_id, pattern, pattern, limit))
            return [dict(row) for row in cur.fetchall()]

    # =========================================================================
    # Flashcards
    # =========================================================================

    def add_flashcards(
        self,
        document_id: str,
        user_id: str,
        cards: list[dict],
    ) -> list[dict]:
        """Insert question/answer pairs for a document, in order."""
        created = []
        with self.cursor() as cur:
            for card in cards:
                record = {
                    "id": new_id(),
                    "document_id": document_id,
                    "user_id": user_id,
                    "question": card["question"],
                    "answer": card["answer"],
                    "is_favorite": False,
                    "created_at": card.get("created_at") or utc_now(),
                }
                cur.execute("""
                    INSERT INTO flashcards (id, document_id, user_id, question, answer, is_favorite, created_at)
                    VALUES (?, ?, ?, ?, ?, 0, ?)
                """, (
                    record["id"], document_id, user_id,
                    record["question"], record["answer"], record["created_at"],
                ))
                created.append(record)
        return created

    def get_flashcards(self, document_id: str, user_id: str) -> list[dict]:
        """Flashcards of a document, oldest first."""
        with self.cursor() as cur:
            cur.execute("""
                SELECT * FROM flashcards
                WHERE document_id = ? AND user_id = ?
                ORDER BY created_at ASC
            """, (document_id, user_id))
            return [_flashcard_row(row) for row in cur.fetchall()]

    def get_flashcard(self, flashcard_id: str, user_id: str) -> Optional[dict]:
        with self.cursor() as cur:
            cur.execute(
                "SELECT * FROM flashcards WHERE id = ? AND user_id = ?",
                (flashcard_id, user_id),
            )
            row = cur.fetchone()
            return _flashcard_row(row) if row else None

    def set_flashcard_favorite(self, flashcard_id: str, is_favorite: bool) -> None:
        with self.cursor() as cur:
            cur.execute(
                "UPDATE flashcards SET is_favorite = ? WHERE id = ?",
                (int(is_favorite), flashcard_id),
            )

    def get_favorite_flashcards(self, user_id: str) -> list[dict]:
        """Favorite flashcards with their document name, newest first."""
        with self.cursor() as cur:
            cur.execute("""
                SELECT f.*, d.original_name AS document_name
                FROM flashcards f
                LEFT JOIN documents d ON d.id = f.document_id
                WHERE f.user_id = ? AND f.is_favorite = 1
                ORDER BY f.created_at DESC
            """, (user_id,))
            return [_flashcard_row(row) for row in cur.fetchall()]

    def delete_flashcards(self, document_id: str, user_id: str) -> int:
        with self.cursor() as cur:
            cur.execute(
                "DELETE FROM flashcards WHERE document_id = ? AND user_id = ?",
                (document_id, user_id),
            )
            return cur.rowcount

    def count_flashcards(self, user_id: str) -> int:
        with self.cursor() as cur:
            cur.execute("SELECT COUNT(*) AS count FROM flashcards WHERE user_id = ?", (user_id,))
            return cur.fetchone()["count"]

    def search_flashcards(self, user_id: str, pattern: str, limit: int) -> list[dict]:
        """Flashcards whose question or answer match ``pattern``, newest first."""
        with self.cursor() as cur:
            cur.execute("""
                SELECT id, question, answer, document_id, created_at
                FROM flashcards
                WHERE user_id = ?
                  AND (question REGEXP ? OR answer REGEXP ?)
                ORDER BY created_at DESC
                LIMIT ?
            """, (user_id, pattern, pattern, limit))
            return [dict(row) for row in cur.fetchall()]

    # =========================================================================
    # Quizzes
    # =========================================================================

    def create_quiz(
        self,
        document_id: str,
        user_id: str,
        title: str,
        questions: list[dict],
        created_at: Optional[str] = None,
    ) -> dict:
        """Insert a pending quiz and return it."""
        quiz_id = new_id()
        with self.cursor() as cur:
            cur.execute("""
                INSERT INTO quizzes (id, document_id, user_id, title, questions, total_questions, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                quiz_id, document_id, user_id, title,
                json.dumps(questions), len(questions), created_at or utc_now(),
            ))
        return self.get_quiz(quiz_id, user_id)

    def get_quiz(
        self,
        quiz_id: str,
        user_id: str,
        completed: Optional[bool] = None,
    ) -> Optional[dict]:
        """Get a quiz owned by the user, optionally filtered by completion state."""
        sql = "SELECT * FROM quizzes WHERE id = ? AND user_id = ?"
        params: list = [quiz_id, user_id]
        if completed is not None:
            sql += " AND is_completed = ?"
            params.append(int(completed))
        with self.cursor() as cur:
            cur.execute(sql, params)
            row = cur.fetchone()
            return _quiz_row(row) if row else None

    def complete_quiz(self, quiz_id: str, questions: list[dict], score: int) -> None:
        """Store the answered questions and mark the quiz as completed."""
        with self.cursor() as cur:
            cur.execute("""
                UPDATE quizzes
                SET questions = ?, score = ?, is_completed = 1, completed_at = ?
                WHERE id = ?
            """, (json.dumps(questions), score, utc_now(), quiz_id))

    def get_completed_quizzes(self, user_id: str, limit: int = 20) -> list[dict]:
        """Completed quizzes with their document name, most recently completed first."""
        with self.cursor() as cur:
            cur.execute("""
                SELECT q.*, d.original_name AS document_name
                FROM quizzes q
                LEFT JOIN documents d ON d.id = q.document_id
                WHERE q.user_id = ? AND q.is_completed = 1
                ORDER BY q.completed_at DESC
                LIMIT ?
            """, (user_id, limit))
            return [_quiz_row(row) for row in cur.fetchall()]

    def count_completed_quizzes(self, user_id: str) -> int:
        with self.cursor() as cur:
            cur.execute(
                "SELECT COUNT(*) AS count FROM quizzes WHERE user_id = ? AND is_completed = 1",
                (user_id,),
            )
            return cur.fetchone()["count"]

    def search_quizzes(self, user_id: str, pattern: str, limit: int) -> list[dict]:
        """Quizzes whose title matches ``pattern``, newest first."""
        with self.cursor() as cur:
            cur.execute("""
                SELECT id, title, score, total_questions, is_completed, created_at
                FROM quizzes
                WHERE user_id = ? AND title REGEXP ?
                ORDER BY created_at DESC
                LIMIT ?
            """, (user_id, pattern, limit))
            rows = []
            for row in cur.fetchall():
                record = dict(row)
                record["is_completed"] = bool(record["is_completed"])
                rows.append(record)
            return rows

    # =========================================================================
    # Chat sessions
    # =========================================================================

    def get_chat_session(self, document_id: str, user_id: str) -> Optional[dict]:
        """Chat session for a document, with its messages in order."""
        with self.cursor() as cur:
            cur.execute(
                "SELECT * FROM chat_sessions WHERE document_id = ? AND user_id = ?",
                (document_id, user_id),
            )
            row = cur.fetchone()
            if not row:
                return None
            session = dict(row)
            cur.execute("""
                SELECT role, content, timestamp FROM chat_messages
                WHERE session_id = ?
                ORDER BY id ASC
            """, (session["id"],))
            session["messages"] = [dict(m) for m in cur.fetchall()]
            return session

    def get_or_create_chat_session(self, document_id: str, user_id: str) -> dict:
        session = self.get_chat_session(document_id, user_id)
        if session:
            return session
        now = utc_now()
        with self.cursor() as cur:
            cur.execute("""
                INSERT OR IGNORE INTO chat_sessions (id, document_id, user_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
            """, (new_id(), document_id, user_id, now, now))
        return self.get_chat_session(document_id, user_id)

    def add_chat_messages(self, session_id: str, messages: list[dict]) -> None:
        """Append messages (``role``/``content``) to a session."""
        now = utc_now()
        with self.cursor() as cur:
            for message in messages:
                cur.execute("""
                    INSERT INTO chat_messages (session_id, role, content, timestamp)
                    VALUES (?, ?, ?, ?)
                """, (session_id, message["role"], message["content"], message.get("timestamp") or now))
            cur.execute(
                "UPDATE chat_sessions SET updated_at = ? WHERE id = ?",
                (now, session_id),
            )


_DOCUMENT_COLUMNS = (
    "id, user_id, file_name, original_name, file_path, file_size, "
    "mime_type, page_count, summary, uploaded_at"
)


def _flashcard_row(row: sqlite3.Row) -> dict:
    record = dict(row)
    record["is_favorite"] = bool(record["is_favorite"])
    return record


def _quiz_row(row: sqlite3.Row) -> dict:
    record = dict(row)
    record["questions"] = json.loads(record["questions"])
    record["is_completed"] = bool(record["is_completed"])
    return record


# Singleton database instance
db = Database()
