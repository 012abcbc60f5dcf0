"""
Unified search across a user's documents, quizzes and flashcards.

The user's text is escaped into a literal pattern and matched
case-insensitively as a substring. Each collection sits behind a
``RecordStore`` so the executor does not care whether records come
from SQLite or from an in-memory fake.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from app.api.models.search import SearchResultItem, SearchResultSet
from app.config import config
from app.db import Database, db

logger = logging.getLogger(__name__)

QUERY_TOO_SHORT_MESSAGE = "Search query must be at least 2 characters"
SEARCH_FAILED_MESSAGE = "Search failed"

TITLE_MAX_CHARS = 60
SUBTITLE_MAX_CHARS = 80

_METACHARACTERS = re.compile(r"[.*+?^${}()|\[\]\\]")


class SearchValidationError(ValueError):
    """Query rejected before any store is touched."""


class SearchExecutionError(RuntimeError):
    """A store lookup failed; no partial results are returned."""


def escape_query(text: str) -> str:
    """
    Escape regex metacharacters so ``text`` is matched literally.

    Only ``. * + ? ^ $ { } ( ) | [ ] \\`` are escaped; every other
    character is left as-is.
    """
    return _METACHARACTERS.sub(lambda m: "\\" + m.group(0), text)


def truncate(text: str, limit: int) -> str:
    """First ``limit`` characters, with ``...`` appended when cut."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


@dataclass(frozen=True)
class SearchFilter:
    """What every store is asked for: one user's records matching a pattern."""
    user_id: str
    pattern: re.Pattern
    limit: int


class RecordStore(ABC):
    """A searchable collection of user-owned records."""

    @abstractmethod
    async def search(self, search_filter: SearchFilter) -> list[dict]:
        """
        Return the projected records matching the filter.

        Results must be owned by ``search_filter.user_id``, sorted newest
        first and capped at ``search_filter.limit``.
        """
        pass


class DocumentStore(RecordStore):
    """Documents matched on name or summary."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db

    async def search(self, search_filter: SearchFilter) -> list[dict]:
        return await asyncio.to_thread(
            self.database.search_documents,
            search_filter.user_id,
            search_filter.pattern.pattern,
            search_filter.limit,
        )


class QuizStore(RecordStore):
    """Quizzes matched on title."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db

    async def search(self, search_filter: SearchFilter) -> list[dict]:
        return await asyncio.to_thread(
            self.database.search_quizzes,
            search_filter.user_id,
            search_filter.pattern.pattern,
            search_filter.limit,
        )


class FlashcardStore(RecordStore):
    """Flashcards matched on question or answer."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db

    async def search(self, search_filter: SearchFilter) -> list[dict]:
        return await asyncio.to_thread(
            self.database.search_flashcards,
            search_filter.user_id,
            search_filter.pattern.pattern,
            search_filter.limit,
        )


def document_item(record: dict) -> SearchResultItem:
    summary = record.get("summary")
    return SearchResultItem(
        id=str(record["id"]),
        title=record["original_name"],
        subtitle=truncate(summary, SUBTITLE_MAX_CHARS) if summary else "No summary",
        category="document",
        date=record["uploaded_at"],
    )


def quiz_item(record: dict) -> SearchResultItem:
    if record.get("is_completed"):
        subtitle = f"Score: {record.get('score')}/{record['total_questions']}"
    else:
        subtitle = "Not completed"
    return SearchResultItem(
        id=str(record["id"]),
        title=record["title"],
        subtitle=subtitle,
        category="quiz",
        date=record["created_at"],
    )


def flashcard_item(record: dict) -> SearchResultItem:
    return SearchResultItem(
        id=str(record["document_id"]),
        title=truncate(record["question"], TITLE_MAX_CHARS),
        subtitle=truncate(record["answer"], SUBTITLE_MAX_CHARS),
        category="flashcard",
        date=record["created_at"],
    )


class SearchExecutor:
    """Runs one query against the three stores concurrently."""

    def __init__(
        self,
        documents: RecordStore,
        quizzes: RecordStore,
        flashcards: RecordStore,
        limit: Optional[int] = None,
        min_query_length: Optional[int] = None,
    ):
        self.documents = documents
        self.quizzes = quizzes
        self.flashcards = flashcards
        self.limit = limit or config.SEARCH_RESULT_LIMIT
        self.min_query_length = min_query_length or config.SEARCH_MIN_QUERY_LENGTH

    def build_filter(self, query: str, user_id: str) -> SearchFilter:
        """
        Validate the query and turn it into a literal, case-insensitive pattern.

        Raises:
            SearchValidationError: If the trimmed query is too short.
        """
        query = (query or "").strip()
        if len(query) < self.min_query_length:
            raise SearchValidationError(QUERY_TOO_SHORT_MESSAGE)
        pattern = re.compile(escape_query(query), re.IGNORECASE)
        return SearchFilter(user_id=user_id, pattern=pattern, limit=self.limit)

    async def search(self, query: str, user_id: str) -> SearchResultSet:
        """
        Search the user's documents, quizzes and flashcards.

        Raises:
            SearchValidationError: If the trimmed query is too short.
            SearchExecutionError: If any store lookup fails.
        """
        search_filter = self.build_filter(query, user_id)

        try:
            documents, quizzes, flashcards = await asyncio.gather(
                self.documents.search(search_filter),
                self.quizzes.search(search_filter),
                self.flashcards.search(search_filter),
            )
            return SearchResultSet(
                documents=[document_item(r) for r in documents[: self.limit]],
                quizzes=[quiz_item(r) for r in quizzes[: self.limit]],
                flashcards=[flashcard_item(r) for r in flashcards[: self.limit]],
            )
        except Exception as exc:
            logger.error("Search error for user %s: %s", user_id, exc)
            raise SearchExecutionError(SEARCH_FAILED_MESSAGE) from exc
