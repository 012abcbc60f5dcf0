"""
Search service: unified search over the SQLite-backed stores.
"""

import logging
from typing import Optional

from app.api.models.search import SearchResultSet
from app.search import DocumentStore, FlashcardStore, QuizStore, SearchExecutor

logger = logging.getLogger(__name__)


class SearchService:
    """Handles unified search for the API layer."""

    def __init__(self, executor: Optional[SearchExecutor] = None):
        self.executor = executor or SearchExecutor(
            documents=DocumentStore(),
            quizzes=QuizStore(),
            flashcards=FlashcardStore(),
        )

    async def search(self, query: str, user_id: str) -> SearchResultSet:
        """
        Search a user's documents, quizzes and flashcards.

        Args:
            query: Raw query text from the request.
            user_id: Authenticated user.

        Returns:
            SearchResultSet with up to five results per category.

        Raises:
            SearchValidationError: If the query is shorter than two characters.
            SearchExecutionError: If the underlying search fails.
        """
        results = await self.executor.search(query, user_id)
        logger.debug(
            "Search for user %s returned %d documents, %d quizzes, %d flashcards",
            user_id, len(results.documents), len(results.quizzes), len(results.flashcards),
        )
        return results


# Singleton
search_service = SearchService()
