"""
Flashcard service: per-document decks and favorites.
"""

import logging
from typing import Optional

from app.db import Database, db
from app.errors import NotFoundError

logger = logging.getLogger(__name__)


class FlashcardService:
    """Reads and updates stored flashcards."""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or db

    async def list_for_document(self, user_id: str, document_id: str) -> dict:
        """A document's flashcards in creation order."""
        cards = self.db.get_flashcards(document_id, user_id)
        return {
            "flashcards": [
                {
                    "id": c["id"],
                    "question": c["question"],
                    "answer": c["answer"],
                    "is_favorite": c["is_favorite"],
                    "created_at": c["created_at"],
                }
                for c in cards
            ]
        }

    async def toggle_favorite(self, user_id: str, flashcard_id: str) -> dict:
        """
        Flip a flashcard's favorite flag.

        Raises:
            NotFoundError: If the user has no such flashcard.
        """
        card = self.db.get_flashcard(flashcard_id, user_id)
        if not card:
            raise NotFoundError("Flashcard not found")

        is_favorite = not card["is_favorite"]
        self.db.set_flashcard_favorite(flashcard_id, is_favorite)
        return {"flashcard": {"id": flashcard_id, "is_favorite": is_favorite}}

    async def favorites(self, user_id: str) -> dict:
        """All favorite flashcards, newest first, with their document name."""
        cards = self.db.get_favorite_flashcards(user_id)
        return {
            "flashcards": [
                {
                    "id": c["id"],
                    "question": c["question"],
                    "answer": c["answer"],
                    "document_name": c.get("document_name"),
                    "created_at": c["created_at"],
                }
                for c in cards
            ]
        }

    async def delete_for_document(self, user_id: str, document_id: str) -> int:
        deleted = self.db.delete_flashcards(document_id, user_id)
        logger.info("Deleted %d flashcards of document %s", deleted, document_id)
        return deleted


# Singleton
flashcard_service = FlashcardService()
