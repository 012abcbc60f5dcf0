"""
Search-related API models: unified search across documents, quizzes and flashcards.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


SearchCategory = Literal["document", "quiz", "flashcard"]


class SearchResultItem(BaseModel):
    """
    Display projection of a matched record.

    For flashcards ``id`` is the owning document's id, since flashcards
    are opened through their document.
    """
    id: str
    title: str
    subtitle: str
    category: SearchCategory
    date: datetime


class SearchResultSet(BaseModel):
    """Results grouped by category, each group newest first."""
    documents: list[SearchResultItem] = Field(default_factory=list)
    quizzes: list[SearchResultItem] = Field(default_factory=list)
    flashcards: list[SearchResultItem] = Field(default_factory=list)

    def flatten(self) -> list[SearchResultItem]:
        """Documents, then quizzes, then flashcards."""
        return [*self.documents, *self.quizzes, *self.flashcards]

    @property
    def total(self) -> int:
        return len(self.documents) + len(self.quizzes) + len(self.flashcards)


class SearchResponse(BaseModel):
    """Envelope returned by GET /api/search."""
    success: bool = True
    data: SearchResultSet
