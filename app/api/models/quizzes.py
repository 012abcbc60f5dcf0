"""
Quiz-related API models.
"""

from typing import Optional

from pydantic import BaseModel


class QuizSubmitRequest(BaseModel):
    """Chosen option index per question, in question order; null for unanswered."""
    answers: list[Optional[int]]
