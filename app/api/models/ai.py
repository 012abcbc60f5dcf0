"""
Request bodies for the AI endpoints.
"""

from pydantic import BaseModel


class ChatRequest(BaseModel):
    """Question about a document."""
    message: str = ""


class ExplainRequest(BaseModel):
    """Concept to explain from a document."""
    concept: str = ""
