"""
Pydantic models (schemas) for API request/response types.

All models are re-exported here for convenience:
    from app.api.models import SearchResponse, ChatRequest, ...
"""

from app.api.models.common import (
    ApiResponse,
    ErrorResponse,
    HealthResponse,
)
from app.api.models.search import (
    SearchCategory,
    SearchResultItem,
    SearchResultSet,
    SearchResponse,
)
from app.api.models.ai import (
    ChatRequest,
    ExplainRequest,
)
from app.api.models.quizzes import (
    QuizSubmitRequest,
)

__all__ = [
    # Common
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
    # Search
    "SearchCategory",
    "SearchResultItem",
    "SearchResultSet",
    "SearchResponse",
    # AI
    "ChatRequest",
    "ExplainRequest",
    # Quizzes
    "QuizSubmitRequest",
]
