"""
Route modules for the Study Assistant API.

Each module defines a FastAPI APIRouter for a specific domain.
All routers are collected in ``all_routers`` for easy inclusion.
"""

from app.api.routes.system import router as system_router
from app.api.routes.search import router as search_router
from app.api.routes.documents import router as documents_router
from app.api.routes.ai import router as ai_router
from app.api.routes.flashcards import router as flashcards_router
from app.api.routes.quizzes import router as quizzes_router

all_routers = [
    system_router,
    search_router,
    documents_router,
    ai_router,
    flashcards_router,
    quizzes_router,
]

__all__ = ["all_routers"]
