"""
Search routes: GET /search (documents, quizzes and flashcards at once)
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.dependencies import get_current_user_id
from app.api.models.search import SearchResponse
from app.search import SearchExecutionError, SearchValidationError
from app.services.search_service import search_service

router = APIRouter(tags=["Search"])


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("", description="Search query"),
    user_id: str = Depends(get_current_user_id),
):
    """
    Search the user's documents, quizzes and flashcards.

    Matching is a case-insensitive substring match; each category returns at
    most five items, newest first.
    """
    try:
        results = await search_service.search(q, user_id)
    except SearchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SearchExecutionError as e:
        # Already logged with its cause by the executor
        raise HTTPException(status_code=500, detail=str(e))

    return SearchResponse(data=results)
