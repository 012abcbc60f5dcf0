"""
Flashcard routes: favorites, per-document decks
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_current_user_id
from app.api.models.common import ApiResponse
from app.errors import NotFoundError
from app.services.flashcard_service import flashcard_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flashcards", tags=["Flashcards"])


@router.get("/favorites", response_model=ApiResponse)
async def favorites(user_id: str = Depends(get_current_user_id)):
    """Favorite flashcards across all documents, newest first."""
    return ApiResponse(data=await flashcard_service.favorites(user_id))


@router.get("/document/{document_id}", response_model=ApiResponse)
async def document_flashcards(document_id: str, user_id: str = Depends(get_current_user_id)):
    return ApiResponse(data=await flashcard_service.list_for_document(user_id, document_id))


@router.patch("/{flashcard_id}/favorite", response_model=ApiResponse)
async def toggle_favorite(flashcard_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        return ApiResponse(data=await flashcard_service.toggle_favorite(user_id, flashcard_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/document/{document_id}", response_model=ApiResponse)
async def delete_document_flashcards(document_id: str, user_id: str = Depends(get_current_user_id)):
    """Drop a document's deck so that the next request generates a new one."""
    try:
        deleted = await flashcard_service.delete_for_document(user_id, document_id)
    except Exception as e:
        logger.error("Flashcard delete error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete flashcards")

    return ApiResponse(data={"deleted": deleted}, message="Flashcards deleted successfully")
