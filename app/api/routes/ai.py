"""
AI routes: chat, summary, explain, flashcard and quiz generation
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.dependencies import get_current_user_id
from app.api.models.ai import ChatRequest, ExplainRequest
from app.api.models.common import ApiResponse
from app.errors import NotFoundError
from app.services.ai_service import (
    DEFAULT_FLASHCARD_COUNT,
    DEFAULT_QUIZ_QUESTION_COUNT,
    ai_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/chat/{document_id}", response_model=ApiResponse)
async def chat(
    document_id: str,
    request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
):
    """
    Ask a question about a document.

    The answer is grounded in the document text and the last few turns of the
    conversation; both the question and the answer are stored.
    """
    try:
        return ApiResponse(data=await ai_service.chat(user_id, document_id, request.message))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Chat error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to process chat message")


@router.get("/chat/{document_id}/history", response_model=ApiResponse)
async def chat_history(document_id: str, user_id: str = Depends(get_current_user_id)):
    return ApiResponse(data=await ai_service.chat_history(user_id, document_id))


@router.post("/summary/{document_id}", response_model=ApiResponse)
async def summary(document_id: str, user_id: str = Depends(get_current_user_id)):
    """Summarize a document; the summary is generated once and then reused."""
    try:
        return ApiResponse(data=await ai_service.summary(user_id, document_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Summary error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to generate summary")


@router.post("/explain/{document_id}", response_model=ApiResponse)
async def explain(
    document_id: str,
    request: ExplainRequest,
    user_id: str = Depends(get_current_user_id),
):
    try:
        return ApiResponse(data=await ai_service.explain(user_id, document_id, request.concept))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Explain error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to explain concept")


@router.post("/flashcards/{document_id}", response_model=ApiResponse)
async def flashcards(
    document_id: str,
    response: Response,
    count: int = Query(DEFAULT_FLASHCARD_COUNT, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
):
    """
    Flashcards for a document.

    Existing flashcards are returned as they are; otherwise a new deck is
    generated and stored (201).
    """
    try:
        data = await ai_service.flashcards(user_id, document_id, count)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Flashcard generation error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to generate flashcards")

    if not data["cached"]:
        response.status_code = 201
    return ApiResponse(data=data)


@router.post("/quiz/{document_id}", response_model=ApiResponse, status_code=201)
async def quiz(
    document_id: str,
    count: int = Query(DEFAULT_QUIZ_QUESTION_COUNT, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
):
    """Generate a new quiz; its questions are returned without the answers."""
    try:
        return ApiResponse(data=await ai_service.quiz(user_id, document_id, count))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Quiz generation error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to generate quiz")
