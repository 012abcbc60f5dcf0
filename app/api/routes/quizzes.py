"""
Quiz routes: history, take, submit, review
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_current_user_id
from app.api.models.common import ApiResponse
from app.api.models.quizzes import QuizSubmitRequest
from app.errors import NotFoundError
from app.services.quiz_service import quiz_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


@router.get("/history", response_model=ApiResponse)
async def history(user_id: str = Depends(get_current_user_id)):
    """The 20 most recently completed quizzes."""
    return ApiResponse(data=await quiz_service.history(user_id))


@router.get("/{quiz_id}", response_model=ApiResponse)
async def get_quiz(quiz_id: str, user_id: str = Depends(get_current_user_id)):
    """A quiz that has not been taken yet, without its answers."""
    try:
        return ApiResponse(data=await quiz_service.pending(user_id, quiz_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{quiz_id}/submit", response_model=ApiResponse)
async def submit_quiz(
    quiz_id: str,
    request: QuizSubmitRequest,
    user_id: str = Depends(get_current_user_id),
):
    """
    Score a quiz.

    Answers are matched to questions by position; the quiz can be submitted
    only once.
    """
    try:
        return ApiResponse(data=await quiz_service.submit(user_id, quiz_id, request.answers))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Quiz submit error for %s: %s", quiz_id, e)
        raise HTTPException(status_code=500, detail="Failed to submit quiz")


@router.get("/{quiz_id}/result", response_model=ApiResponse)
async def get_result(quiz_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        return ApiResponse(data=await quiz_service.result(user_id, quiz_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
