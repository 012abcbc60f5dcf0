"""
Quiz service: taking, scoring and reviewing generated quizzes.
"""

import logging
import math
from typing import Optional

from app.db import Database, db
from app.errors import NotFoundError
from app.services.ai_service import pending_quiz_view

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


def percentage(score: Optional[int], total: int) -> int:
    """Score as a whole percentage, halves rounded up."""
    if not total or score is None:
        return 0
    return math.floor(score * 100 / total + 0.5)


def question_results(questions: list[dict]) -> list[dict]:
    return [
        {
            "question": q["question"],
            "options": q["options"],
            "user_answer": q.get("user_answer"),
            "correct_answer": q["correct_answer"],
            "is_correct": q.get("user_answer") == q["correct_answer"],
            "explanation": q.get("explanation", ""),
        }
        for q in questions
    ]


class QuizService:
    """Handles quiz submission and review."""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or db

    async def pending(self, user_id: str, quiz_id: str) -> dict:
        """
        A quiz that has not been taken yet.

        Raises:
            NotFoundError: If there is no such pending quiz for the user.
        """
        quiz = self.db.get_quiz(quiz_id, user_id, completed=False)
        if not quiz:
            raise NotFoundError("Quiz not found")
        return {"quiz": pending_quiz_view(quiz)}

    async def submit(self, user_id: str, quiz_id: str, answers: list[Optional[int]]) -> dict:
        """
        Score the answers (by question position) and complete the quiz.

        Missing answers count as wrong.

        Raises:
            NotFoundError: If the user has no such quiz.
            ValueError: If the quiz was already completed.
        """
        quiz = self.db.get_quiz(quiz_id, user_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        if quiz["is_completed"]:
            raise ValueError("Quiz already completed")

        answered = []
        for index, question in enumerate(quiz["questions"]):
            user_answer = answers[index] if index < len(answers) else None
            answered.append({**question, "user_answer": user_answer})

        results = question_results(answered)
        score = sum(1 for r in results if r["is_correct"])
        self.db.complete_quiz(quiz_id, answered, score)
        logger.info("User %s scored %d/%d on quiz %s", user_id, score, quiz["total_questions"], quiz_id)

        return {
            "score": score,
            "total_questions": quiz["total_questions"],
            "percentage": percentage(score, quiz["total_questions"]),
            "results": results,
        }

    async def result(self, user_id: str, quiz_id: str) -> dict:
        """
        Review a completed quiz.

        Raises:
            NotFoundError: If there is no such completed quiz for the user.
        """
        quiz = self.db.get_quiz(quiz_id, user_id, completed=True)
        if not quiz:
            raise NotFoundError("Quiz not found")

        return {
            "quiz": {
                "id": quiz["id"],
                "title": quiz["title"],
                "score": quiz["score"],
                "total_questions": quiz["total_questions"],
                "percentage": percentage(quiz["score"], quiz["total_questions"]),
                "completed_at": quiz["completed_at"],
                "results": question_results(quiz["questions"]),
            }
        }

    async def history(self, user_id: str) -> dict:
        """The most recently completed quizzes."""
        quizzes = self.db.get_completed_quizzes(user_id, limit=HISTORY_LIMIT)
        return {
            "quizzes": [
                {
                    "id": q["id"],
                    "title": q["title"],
                    "document_name": q.get("document_name"),
                    "score": q["score"],
                    "total_questions": q["total_questions"],
                    "percentage": percentage(q["score"], q["total_questions"]),
                    "completed_at": q["completed_at"],
                }
                for q in quizzes
            ]
        }


# Singleton
quiz_service = QuizService()
