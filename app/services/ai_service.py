"""
AI service: chat, summaries, concept explanations, flashcards and quizzes
generated from a document's text.
"""

import asyncio
import json
import logging
import re
from typing import Awaitable, Callable, Optional

from app import llm, pdf
from app.db import Database, db
from app.errors import GenerationError, NotFoundError

logger = logging.getLogger(__name__)

CHAT_CONTEXT_CHARS = 30000
SUMMARY_CONTEXT_CHARS = 50000
GENERATION_CONTEXT_CHARS = 40000
CHAT_HISTORY_MESSAGES = 6

DEFAULT_FLASHCARD_COUNT = 10
DEFAULT_QUIZ_QUESTION_COUNT = 5

CHAT_PROMPT = """You are an AI learning assistant. You have access to the following document content:

---DOCUMENT START---
{document}
---DOCUMENT END---

{history}User's question: {message}

Please answer the user's question based on the document content. If the answer is not in the document, say so and provide general knowledge if applicable. Be helpful, clear, and educational."""

SUMMARY_PROMPT = """You are an expert summarizer. Please provide a comprehensive yet concise summary of the following document.

The summary should:
1. Capture the main topics and key points
2. Be organized with clear structure
3. Highlight important concepts, definitions, and conclusions
4. Be suitable for study and review purposes

Document content:
{document}

Please provide the summary:"""

EXPLAIN_PROMPT = """You are an expert educator. Based on the following document content, provide a detailed explanation of the concept: "{concept}"

Your explanation should:
1. Define the concept clearly
2. Explain how it relates to the document content
3. Provide examples if applicable
4. Use simple language suitable for learning
5. Include any relevant context from the document

Document content:
{document}

Please explain the concept "{concept}":"""

FLASHCARDS_PROMPT = """You are an expert educator creating study flashcards. Based on the following document, create {count} flashcards that help students learn and memorize the key concepts.

Each flashcard should:
1. Have a clear, specific question
2. Have a concise but complete answer
3. Focus on important concepts, definitions, facts, or relationships
4. Be useful for study and review

Document content:
{document}

Please generate {count} flashcards in the following JSON format ONLY (no other text):
[
  {{
    "question": "What is...?",
    "answer": "The answer is..."
  }}
]

JSON output:"""

QUIZ_PROMPT = """You are an expert educator creating a multiple-choice quiz. Based on the following document, create {count} multiple-choice questions that test understanding of the key concepts.

Each question should:
1. Have a clear question
2. Have exactly 4 options (A, B, C, D)
3. Have only ONE correct answer
4. Include an explanation of why the correct answer is right
5. Cover important concepts from the document

Document content:
{document}

Please generate {count} quiz questions in the following JSON format ONLY (no other text):
[
  {{
    "question": "What is...?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0,
    "explanation": "The correct answer is A because..."
  }}
]

Note: correctAnswer is the index (0-3) of the correct option.

JSON output:"""

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def parse_json_array(text: str) -> list:
    """
    Pull the first JSON array out of a model reply.

    Raises:
        GenerationError: If no parseable array is present.
    """
    match = _JSON_ARRAY.search(text or "")
    if not match:
        raise GenerationError("Model reply contained no JSON array")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise GenerationError("Model reply is not a JSON array")
    return data


def parse_flashcards(text: str, count: int) -> list[dict]:
    cards = []
    for item in parse_json_array(text)[:count]:
        if not isinstance(item, dict) or not item.get("question") or not item.get("answer"):
            raise GenerationError("Flashcard is missing a question or answer")
        cards.append({"question": str(item["question"]), "answer": str(item["answer"])})
    return cards


def parse_quiz_questions(text: str, count: int) -> list[dict]:
    questions = []
    for item in parse_json_array(text)[:count]:
        if not isinstance(item, dict):
            raise GenerationError("Quiz question is not an object")
        correct = item.get("correctAnswer", item.get("correct_answer"))
        options = item.get("options")
        if not item.get("question") or not isinstance(options, list) or not isinstance(correct, int):
            raise GenerationError("Quiz question is missing its question, options or answer")
        if not 0 <= correct < len(options):
            raise GenerationError(f"Correct answer index {correct} is out of range")
        questions.append({
            "question": str(item["question"]),
            "options": [str(o) for o in options],
            "correct_answer": correct,
            "explanation": str(item.get("explanation", "")),
        })
    if not questions:
        raise GenerationError("Model returned no quiz questions")
    return questions


def pending_quiz_view(quiz: dict) -> dict:
    """A quiz as shown while taking it: no answers or explanations."""
    return {
        "id": quiz["id"],
        "title": quiz["title"],
        "questions": [
            {"question": q["question"], "options": q["options"]}
            for q in quiz["questions"]
        ],
        "total_questions": quiz["total_questions"],
    }


class AIService:
    """Runs generation tasks against a user's documents."""

    def __init__(
        self,
        database: Optional[Database] = None,
        generate: Optional[Callable[[str], Awaitable[str]]] = None,
        extractor: Callable[[str], pdf.PDFContent] = pdf.extract_text,
    ):
        self.db = database or db
        self._generate = generate
        self.extract = extractor

    async def generate(self, prompt: str) -> str:
        if self._generate is not None:
            return await self._generate(prompt)
        return await llm.generate(prompt)

    async def _document_with_text(self, document_id: str, user_id: str) -> tuple[dict, str]:
        """
        Load a document and its text, extracting it lazily if missing.

        Raises:
            NotFoundError: If the user has no such document.
        """
        doc = self.db.get_document(document_id, user_id, include_text=True)
        if not doc:
            raise NotFoundError("Document not found")

        text = doc.get("extracted_text")
        if not text:
            content = await asyncio.to_thread(self.extract, doc["file_path"])
            text = content.text
            self.db.set_document_text(document_id, text, content.page_count)
        return doc, text

    async def chat(self, user_id: str, document_id: str, message: str) -> dict:
        """Answer a question about a document, keeping the conversation."""
        if not message or not message.strip():
            raise ValueError("Message is required")

        _, text = await self._document_with_text(document_id, user_id)
        session = self.db.get_or_create_chat_session(document_id, user_id)

        recent = session["messages"][-CHAT_HISTORY_MESSAGES:]
        history = "\n".join(
            f"{'User' if m['role'] == 'user' else 'Assistant'}: {m['content']}"
            for m in recent
        )
        prompt = CHAT_PROMPT.format(
            document=text[:CHAT_CONTEXT_CHARS],
            history=f"Previous conversation:\n{history}\n\n" if history else "",
            message=message,
        )
        answer = await self.generate(prompt)

        self.db.add_chat_messages(session["id"], [
            {"role": "user", "content": message},
            {"role": "assistant", "content": answer},
        ])
        return {"message": answer, "session_id": session["id"]}

    async def chat_history(self, user_id: str, document_id: str) -> dict:
        session = self.db.get_chat_session(document_id, user_id)
        return {"messages": session["messages"] if session else []}

    async def summary(self, user_id: str, document_id: str) -> dict:
        """Return the stored summary, generating and storing it on first use."""
        doc, text = await self._document_with_text(document_id, user_id)
        if doc.get("summary"):
            return {"summary": doc["summary"], "cached": True}

        summary = await self.generate(SUMMARY_PROMPT.format(document=text[:SUMMARY_CONTEXT_CHARS]))
        self.db.set_document_summary(document_id, summary)
        logger.info("Generated summary for document %s", document_id)
        return {"summary": summary, "cached": False}

    async def explain(self, user_id: str, document_id: str, concept: str) -> dict:
        if not concept or not concept.strip():
            raise ValueError("Concept is required")

        _, text = await self._document_with_text(document_id, user_id)
        explanation = await self.generate(
            EXPLAIN_PROMPT.format(concept=concept, document=text[:CHAT_CONTEXT_CHARS])
        )
        return {"explanation": explanation}

    async def flashcards(
        self,
        user_id: str,
        document_id: str,
        count: int = DEFAULT_FLASHCARD_COUNT,
    ) -> dict:
        """Return a document's flashcards, generating them if it has none yet."""
        _, text = await self._document_with_text(document_id, user_id)

        existing = self.db.get_flashcards(document_id, user_id)
        if existing:
            return {"flashcards": [_flashcard_view(f) for f in existing], "cached": True}

        reply = await self.generate(
            FLASHCARDS_PROMPT.format(count=count, document=text[:GENERATION_CONTEXT_CHARS])
        )
        cards = self.db.add_flashcards(document_id, user_id, parse_flashcards(reply, count))
        logger.info("Generated %d flashcards for document %s", len(cards), document_id)
        return {"flashcards": [_flashcard_view(f) for f in cards], "cached": False}

    async def quiz(
        self,
        user_id: str,
        document_id: str,
        count: int = DEFAULT_QUIZ_QUESTION_COUNT,
    ) -> dict:
        """Generate and store a new quiz for a document."""
        doc, text = await self._document_with_text(document_id, user_id)

        reply = await self.generate(
            QUIZ_PROMPT.format(count=count, document=text[:GENERATION_CONTEXT_CHARS])
        )
        questions = parse_quiz_questions(reply, count)
        quiz = self.db.create_quiz(
            document_id=document_id,
            user_id=user_id,
            title=f"Quiz: {doc['original_name']}",
            questions=questions,
        )
        logger.info("Generated %d-question quiz for document %s", len(questions), document_id)
        return {"quiz": pending_quiz_view(quiz)}


def _flashcard_view(card: dict) -> dict:
    return {
        "id": card["id"],
        "question": card["question"],
        "answer": card["answer"],
        "is_favorite": card["is_favorite"],
    }


# Singleton
ai_service = AIService()
