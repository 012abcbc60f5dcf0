"""
Document service: upload, listing, retrieval, deletion and dashboard stats.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from app import pdf
from app.config import Config
from app.db import Database, db
from app.errors import NotFoundError
from app.storage import BlobStore, blob_store

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
RECENT_ACTIVITY_LIMIT = 5


def document_view(doc: dict) -> dict:
    """Public shape of a document record."""
    return {
        "id": doc["id"],
        "file_name": doc["original_name"],
        "file_size": doc["file_size"],
        "page_count": doc.get("page_count"),
        "summary": doc.get("summary"),
        "uploaded_at": doc["uploaded_at"],
    }


class DocumentService:
    """Manages uploaded PDFs and their records."""

    def __init__(
        self,
        database: Optional[Database] = None,
        store: Optional[BlobStore] = None,
        extractor: Callable[[str], pdf.PDFContent] = pdf.extract_text,
    ):
        self.db = database or db
        self.store = store or blob_store
        self.extract = extractor

    async def upload(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        mime_type: Optional[str],
    ) -> dict:
        """
        Store an uploaded PDF and create its record.

        Text extraction failures are logged and leave the document with
        no text and zero pages; the upload itself still succeeds.

        Raises:
            ValueError: If the file is empty, not a PDF or too large.
        """
        if not content:
            raise ValueError("No file uploaded")
        if mime_type != PDF_MIME_TYPE:
            raise ValueError("Only PDF files are allowed")
        if len(content) > Config.MAX_UPLOAD_BYTES:
            raise ValueError(
                f"File exceeds the {Config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB upload limit"
            )

        suffix = Path(filename or "").suffix or ".pdf"
        path = await asyncio.to_thread(self.store.save, content, suffix)

        page_count = 0
        text = ""
        try:
            extracted = await asyncio.to_thread(self.extract, str(path))
            page_count = extracted.page_count
            text = extracted.text
        except pdf.PDFExtractionError as e:
            logger.warning("Could not extract text from %s: %s", filename, e)

        doc = self.db.create_document(
            user_id=user_id,
            file_name=path.name,
            original_name=filename or path.name,
            file_path=str(path),
            file_size=len(content),
            mime_type=mime_type,
            page_count=page_count,
            extracted_text=text,
        )
        logger.info("User %s uploaded %s (%d pages)", user_id, doc["original_name"], page_count)
        return document_view(doc)

    async def list_documents(self, user_id: str) -> dict:
        """All of a user's documents, newest first."""
        documents = self.db.list_documents(user_id)
        return {"documents": [document_view(d) for d in documents]}

    async def get(self, user_id: str, document_id: str) -> dict:
        """
        Raises:
            NotFoundError: If the user has no such document.
        """
        doc = self.db.get_document(document_id, user_id)
        if not doc:
            raise NotFoundError("Document not found")
        return {"document": document_view(doc)}

    async def file_path(self, user_id: str, document_id: str) -> Path:
        """Path of the stored PDF."""
        doc = self.db.get_document(document_id, user_id)
        if not doc:
            raise NotFoundError("Document not found")
        path = self.store.resolve(doc["file_path"])
        if not path.exists():
            raise NotFoundError("Document file not found")
        return path

    async def delete(self, user_id: str, document_id: str) -> None:
        """Delete a document with its flashcards, quizzes, chat and file."""
        doc = self.db.get_document(document_id, user_id)
        if not doc:
            raise NotFoundError("Document not found")

        self.db.delete_document(document_id, user_id)
        await asyncio.to_thread(self.store.delete, doc["file_path"])
        pdf.clear_cache(doc["file_path"])
        logger.info("User %s deleted document %s", user_id, document_id)

    async def stats(self, user_id: str) -> dict:
        """Counts and recent activity for the dashboard."""
        recent_documents = self.db.list_documents(user_id, limit=RECENT_ACTIVITY_LIMIT)
        recent_quizzes = self.db.get_completed_quizzes(user_id, limit=RECENT_ACTIVITY_LIMIT)

        return {
            "stats": {
                "total_documents": self.db.count_documents(user_id),
                "total_flashcards": self.db.count_flashcards(user_id),
                "completed_quizzes": self.db.count_completed_quizzes(user_id),
            },
            "recent_activity": {
                "documents": [
                    {
                        "id": d["id"],
                        "name": d["original_name"],
                        "date": d["uploaded_at"],
                        "type": "document",
                    }
                    for d in recent_documents
                ],
                "quizzes": [
                    {
                        "id": q["id"],
                        "name": q["title"],
                        "score": q["score"],
                        "total": q["total_questions"],
                        "date": q["completed_at"],
                        "type": "quiz",
                    }
                    for q in recent_quizzes
                ],
            },
        }


# Singleton
document_service = DocumentService()
