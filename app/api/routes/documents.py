"""
Document routes: upload, list, stats, fetch, download and delete PDFs
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from app.api.dependencies import get_current_user_id
from app.api.models.common import ApiResponse
from app.errors import NotFoundError
from app.services.document_service import document_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.post("/upload", response_model=ApiResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(None),
    user_id: str = Depends(get_current_user_id),
):
    """
    Upload a PDF.

    The text is extracted right away; a PDF whose text cannot be read is still
    stored with a page count of 0.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        content = await file.read()
        document = await document_service.upload(
            user_id=user_id,
            filename=file.filename or "",
            content=content,
            mime_type=file.content_type or "",
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Upload error: %s", e)
        raise HTTPException(status_code=500, detail="Failed to upload document")
    finally:
        await file.close()

    return ApiResponse(data={"document": document}, message="Document uploaded successfully")


@router.get("", response_model=ApiResponse)
async def list_documents(user_id: str = Depends(get_current_user_id)):
    """The user's documents, newest first."""
    return ApiResponse(data=await document_service.list_documents(user_id))


@router.get("/stats", response_model=ApiResponse)
async def get_stats(user_id: str = Depends(get_current_user_id)):
    """Dashboard counts and recent activity."""
    try:
        return ApiResponse(data=await document_service.stats(user_id))
    except Exception as e:
        logger.error("Stats error: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch stats")


@router.get("/{document_id}", response_model=ApiResponse)
async def get_document(document_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        return ApiResponse(data=await document_service.get(user_id, document_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{document_id}/file")
async def get_document_file(document_id: str, user_id: str = Depends(get_current_user_id)):
    """Stream the stored PDF."""
    try:
        path = await document_service.file_path(user_id, document_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return FileResponse(path, media_type="application/pdf")


@router.delete("/{document_id}", response_model=ApiResponse)
async def delete_document(document_id: str, user_id: str = Depends(get_current_user_id)):
    """Delete a document together with its flashcards, quizzes and chat."""
    try:
        await document_service.delete(user_id, document_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Delete error for document %s: %s", document_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete document")

    return ApiResponse(message="Document deleted successfully")
