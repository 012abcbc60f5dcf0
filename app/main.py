"""
Study Assistant - FastAPI Application
Stores a user's PDFs and the flashcards, quizzes and chats generated from them,
and searches across all three.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.middleware import register_middleware
from app.api.routes import all_routers
from app.config import config
from app.db import db
from app.llm import close_llm_provider

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting Study Assistant API...")

    try:
        config.validate()
        logger.info("Database: %s, uploads: %s", config.DATABASE_PATH, config.UPLOAD_DIR)

        db.initialize()

        logger.info("Study Assistant API started successfully")

    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise
    except Exception as e:
        logger.error("Startup error: %s", e)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Study Assistant API...")
    await close_llm_provider()
    db.close()
    logger.info("Study Assistant API stopped")


# Create FastAPI app
app = FastAPI(
    title="Study Assistant API",
    description="Study documents, flashcards and quizzes with unified search",
    version="1.0.0",
    lifespan=lifespan
)

register_middleware(app)

for router in all_routers:
    app.include_router(router, prefix="/api")


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": message},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error"},
    )


# Entry point for running with uvicorn directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=False,
        log_level=config.LOG_LEVEL.lower()
    )
