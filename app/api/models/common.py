"""
Response envelope shared by every endpoint.
"""

from typing import Any, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """``{success, data?, message?}``"""
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response."""
    success: bool = False
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
