"""
Common schema types used across the API.
"""

from typing import List, Optional

from pydantic import BaseModel


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: Optional[str] = None
    errors: List[FieldErrorResponse] = []


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"
