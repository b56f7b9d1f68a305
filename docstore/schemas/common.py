"""Common schemas used across multiple endpoints."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class QuotaErrorResponse(ErrorResponse):
    """Response model for storage quota errors."""
    used: int
    limit: int
    required: int
    used_mb: str
    limit_mb: str
    required_mb: str
