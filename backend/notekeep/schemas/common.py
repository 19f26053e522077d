"""
Notekeep Backend: Shared Response Schemas
=========================================

What:  Envelope pieces shared by every router: plain message responses,
       pagination metadata, the error body, and the health payload.
How:   Every success body carries `success: true`; every error body carries
       `success: false` plus a machine-readable `error` code.
"""

import math
from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Success response with no payload beyond a message."""
    success: bool = True
    message: str


class Pagination(BaseModel):
    """
    Offset pagination metadata.

    pages is ceil(total / limit) and is 0 for an empty result.
    """
    total: int = Field(description="Total number of matching notes")
    page: int = Field(description="Current page (1-based)")
    pages: int = Field(description="Total number of pages")
    limit: int = Field(description="Items per page")

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, pages=math.ceil(total / limit) if limit else 0, limit=limit)


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "success": false,
            "error": "not_found",
            "message": "Note not found",
            "request_id": "1a2b3c4d"
        }
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and store status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
