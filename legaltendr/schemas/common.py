"""
LegalTendr Backend — Shared Response Schemas
==============================================

What:  Error envelope, health payload and small acknowledgement bodies
       used by every router.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error body returned by every exception handler.

    Example:
        {
            "error": "conflict",
            "message": "You have already swiped on this lawyer",
            "details": {"lawyer_id": "0917..."},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class CountResponse(BaseModel):
    """Number of rows an operation touched (reset, mark-as-read)."""
    count: int = Field(ge=0)


class MessageAck(BaseModel):
    message: str
