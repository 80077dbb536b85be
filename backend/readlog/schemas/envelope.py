"""
Readlog Backend — Response Envelope Schemas
=============================================

What:  The uniform wrapper every endpoint responds with.
Why:   Clients check one field (`success`) and then read `data` or `error`.

    Success:  {"success": true,  "data": ...}
    Error:    {"success": false, "error": "not_found", "message": "...",
               "details": {...} | null, "request_id": "a1b2c3d4"}
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = Field(default=True, description="Always true for successful responses")
    data: T = Field(description="Operation result")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "invalid_identifier", "not_found")
        message: Human-readable description
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
