"""
NoteTrack Backend — Shared Pydantic Schemas
=============================================

What:  Base model with the camelCase wire convention plus the response
       shapes shared by every router (errors, messages, health).
How:   Python attributes stay snake_case; `alias_generator=to_camel` makes
       the JSON field names camelCase (isRevision, createdAt, noteId...).
       `populate_by_name` lets services build models with Python names.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every API schema: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    message: str = Field(description="Human-readable result message")


class ErrorResponse(CamelModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Invalid note ID format: 'abc'",
            "details": {"field": "noteId"},
            "requestId": "3f2a9c1e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
