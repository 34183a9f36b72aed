"""
NoteTrack Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the note and ordering services.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py turn them into structured
       JSON error responses with the matching HTTP status code.
Who:   Raised by services and route helpers; caught by global handlers.

Exception Hierarchy:
    NoteTrackError (base)
    ├── ValidationError   → 400 Bad Request
    ├── NotFoundError     → 404 Not Found
    ├── ConflictError     → 409 Conflict (unique key already taken)
    └── DatabaseError     → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class NoteTrackError(Exception):
    """
    Base exception for all NoteTrack application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteTrackError):
    """
    Raised when client input fails a business rule that the request
    schemas cannot express, e.g. a malformed note identity in a path or
    inside a bulk reorder payload.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid note ID format: 'abc'",
            "details": {"field": "noteId"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(NoteTrackError):
    """
    Raised when a requested note does not exist.

    HTTP: 404 Not Found

    SQLAlchemy returns None for missing rows; the service layer converts
    that None into this exception so routes stay free of status handling.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(NoteTrackError):
    """
    Raised when a write collides with a unique constraint.

    HTTP: 409 Conflict

    The only unique key besides primary keys is ``note_orders.note_id``.
    Upserts never trip it, but a plain batch insert racing another
    initializer process can.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NoteTrackError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic. Driver errors,
    SQL text and constraint names go to the server log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
