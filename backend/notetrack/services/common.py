"""
NoteTrack Backend — Service Helpers
=====================================

What:  Identity parsing and store-error translation shared by NoteService
       and OrderService.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError

from notetrack.exceptions import ConflictError, DatabaseError, NoteTrackError, ValidationError

logger = logging.getLogger(__name__)


def parse_note_id(raw: Any, field: str = "id") -> uuid.UUID:
    """
    Parse a client-supplied note identity.

    Raises:
        ValidationError: `raw` is not a UUID string (→ 400)
    """
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"Invalid note ID format: '{raw}'",
            field=field,
        )


def translate_store_error(
    exc: Exception,
    message: str,
    context: Optional[Dict[str, Any]] = None,
) -> NoteTrackError:
    """
    Map an exception raised while talking to the store to an application
    error. Application errors pass through unchanged, unique-key violations
    become ConflictError, everything else becomes a generic DatabaseError.
    """
    if isinstance(exc, NoteTrackError):
        return exc
    ctx = dict(context or {})
    ctx["error_type"] = type(exc).__name__
    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error: %s | Context: %s", exc.orig, ctx)
        return ConflictError(context=ctx)
    logger.error("%s: %s", message, exc, exc_info=True)
    return DatabaseError(message=message, context=ctx)
