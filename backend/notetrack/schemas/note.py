"""
NoteTrack Backend — Note Request/Response Schemas
===================================================

What:  Pydantic models defining the note API contract.
How:   FastAPI validates request bodies against NoteCreate/NoteUpdate before
       a handler runs; anything failing here never reaches the database.
       Responses are serialized from ORM rows through NoteOut.

Validation rules (applied after trimming where noted):
    title                1-200 chars, trimmed, required
    content              non-blank, at most 10000 chars, required
    category             1-100 chars, trimmed, required
    tags                 each trimmed, at most 50 chars
    programmingLanguage  trimmed, defaults to settings.default_programming_language
    description          trimmed, at most 500 chars
    priority             low | medium | high
    codeContent          at most 20000 chars
    topicContent         at most 15000 chars
    type                 ignored on input; always "note"
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import ConfigDict, Field, StringConstraints, field_validator

from notetrack.config import settings
from notetrack.schemas.common import CamelModel

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Category = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]
Language = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
Priority = Literal["low", "medium", "high"]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(CamelModel):
    """
    What:  Body of POST /api/notes.
    Unknown fields (including `type`, `id`, `createdAt`) are ignored.
    """
    title: Title
    content: str = Field(max_length=10000)
    tags: List[Tag] = Field(default_factory=list)
    category: Category
    programming_language: Language = Field(
        default_factory=lambda: settings.default_programming_language
    )
    description: Optional[Description] = None
    is_revision: bool = True
    priority: Priority = "medium"
    code_content: Optional[str] = Field(default=None, max_length=20000)
    topic_content: Optional[str] = Field(default=None, max_length=15000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Content is required")
        return v


class NoteUpdate(NoteCreate):
    """
    What:  Body of PUT /api/notes/{id}.
    How:   Validated exactly like a create; the service writes only the
           fields the client actually sent (`exclude_unset`).
    """


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteOut(CamelModel):
    """
    What:  Full representation of a stored note.
    customOrder carries the note's rank in listings; it is left unset (and
    omitted from the JSON) when the note has no rank entry.
    """
    id: str
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    category: str
    programming_language: str
    description: Optional[str] = None
    is_revision: bool
    priority: str
    code_content: Optional[str] = None
    topic_content: Optional[str] = None
    type: str
    created_at: datetime
    updated_at: datetime
    custom_order: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v) if isinstance(v, uuid.UUID) else v

    @classmethod
    def from_note(cls, note, custom_order: Optional[int] = None) -> "NoteOut":
        out = cls.model_validate(note)
        out.custom_order = custom_order
        return out


class NoteListResponse(CamelModel):
    """
    What:  Offset/limit page of notes for GET /api/notes.
    page = skip // limit + 1, totalPages = ceil(total / limit).
    """
    notes: List[NoteOut]
    total: int = Field(description="Total number of notes matching the filters")
    page: int
    total_pages: int


class OrderedNotesResponse(CamelModel):
    """Revision notes in resolved display order."""
    notes: List[NoteOut]
    total: int


class NoteDeleteResponse(CamelModel):
    message: str
    id: str


class StatBucket(CamelModel):
    """One group of a count aggregation: the grouped value and its count."""
    id: str
    count: int


class NoteStatsResponse(CamelModel):
    total: int
    revision_count: int
    priority_stats: List[StatBucket]
    category_stats: List[StatBucket]
