"""
NoteTrack Backend — Note SQLAlchemy Model
===========================================

What:  ORM model for the `notes` table.
Who:   Queried and written by NoteService and OrderService.

Table notes:
    - UUID primary key generated in Python, exposed to clients as a string
    - tags: JSON array of strings (portable across PostgreSQL and SQLite)
    - type: constant "note", set on insert and never updated
    - created_at / updated_at: UTC, server-assigned
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notetrack.database import Base

PRIORITIES = ("low", "medium", "high")
NOTE_TYPE = "note"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A titled content record, optionally flagged for revision tracking.

    Revision notes (is_revision=True) take part in manual ordering; their
    ranks live in `note_orders`, not on this row.
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    programming_language: Mapped[str] = mapped_column(
        String(100), nullable=False, default="javascript"
    )
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_revision: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    code_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    topic_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=NOTE_TYPE)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_notes_category", "category"),
        Index("idx_notes_is_revision", "is_revision"),
        Index("idx_notes_priority", "priority"),
        Index("idx_notes_created_at", created_at.desc()),
        Index("idx_notes_updated_at", updated_at.desc()),
        CheckConstraint(
            "priority IN (" + ", ".join(f"'{p}'" for p in PRIORITIES) + ")",
            name="ck_notes_priority",
        ),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title[:30]}', is_revision={self.is_revision})>"
