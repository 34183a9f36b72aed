"""
NoteTrack Backend — NoteOrder SQLAlchemy Model
================================================

What:  ORM model for the `note_orders` table: one optional display rank
       per note, kept apart from the note row itself.

Invariants:
    - note_id is UNIQUE: a note has zero or one rank entries
    - the rank value itself is not unique; ties are broken by the resolver
    - no foreign key to notes: deleting a note leaves its rank entry behind
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notetrack.database import Base
from notetrack.models.note import utcnow


class NoteOrder(Base):
    """Rank entry mapping a note identity to an integer display rank."""

    __tablename__ = "note_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    note_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, unique=True)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_note_orders_order", "order"),
    )

    def __repr__(self) -> str:
        return f"<NoteOrder(note_id={self.note_id}, order={self.order})>"
