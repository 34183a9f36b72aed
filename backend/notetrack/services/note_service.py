"""
NoteTrack Backend — Note Service (CRUD, Search, Statistics)
=============================================================

What:  Business logic for note records: create, read, update, delete,
       filtered listing with offset/limit pagination, distinct category
       and tag lists, and aggregate statistics.
How:   Builds SQLAlchemy queries against the request's AsyncSession and
       converts rows into response schemas. Store failures are translated
       into application exceptions (DatabaseError, ConflictError).
Who:   Called by the /api/notes route handlers.

Deleting a note leaves its rank entry in `note_orders`; the resolver
ignores entries whose note no longer exists.
"""

import logging
import math
from typing import List, Optional

from sqlalchemy import func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from notetrack.exceptions import DatabaseError, NotFoundError
from notetrack.models.note import NOTE_TYPE, Note, utcnow
from notetrack.schemas.note import (
    NoteCreate,
    NoteDeleteResponse,
    NoteListResponse,
    NoteOut,
    NoteStatsResponse,
    NoteUpdate,
    StatBucket,
)
from notetrack.services.common import parse_note_id, translate_store_error
from notetrack.services.order_service import order_service

logger = logging.getLogger(__name__)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# Table-valued function expanding a JSON array into one text row per element
_TAG_ELEMENT_FUNCTIONS = {
    "postgresql": "json_array_elements_text",
    "sqlite": "json_each",
}


def _tag_matches(dialect: str, pattern: str):
    """
    EXISTS clause: some element of Note.tags matches `pattern`.

    Elements are compared as decoded strings, so JSON escaping and the
    array's own punctuation never take part in the match.
    """
    fn_name = _TAG_ELEMENT_FUNCTIONS.get(dialect)
    if fn_name is None:
        raise DatabaseError(
            message="Tag search is not supported on this database.",
            context={"dialect": dialect},
        )
    elements = getattr(func, fn_name)(Note.tags).table_valued("value", joins_implicitly=True)
    return (
        select(literal(1))
        .select_from(elements)
        .where(elements.c.value.ilike(pattern, escape="\\"))
        .exists()
    )


class NoteService:
    """
    Business logic layer for note operations.

    Error Handling Strategy:
        NotFoundError and ValidationError propagate as-is. Anything raised
        by the store is wrapped by translate_store_error so internal details
        never reach the client.
    """

    async def _load(self, db: AsyncSession, raw_id: str) -> Note:
        note_id = parse_note_id(raw_id)
        note = await db.get(Note, note_id)
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def list_notes(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        is_revision: Optional[bool] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        skip: int = 0,
    ) -> NoteListResponse:
        """
        List notes matching every given filter, most recently updated first.

        Filters:
            category, is_revision, priority: exact match
            search: case-insensitive substring over title, content,
                    topic content and tags

        Returns:
            NoteListResponse; each note carries customOrder when ranked.
        """
        conditions = []
        if category:
            conditions.append(Note.category == category)
        if is_revision is not None:
            conditions.append(Note.is_revision.is_(is_revision))
        if priority:
            conditions.append(Note.priority == priority)
        if search and search.strip():
            pattern = _like_pattern(search.strip())
            conditions.append(
                or_(
                    Note.title.ilike(pattern, escape="\\"),
                    Note.content.ilike(pattern, escape="\\"),
                    Note.topic_content.ilike(pattern, escape="\\"),
                    _tag_matches(db.get_bind().dialect.name, pattern),
                )
            )

        try:
            result = await db.scalars(
                select(Note)
                .where(*conditions)
                .order_by(Note.updated_at.desc(), Note.id.asc())
                .offset(skip)
                .limit(limit)
            )
            notes = list(result.all())

            total = await db.scalar(
                select(func.count()).select_from(Note).where(*conditions)
            ) or 0

            ranks = await order_service.rank_map(db, [note.id for note in notes])
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch notes")

        return NoteListResponse(
            notes=[NoteOut.from_note(note, ranks.get(str(note.id))) for note in notes],
            total=total,
            page=skip // limit + 1,
            total_pages=math.ceil(total / limit),
        )

    async def get_note(self, db: AsyncSession, note_id: str) -> NoteOut:
        try:
            note = await self._load(db, note_id)
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch note", {"note_id": note_id})
        return NoteOut.from_note(note)

    async def create_note(self, db: AsyncSession, payload: NoteCreate) -> NoteOut:
        note = Note(**payload.model_dump(), type=NOTE_TYPE)
        try:
            db.add(note)
            await db.flush()
        except Exception as e:
            raise translate_store_error(e, "Failed to create note")
        logger.info("Note created: %s (revision=%s)", note.id, note.is_revision)
        return NoteOut.from_note(note)

    async def update_note(
        self, db: AsyncSession, note_id: str, payload: NoteUpdate
    ) -> NoteOut:
        """
        Apply the fields the client sent. `type` and `created_at` are never
        touched; `updated_at` is refreshed.
        """
        try:
            note = await self._load(db, note_id)
            for field, value in payload.model_dump(exclude_unset=True).items():
                setattr(note, field, value)
            note.updated_at = utcnow()
            await db.flush()
        except Exception as e:
            raise translate_store_error(e, "Failed to update note", {"note_id": note_id})
        logger.info("Note updated: %s", note.id)
        return NoteOut.from_note(note)

    async def delete_note(self, db: AsyncSession, note_id: str) -> NoteDeleteResponse:
        try:
            note = await self._load(db, note_id)
            await db.delete(note)
            await db.flush()
        except Exception as e:
            raise translate_store_error(e, "Failed to delete note", {"note_id": note_id})
        logger.info("Note deleted: %s", note_id)
        return NoteDeleteResponse(message="Note deleted successfully", id=note_id)

    async def list_categories(self, db: AsyncSession) -> List[str]:
        try:
            result = await db.scalars(
                select(Note.category).distinct().order_by(Note.category)
            )
            return list(result.all())
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch categories")

    async def list_tags(self, db: AsyncSession) -> List[str]:
        # Tags live in a JSON array per note; flattened here for portability
        try:
            result = await db.scalars(select(Note.tags))
            rows = result.all()
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch tags")
        return sorted({tag for tags in rows if tags for tag in tags})

    async def stats(self, db: AsyncSession) -> NoteStatsResponse:
        """Counts: all notes, revision notes, per priority, per category."""
        try:
            total = await db.scalar(select(func.count()).select_from(Note)) or 0
            revision_count = await db.scalar(
                select(func.count()).select_from(Note).where(Note.is_revision.is_(True))
            ) or 0

            priority_rows = await db.execute(
                select(Note.priority, func.count())
                .group_by(Note.priority)
                .order_by(Note.priority)
            )
            count_col = func.count().label("count")
            category_rows = await db.execute(
                select(Note.category, count_col)
                .group_by(Note.category)
                .order_by(count_col.desc(), Note.category.asc())
            )
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch statistics")

        return NoteStatsResponse(
            total=total,
            revision_count=revision_count,
            priority_stats=[StatBucket(id=p, count=c) for p, c in priority_rows.all()],
            category_stats=[StatBucket(id=cat, count=c) for cat, c in category_rows.all()],
        )


note_service = NoteService()
