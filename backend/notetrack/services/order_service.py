"""
NoteTrack Backend — Order Service (Revision Note Ranking)
===========================================================

What:  Reads and writes rank entries (`note_orders`) and produces the
       resolved display order of revision notes.
How:   Every rank write is an upsert keyed by the unique note_id, issued as
       the dialect's INSERT ... ON CONFLICT DO UPDATE. Reads delegate the
       sort to the pure resolver in services/ordering.py.
Who:   Called by the /api/notes/order/* and /api/note-order/* routes.

Operations:
    list_orders()                 every rank entry, rank ascending
    get_ordered_revision_notes()  revision notes in resolved order
    bulk_update(assignments)      upsert each (noteId, order) pair
    set_order(noteId, order)      upsert one pair, return the entry
    remove_order(noteId)          delete one entry, no error if absent
    initialize()                  back-fill ranks for unranked revision notes

Consistency:
    All statements run in the request's session, so a bulk update commits
    or rolls back as a whole. initialize() is serialized by a per-event-loop
    lock and commits before releasing it, so two concurrent runs in the
    same process never compute the same maximum rank.
"""

import asyncio
import logging
import uuid
import weakref
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from notetrack.exceptions import DatabaseError
from notetrack.models.note import Note, utcnow
from notetrack.models.note_order import NoteOrder
from notetrack.schemas.note_order import OrderAssignment
from notetrack.services.common import parse_note_id, translate_store_error
from notetrack.services.ordering import resolve_order

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class OrderService:
    """
    Business logic for manual ordering of revision notes.

    Stateless apart from the initializer locks (one per event loop); every
    method receives the request's AsyncSession.
    """

    def __init__(self) -> None:
        # event loop -> asyncio.Lock; a Lock is bound to the loop it first waits on
        self._init_locks = weakref.WeakKeyDictionary()

    def _initializer_lock(self) -> asyncio.Lock:
        """Lock serializing initialize() on the running event loop."""
        loop = asyncio.get_running_loop()
        lock = self._init_locks.get(loop)
        if lock is None:
            lock = self._init_locks[loop] = asyncio.Lock()
        return lock

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_orders(self, db: AsyncSession) -> List[NoteOrder]:
        try:
            result = await db.scalars(
                select(NoteOrder).order_by(NoteOrder.order.asc(), NoteOrder.created_at.asc())
            )
            return list(result.all())
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch note orders")

    async def rank_map(
        self,
        db: AsyncSession,
        note_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> Dict[str, int]:
        """str(note_id) → rank, optionally limited to `note_ids`."""
        query = select(NoteOrder.note_id, NoteOrder.order)
        if note_ids is not None:
            if not note_ids:
                return {}
            query = query.where(NoteOrder.note_id.in_(list(note_ids)))
        result = await db.execute(query)
        return {str(note_id): order for note_id, order in result.all()}

    async def get_ordered_revision_notes(
        self, db: AsyncSession
    ) -> List[Tuple[Note, Optional[int]]]:
        """
        Load every revision note and every rank entry and resolve the order.

        Notes are loaded in creation order so ties between equal ranks
        resolve by creation time too.
        """
        try:
            notes = await db.scalars(
                select(Note)
                .where(Note.is_revision.is_(True))
                .order_by(Note.created_at.asc(), Note.id.asc())
            )
            orders = await db.scalars(select(NoteOrder))
            resolved = resolve_order(notes.all(), orders.all())
            logger.debug("Resolved order for %d revision notes", len(resolved))
            return resolved
        except Exception as e:
            raise translate_store_error(e, "Failed to fetch ordered revision notes")

    # ── Writes ────────────────────────────────────────────────────────────

    def _upsert_statement(self, db: AsyncSession, note_id: uuid.UUID, order: int) -> Any:
        dialect = db.get_bind().dialect.name
        insert_fn = _UPSERT_DIALECTS.get(dialect)
        if insert_fn is None:
            raise DatabaseError(
                message="Note ordering is not supported on this database.",
                context={"dialect": dialect},
            )
        now = utcnow()
        stmt = insert_fn(NoteOrder).values(
            id=uuid.uuid4(),
            note_id=note_id,
            order=order,
            created_at=now,
            updated_at=now,
        )
        return stmt.on_conflict_do_update(
            index_elements=["note_id"],
            set_={"order": order, "updated_at": now},
        )

    async def bulk_update(self, db: AsyncSession, assignments: List[OrderAssignment]) -> int:
        """
        Upsert every (noteId, order) pair, in input order.

        All ids are parsed before the first write, so a malformed id rejects
        the batch without touching the store. A repeated noteId ends with
        the last order given for it.

        Returns:
            Number of pairs submitted (not the number of rows changed).
        """
        parsed = [
            (parse_note_id(item.note_id, field="noteId"), item.order)
            for item in assignments
        ]
        try:
            for note_id, order in parsed:
                await db.execute(self._upsert_statement(db, note_id, order))
            await db.flush()
        except Exception as e:
            raise translate_store_error(
                e, "Failed to update note orders", {"count": len(parsed)}
            )
        logger.info("Bulk-updated %d note orders", len(parsed))
        return len(parsed)

    async def set_order(self, db: AsyncSession, raw_note_id: str, order: int) -> NoteOrder:
        """Create or replace the rank entry of one note and return it."""
        note_id = parse_note_id(raw_note_id, field="noteId")
        try:
            await db.execute(self._upsert_statement(db, note_id, order))
            entry = await db.scalar(
                select(NoteOrder)
                .where(NoteOrder.note_id == note_id)
                .execution_options(populate_existing=True)
            )
        except Exception as e:
            raise translate_store_error(
                e, "Failed to update note order", {"note_id": str(note_id)}
            )
        logger.info("Note %s ordered at %d", note_id, order)
        return entry

    async def remove_order(self, db: AsyncSession, raw_note_id: str) -> bool:
        """
        Delete the rank entry of one note.

        Returns:
            True if an entry was deleted, False if there was none.
        """
        note_id = parse_note_id(raw_note_id, field="noteId")
        try:
            result = await db.execute(
                delete(NoteOrder).where(NoteOrder.note_id == note_id)
            )
        except Exception as e:
            raise translate_store_error(
                e, "Failed to remove note order", {"note_id": str(note_id)}
            )
        removed = bool(result.rowcount)
        logger.info("Note order for %s removed=%s", note_id, removed)
        return removed

    async def initialize(self, db: AsyncSession) -> Tuple[int, int]:
        """
        Give every unranked revision note a rank after all existing ones.

        Algorithm:
            1. Load revision notes by creation time ascending
            2. max_order = highest existing rank, or -1 when there is none
            3. Each unranked note gets max_order + 1, in creation order
            4. Insert the new entries in one batch and commit

        Existing entries are never modified, so running it twice creates
        nothing the second time.

        Returns:
            (new_orders_created, total_revision_notes)
        """
        async with self._initializer_lock():
            try:
                notes = list(
                    (
                        await db.scalars(
                            select(Note)
                            .where(Note.is_revision.is_(True))
                            .order_by(Note.created_at.asc(), Note.id.asc())
                        )
                    ).all()
                )
                existing = list((await db.scalars(select(NoteOrder))).all())

                ranked = {str(entry.note_id) for entry in existing}
                max_order = max((entry.order for entry in existing), default=-1)

                new_entries = []
                for note in notes:
                    if str(note.id) in ranked:
                        continue
                    max_order += 1
                    new_entries.append(NoteOrder(note_id=note.id, order=max_order))

                if new_entries:
                    db.add_all(new_entries)
                    await db.commit()
            except Exception as e:
                raise translate_store_error(e, "Failed to initialize note orders")

        logger.info(
            "Initialized %d note orders (%d revision notes)",
            len(new_entries),
            len(notes),
        )
        return len(new_entries), len(notes)


order_service = OrderService()
