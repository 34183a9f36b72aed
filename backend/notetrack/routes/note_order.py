"""
NoteTrack Backend — Note Order Route Handlers
===============================================

What:  HTTP surface for manual ordering of revision notes under
       /api/note-order. The ordered-list, bulk-update and initialize
       handlers are also mounted under /api/notes/order/* by routes/notes.py.
How:   Request bodies are validated by the schemas in schemas/note_order.py;
       the handlers delegate to OrderService and shape the response.

Route Inventory:
    GET    /api/note-order                  all rank entries, rank ascending
    GET    /api/note-order/revision-notes   revision notes in resolved order
    POST   /api/note-order/bulk-update      upsert many (noteId, order) pairs
    POST   /api/note-order/initialize       rank every unranked revision note
    PUT    /api/note-order/{noteId}         upsert one rank entry
    DELETE /api/note-order/{noteId}         remove one rank entry (idempotent)
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from notetrack.database import get_db_session
from notetrack.schemas.common import ErrorResponse, MessageResponse
from notetrack.schemas.note import NoteOut, OrderedNotesResponse
from notetrack.schemas.note_order import (
    BulkOrderRequest,
    BulkOrderResponse,
    InitializeOrdersResponse,
    NoteOrderOut,
    SingleOrderRequest,
)
from notetrack.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/note-order", tags=["Note Order"])

_CLIENT_ERROR = {400: {"description": "Malformed input", "model": ErrorResponse}}
_SERVER_ERROR = {500: {"description": "Server error", "model": ErrorResponse}}


@router.get(
    "",
    response_model=List[NoteOrderOut],
    responses=_SERVER_ERROR,
    summary="List all rank entries",
)
async def list_note_orders(
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteOrderOut]:
    orders = await order_service.list_orders(db)
    return [NoteOrderOut.model_validate(entry) for entry in orders]


async def get_revision_notes(
    db: AsyncSession = Depends(get_db_session),
) -> OrderedNotesResponse:
    """
    Revision notes in display order.

    Ranked notes first by rank, then unranked notes oldest first. Each note
    carries customOrder when it has a rank entry.
    """
    resolved = await order_service.get_ordered_revision_notes(db)
    notes = [NoteOut.from_note(note, rank) for note, rank in resolved]
    return OrderedNotesResponse(notes=notes, total=len(notes))


async def bulk_update_orders(
    body: BulkOrderRequest,
    db: AsyncSession = Depends(get_db_session),
) -> BulkOrderResponse:
    """
    Upsert every (noteId, order) pair. The count is the number of pairs
    submitted. A malformed noteId anywhere rejects the batch with 400.
    """
    count = await order_service.bulk_update(db, body.orders)
    return BulkOrderResponse(message="Orders updated successfully", count=count)


async def initialize_orders(
    db: AsyncSession = Depends(get_db_session),
) -> InitializeOrdersResponse:
    created, total = await order_service.initialize(db)
    return InitializeOrdersResponse(
        message="Orders initialized successfully",
        new_orders_created=created,
        total_revision_notes=total,
    )


def register_order_routes(target: APIRouter, prefix: str, revision_path: str) -> None:
    """Mount the shared ordering handlers on `target` under `prefix`."""
    target.add_api_route(
        prefix + revision_path,
        get_revision_notes,
        methods=["GET"],
        response_model=OrderedNotesResponse,
        response_model_exclude_none=True,
        responses=_SERVER_ERROR,
        summary="Revision notes in resolved display order",
    )
    target.add_api_route(
        prefix + "/bulk-update",
        bulk_update_orders,
        methods=["POST"],
        response_model=BulkOrderResponse,
        responses={**_CLIENT_ERROR, **_SERVER_ERROR},
        summary="Set the rank of many notes",
    )
    target.add_api_route(
        prefix + "/initialize",
        initialize_orders,
        methods=["POST"],
        response_model=InitializeOrdersResponse,
        responses=_SERVER_ERROR,
        summary="Rank every unranked revision note",
    )


register_order_routes(router, "", "/revision-notes")


@router.put(
    "/{note_id}",
    response_model=NoteOrderOut,
    responses={**_CLIENT_ERROR, **_SERVER_ERROR},
    summary="Set the rank of one note",
)
async def set_note_order(
    note_id: str,
    body: SingleOrderRequest,
    db: AsyncSession = Depends(get_db_session),
) -> NoteOrderOut:
    entry = await order_service.set_order(db, note_id, body.order)
    return NoteOrderOut.model_validate(entry)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses={**_CLIENT_ERROR, **_SERVER_ERROR},
    summary="Remove the rank of one note",
)
async def remove_note_order(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await order_service.remove_order(db, note_id)
    return MessageResponse(message="Note order removed successfully")
