"""
NoteTrack Backend — Notes Route Handlers
==========================================

What:  CRUD, listing, lookup lists and statistics for notes under /api/notes,
       plus the revision-ordering endpoints under /api/notes/order/*.
How:   Extracts query/path/body data, delegates to NoteService or
       OrderService, returns JSON. Status mapping for failures happens in the
       global exception handlers (main.py).

Route Inventory:
    GET    /api/notes                    filtered, paginated list
    GET    /api/notes/categories/list    distinct categories
    GET    /api/notes/tags/list          distinct tags
    GET    /api/notes/stats/overview     aggregate counts
    GET    /api/notes/order/revision     revision notes in resolved order
    POST   /api/notes/order/bulk-update  upsert many ranks
    POST   /api/notes/order/initialize   rank every unranked revision note
    GET    /api/notes/{id}               single note
    POST   /api/notes                    create
    PUT    /api/notes/{id}               update
    DELETE /api/notes/{id}               delete (rank entry is kept)
"""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notetrack.database import get_db_session
from notetrack.routes.note_order import register_order_routes
from notetrack.schemas.common import ErrorResponse
from notetrack.schemas.note import (
    NoteCreate,
    NoteDeleteResponse,
    NoteListResponse,
    NoteOut,
    NoteStatsResponse,
    NoteUpdate,
)
from notetrack.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

_NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}
_BAD_REQUEST = {400: {"description": "Invalid input", "model": ErrorResponse}}
_SERVER_ERROR = {500: {"description": "Server error", "model": ErrorResponse}}


# ── Fixed paths first so they never reach the {note_id} handlers ─────────

@router.get(
    "/categories/list",
    response_model=List[str],
    responses=_SERVER_ERROR,
    summary="Distinct note categories",
)
async def list_categories(db: AsyncSession = Depends(get_db_session)) -> List[str]:
    return await note_service.list_categories(db)


@router.get(
    "/tags/list",
    response_model=List[str],
    responses=_SERVER_ERROR,
    summary="Distinct note tags",
)
async def list_tags(db: AsyncSession = Depends(get_db_session)) -> List[str]:
    return await note_service.list_tags(db)


@router.get(
    "/stats/overview",
    response_model=NoteStatsResponse,
    responses=_SERVER_ERROR,
    summary="Note statistics",
)
async def stats_overview(db: AsyncSession = Depends(get_db_session)) -> NoteStatsResponse:
    return await note_service.stats(db)


register_order_routes(router, "/order", "/revision")


@router.get(
    "",
    response_model=NoteListResponse,
    response_model_exclude_none=True,
    responses={**_BAD_REQUEST, **_SERVER_ERROR},
    summary="List notes with filters and pagination",
)
async def list_notes(
    response: Response,
    category: Optional[str] = Query(default=None, description="Exact category match"),
    is_revision: Optional[bool] = Query(
        default=None, alias="isRevision", description="Only revision (true) or non-revision (false) notes"
    ),
    priority: Optional[Literal["low", "medium", "high"]] = Query(default=None),
    search: Optional[str] = Query(
        default=None, description="Case-insensitive match on title, content, topic content and tags"
    ),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page (max 100)"),
    skip: int = Query(default=0, ge=0, description="Number of notes to skip"),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.list_notes(
        db,
        category=category,
        is_revision=is_revision,
        priority=priority,
        search=search,
        limit=limit,
        skip=skip,
    )
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/{note_id}",
    response_model=NoteOut,
    response_model_exclude_none=True,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Get a single note by ID",
)
async def get_note(note_id: str, db: AsyncSession = Depends(get_db_session)) -> NoteOut:
    return await note_service.get_note(db, note_id)


@router.post(
    "",
    status_code=201,
    response_model=NoteOut,
    response_model_exclude_none=True,
    responses={**_BAD_REQUEST, **_SERVER_ERROR},
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteOut:
    return await note_service.create_note(db, payload)


@router.put(
    "/{note_id}",
    response_model=NoteOut,
    response_model_exclude_none=True,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Update a note",
)
async def update_note(
    note_id: str,
    payload: NoteUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteOut:
    return await note_service.update_note(db, note_id, payload)


@router.delete(
    "/{note_id}",
    response_model=NoteDeleteResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> NoteDeleteResponse:
    return await note_service.delete_note(db, note_id)
