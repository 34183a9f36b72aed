"""
NoteTrack Backend — Note Ordering Schemas
===========================================

What:  Request and response models for the rank (note order) endpoints.
How:   `order` is a strict integer within the range of the `note_orders.order`
       column (32-bit signed). "3", 3.5, true, "abc" and out-of-range values
       are all rejected with a 400 before any write is attempted. `noteId`
       stays a plain string here; the service parses every id up front so
       one malformed id rejects the whole batch.
"""

import uuid
from datetime import datetime
from typing import Annotated, List

from pydantic import ConfigDict, Field, Strict, field_validator

from notetrack.schemas.common import CamelModel

RANK_MIN = -(2**31)
RANK_MAX = 2**31 - 1

Rank = Annotated[int, Strict(), Field(ge=RANK_MIN, le=RANK_MAX)]


class OrderAssignment(CamelModel):
    note_id: str
    order: Rank


class BulkOrderRequest(CamelModel):
    """Body of POST .../bulk-update: `{"orders": [{"noteId", "order"}, ...]}`."""
    orders: List[OrderAssignment]


class SingleOrderRequest(CamelModel):
    """Body of PUT /api/note-order/{noteId}."""
    order: Rank


class NoteOrderOut(CamelModel):
    id: str
    note_id: str
    order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "note_id", mode="before")
    @classmethod
    def stringify_uuid(cls, v):
        return str(v) if isinstance(v, uuid.UUID) else v


class BulkOrderResponse(CamelModel):
    message: str
    count: int


class InitializeOrdersResponse(CamelModel):
    message: str
    new_orders_created: int
    total_revision_notes: int
