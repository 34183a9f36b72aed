"""
NoteTrack Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite driver) in
       pytest's tmp_path, so services run real SQL including the
       ON CONFLICT upserts, without a PostgreSQL server.

Fixtures (function-scoped):
    ├── database:     Database bound to a fresh SQLite file, tables created
    ├── db_session:   AsyncSession on that database
    ├── make_note:    factory inserting a Note (committed, own session)
    ├── make_order:   factory inserting a NoteOrder
    ├── fetch_orders: reads {note_id: order} through a fresh session
    └── test_client:  httpx AsyncClient talking to an app bound to `database`
"""

import os

# Settings are read once at import; configure before importing the package
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./notetrack_test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_CONNECT_RETRIES"] = "1"

from datetime import datetime, timedelta, timezone
from typing import Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from notetrack.database import Database
from notetrack.models.note import Note
from notetrack.models.note_order import NoteOrder

BASE_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Timestamp `minutes` after BASE_TIME; keeps creation order explicit."""
    return BASE_TIME + timedelta(minutes=minutes)


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'notetrack.db'}")
    await db.create_tables()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def make_note(database):
    """
    Insert a note and return it.

    Usage:
        note = await make_note(title="Heaps", created_at=at(5), is_revision=True)
    """
    counter = {"n": 0}

    async def _make(**overrides) -> Note:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "title": f"Note {n}",
            "content": f"Content of note {n}",
            "tags": [],
            "category": "general",
            "programming_language": "python",
            "is_revision": True,
            "priority": "medium",
            "created_at": at(n),
            "updated_at": at(n),
        }
        data.update(overrides)
        note = Note(**data)
        async with database.session() as session:
            session.add(note)
            await session.commit()
        return note

    return _make


@pytest.fixture
def make_order(database):
    async def _make(note_id, order: int) -> NoteOrder:
        entry = NoteOrder(note_id=note_id, order=order)
        async with database.session() as session:
            session.add(entry)
            await session.commit()
        return entry

    return _make


@pytest.fixture
def fetch_orders(database):
    """Current rank entries as {str(note_id): order}, read in a fresh session."""

    async def _fetch() -> Dict[str, int]:
        async with database.session() as session:
            result = await session.execute(select(NoteOrder.note_id, NoteOrder.order))
            return {str(note_id): order for note_id, order in result.all()}

    return _fetch


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    ASGITransport does not run the lifespan, so the app uses the injected
    `database` whose tables the fixture already created.
    """
    from notetrack.main import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
