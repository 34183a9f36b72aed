"""
NoteTrack Backend — API Endpoint Tests
========================================

What:  End-to-end HTTP tests through the FastAPI app and a SQLite store.
How:   httpx AsyncClient over ASGITransport (see conftest.test_client).

What we test:
    ✅ Note CRUD wire format (camelCase, 201 on create, omitted customOrder)
    ✅ Error mapping: 400 malformed input, 404 missing note
    ✅ Ordering endpoints under both /api/notes/order and /api/note-order
    ✅ Listing filters, pagination headers, lookup lists, statistics
    ✅ Health probe and request ID header
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

BASE_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


NEW_NOTE = {
    "title": "Two pointers",
    "content": "Walk from both ends",
    "category": "arrays",
    "tags": ["pattern"],
    "priority": "high",
}


# ══════════════════════════════════════════════════════════════════════════
# Notes CRUD
# ══════════════════════════════════════════════════════════════════════════


class TestNotesCrud:

    @pytest.mark.asyncio
    async def test_create_returns_201_with_camel_case_body(self, test_client):
        response = await test_client.post("/api/notes", json={**NEW_NOTE, "type": "other"})

        assert response.status_code == 201
        data = response.json()
        uuid.UUID(data["id"])
        assert data["title"] == "Two pointers"
        assert data["isRevision"] is True
        assert data["programmingLanguage"] == "javascript"
        assert data["type"] == "note"
        assert "createdAt" in data and "updatedAt" in data
        assert "customOrder" not in data

    @pytest.mark.asyncio
    async def test_create_rejects_invalid_body(self, test_client):
        response = await test_client.post("/api/notes", json={**NEW_NOTE, "title": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_priority(self, test_client):
        response = await test_client.post("/api/notes", json={**NEW_NOTE, "priority": "urgent"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_get_round_trip(self, test_client):
        created = (await test_client.post("/api/notes", json=NEW_NOTE)).json()

        response = await test_client.get(f"/api/notes/{created['id']}")

        assert response.status_code == 200
        assert response.json()["title"] == NEW_NOTE["title"]

    @pytest.mark.asyncio
    async def test_get_missing_is_404(self, test_client):
        response = await test_client.get(f"/api/notes/{uuid.uuid4()}")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert "requestId" in body

    @pytest.mark.asyncio
    async def test_get_malformed_id_is_400(self, test_client):
        response = await test_client.get("/api/notes/not-an-id")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update(self, test_client, make_note):
        note = await make_note(priority="low")

        response = await test_client.put(
            f"/api/notes/{note.id}",
            json={"title": "Renamed", "content": "Body", "category": "general"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert data["priority"] == "low"

    @pytest.mark.asyncio
    async def test_update_missing_is_404(self, test_client):
        response = await test_client.put(f"/api/notes/{uuid.uuid4()}", json=NEW_NOTE)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, test_client, make_note):
        note = await make_note()

        response = await test_client.delete(f"/api/notes/{note.id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Note deleted successfully", "id": str(note.id)}
        assert (await test_client.get(f"/api/notes/{note.id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing_is_404(self, test_client):
        response = await test_client.delete(f"/api/notes/{uuid.uuid4()}")
        assert response.status_code == 404


# ══════════════════════════════════════════════════════════════════════════
# Listing, lookup lists, statistics
# ══════════════════════════════════════════════════════════════════════════


class TestNotesListing:

    @pytest.mark.asyncio
    async def test_list_with_filters_and_total_header(self, test_client, make_note, make_order):
        ranked = await make_note(title="ranked", category="dp", updated_at=at(5))
        await make_note(title="plain", category="dp", updated_at=at(3))
        await make_note(title="elsewhere", category="graphs")
        await make_order(ranked.id, 2)

        response = await test_client.get("/api/notes", params={"category": "dp"})

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "2"
        data = response.json()
        assert data["total"] == 2
        assert data["page"] == 1
        assert data["totalPages"] == 1
        assert [n["title"] for n in data["notes"]] == ["ranked", "plain"]
        assert data["notes"][0]["customOrder"] == 2
        assert "customOrder" not in data["notes"][1]

    @pytest.mark.asyncio
    async def test_is_revision_query_param(self, test_client, make_note):
        await make_note(title="rev", is_revision=True)
        await make_note(title="plain", is_revision=False)

        response = await test_client.get("/api/notes", params={"isRevision": "false"})

        assert [n["title"] for n in response.json()["notes"]] == ["plain"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 101}, {"skip": -1}, {"priority": "x"}])
    async def test_invalid_query_is_400(self, test_client, params):
        response = await test_client.get("/api/notes", params=params)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_pagination(self, test_client, make_note):
        for i in range(3):
            await make_note(title=f"n{i}", updated_at=at(i))

        data = (await test_client.get("/api/notes", params={"limit": 2, "skip": 2})).json()

        assert [n["title"] for n in data["notes"]] == ["n0"]
        assert data["page"] == 2
        assert data["totalPages"] == 2

    @pytest.mark.asyncio
    async def test_categories_and_tags(self, test_client, make_note):
        await make_note(category="graphs", tags=["bfs", "queue"])
        await make_note(category="arrays", tags=["bfs"])

        categories = await test_client.get("/api/notes/categories/list")
        tags = await test_client.get("/api/notes/tags/list")

        assert categories.json() == ["arrays", "graphs"]
        assert tags.json() == ["bfs", "queue"]

    @pytest.mark.asyncio
    async def test_stats_overview(self, test_client, make_note):
        await make_note(category="dp", priority="high")
        await make_note(category="dp", priority="low", is_revision=False)

        data = (await test_client.get("/api/notes/stats/overview")).json()

        assert data["total"] == 2
        assert data["revisionCount"] == 1
        assert {b["id"]: b["count"] for b in data["priorityStats"]} == {"high": 1, "low": 1}
        assert data["categoryStats"] == [{"id": "dp", "count": 2}]


# ══════════════════════════════════════════════════════════════════════════
# Revision ordering
# ══════════════════════════════════════════════════════════════════════════


class TestRevisionOrdering:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/notes/order/revision", "/api/note-order/revision-notes"])
    async def test_resolved_order(self, test_client, make_note, make_order, path):
        a = await make_note(title="A", created_at=at(1))
        await make_note(title="B", created_at=at(2))
        c = await make_note(title="C", created_at=at(0))
        await make_note(title="hidden", is_revision=False)
        await make_order(a.id, 5)
        await make_order(c.id, 2)

        response = await test_client.get(path)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [n["title"] for n in data["notes"]] == ["C", "A", "B"]
        assert [n.get("customOrder") for n in data["notes"]] == [2, 5, None]

    @pytest.mark.asyncio
    async def test_bulk_update_then_read_back(self, test_client, make_note, fetch_orders):
        a, b = await make_note(title="A"), await make_note(title="B")

        response = await test_client.post(
            "/api/notes/order/bulk-update",
            json={"orders": [{"noteId": str(b.id), "order": 0}, {"noteId": str(a.id), "order": 1}]},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Orders updated successfully", "count": 2}
        listed = (await test_client.get("/api/notes/order/revision")).json()
        assert [n["title"] for n in listed["notes"]] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_bulk_duplicate_note_last_wins(self, test_client, make_note, fetch_orders):
        x = await make_note()

        response = await test_client.post(
            "/api/note-order/bulk-update",
            json={"orders": [{"noteId": str(x.id), "order": 3}, {"noteId": str(x.id), "order": 7}]},
        )

        assert response.json()["count"] == 2
        assert await fetch_orders() == {str(x.id): 7}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"orders": "nope"}, {}, {"orders": [{"noteId": "x", "order": "1"}]}])
    async def test_bulk_malformed_body_is_400(self, test_client, body, fetch_orders):
        response = await test_client.post("/api/notes/order/bulk-update", json=body)

        assert response.status_code == 400
        assert await fetch_orders() == {}

    @pytest.mark.asyncio
    async def test_bulk_malformed_note_id_writes_nothing(self, test_client, make_note, fetch_orders):
        a = await make_note()

        response = await test_client.post(
            "/api/notes/order/bulk-update",
            json={"orders": [{"noteId": str(a.id), "order": 1}, {"noteId": "bad", "order": 2}]},
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "noteId"
        assert await fetch_orders() == {}

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, test_client, make_note, make_order):
        ranked = await make_note(created_at=at(5))
        await make_note(created_at=at(1))
        await make_order(ranked.id, 3)

        first = await test_client.post("/api/notes/order/initialize")
        second = await test_client.post("/api/note-order/initialize")

        assert first.json() == {
            "message": "Orders initialized successfully",
            "newOrdersCreated": 1,
            "totalRevisionNotes": 2,
        }
        assert second.json()["newOrdersCreated"] == 0
        assert second.json()["totalRevisionNotes"] == 2

    @pytest.mark.asyncio
    async def test_put_single_order(self, test_client, make_note, fetch_orders):
        note = await make_note()

        response = await test_client.put(f"/api/note-order/{note.id}", json={"order": 4})

        assert response.status_code == 200
        data = response.json()
        assert data["noteId"] == str(note.id)
        assert data["order"] == 4
        assert {"id", "createdAt", "updatedAt"} <= set(data)
        assert await fetch_orders() == {str(note.id): 4}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("order", ["abc", "3", True, 3.5])
    async def test_put_non_integer_order_is_400(self, test_client, make_note, fetch_orders, order):
        note = await make_note()

        response = await test_client.put(f"/api/note-order/{note.id}", json={"order": order})

        assert response.status_code == 400
        assert await fetch_orders() == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("order", [2**31, 3_000_000_000, 2**63, -(2**31) - 1])
    async def test_put_out_of_range_order_is_400(self, test_client, make_note, fetch_orders, order):
        note = await make_note()

        response = await test_client.put(f"/api/note-order/{note.id}", json={"order": order})

        assert response.status_code == 400
        assert await fetch_orders() == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/notes/order/bulk-update", "/api/note-order/bulk-update"])
    async def test_bulk_out_of_range_order_writes_nothing(self, test_client, make_note, fetch_orders, path):
        a, b = await make_note(), await make_note()

        response = await test_client.post(
            path,
            json={"orders": [{"noteId": str(a.id), "order": 1}, {"noteId": str(b.id), "order": 10**20}]},
        )

        assert response.status_code == 400
        assert await fetch_orders() == {}

    @pytest.mark.asyncio
    async def test_put_order_at_column_limits(self, test_client, make_note, fetch_orders):
        low, high = await make_note(), await make_note()

        assert (await test_client.put(f"/api/note-order/{low.id}", json={"order": -(2**31)})).status_code == 200
        assert (await test_client.put(f"/api/note-order/{high.id}", json={"order": 2**31 - 1})).status_code == 200
        assert await fetch_orders() == {str(low.id): -(2**31), str(high.id): 2**31 - 1}

    @pytest.mark.asyncio
    async def test_put_malformed_note_id_is_400(self, test_client):
        response = await test_client.put("/api/note-order/123", json={"order": 1})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_order_is_idempotent(self, test_client, make_note, make_order, fetch_orders):
        note = await make_note()
        await make_order(note.id, 1)

        first = await test_client.delete(f"/api/note-order/{note.id}")
        second = await test_client.delete(f"/api/note-order/{note.id}")

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json() == {"message": "Note order removed successfully"}
        assert await fetch_orders() == {}

    @pytest.mark.asyncio
    async def test_list_rank_entries(self, test_client, make_note, make_order):
        a, b = await make_note(), await make_note()
        await make_order(a.id, 9)
        await make_order(b.id, 1)

        data = (await test_client.get("/api/note-order")).json()

        assert [(e["noteId"], e["order"]) for e in data] == [(str(b.id), 1), (str(a.id), 9)]

    @pytest.mark.asyncio
    async def test_deleted_note_drops_out_of_order_but_keeps_rank(
        self, test_client, make_note, make_order, fetch_orders
    ):
        gone = await make_note(title="gone")
        await make_note(title="kept")
        await make_order(gone.id, 0)

        await test_client.delete(f"/api/notes/{gone.id}")
        listed = (await test_client.get("/api/notes/order/revision")).json()

        assert [n["title"] for n in listed["notes"]] == ["kept"]
        assert await fetch_orders() == {str(gone.id): 0}


# ══════════════════════════════════════════════════════════════════════════
# Health & middleware
# ══════════════════════════════════════════════════════════════════════════


class TestHealthAndHeaders:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert "uptimeSeconds" in data

    @pytest.mark.asyncio
    async def test_request_id_generated(self, test_client):
        response = await test_client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
