"""
Service catalog, workbench and subscription tests.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import bearer, login


@pytest.fixture
async def alice(client, world):
    return bearer((await login(client, "alice"))["session_token"])


@pytest.fixture
async def carol(client, world):
    return bearer((await login(client, "carol"))["session_token"])


class TestCatalog:
    async def test_list_hides_inactive(self, client: AsyncClient, world):
        resp = await client.get("/api/services")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert {s["service_short_name"] for s in body["data"]} == {"crm-sync", "auto-poster"}
        assert body["pagination"]["total"] == 2

    async def test_search(self, client: AsyncClient, world):
        resp = await client.get("/api/services", params={"search": "SOCIAL"})
        assert [s["service_short_name"] for s in resp.json()["data"]] == ["auto-poster"]

    @pytest.mark.parametrize("term", ["_", "%", "crm%sync"])
    async def test_search_wildcards_are_literal(self, client: AsyncClient, world, term):
        resp = await client.get("/api/services", params={"search": term})
        assert resp.status_code == 200
        assert resp.json()["data"] == []

    async def test_category_filter(self, client: AsyncClient, world):
        resp = await client.get("/api/services", params={"category": "integration"})
        assert [s["service_short_name"] for s in resp.json()["data"]] == ["crm-sync"]

    async def test_pagination_and_sort(self, client: AsyncClient, world):
        resp = await client.get(
            "/api/services", params={"limit": 1, "page": 2, "sort_by": "service_name", "sort_order": "asc"}
        )
        body = resp.json()
        assert [s["service_name"] for s in body["data"]] == ["CRM Sync"]
        assert body["pagination"] == {
            "page": 2,
            "limit": 1,
            "total": 2,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    async def test_limit_is_capped(self, client: AsyncClient, world, settings):
        resp = await client.get("/api/services", params={"limit": 10_000})
        assert resp.json()["pagination"]["limit"] == settings.max_page_size

    async def test_bad_sort_field(self, client: AsyncClient, world):
        resp = await client.get("/api/services", params={"sort_by": "password"})
        assert resp.status_code == 400

    async def test_bad_category(self, client: AsyncClient, world):
        resp = await client.get("/api/services", params={"category": "nope"})
        assert resp.status_code == 400

    async def test_categories(self, client: AsyncClient, world):
        resp = await client.get("/api/services/categories")
        counts = {c["category"]: c["count"] for c in resp.json()["data"]}
        assert counts["integration"] == 1
        assert counts["analytics"] == 0
        assert len(counts) == 11

    async def test_detail_by_id_and_short_name(self, client: AsyncClient, world):
        by_id = await client.get(f"/api/services/{world.crm.id}")
        by_name = await client.get("/api/services/crm-sync")
        assert by_id.status_code == by_name.status_code == 200
        assert by_id.json()["data"] == by_name.json()["data"]

    async def test_inactive_detail_is_404(self, client: AsyncClient, world):
        resp = await client.get("/api/services/legacy-reports")
        assert resp.status_code == 404


class TestSubscriptions:
    async def test_subscribe_and_unsubscribe(self, client: AsyncClient, world, alice):
        resp = await client.post("/api/services/auto-poster/subscribe", headers=alice)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "active"

        resp = await client.post("/api/services/auto-poster/subscribe", headers=alice)
        assert resp.status_code == 409

        resp = await client.get("/api/services/subscriptions", headers=alice)
        assert len(resp.json()["data"]) == 2

        resp = await client.delete("/api/services/auto-poster/subscribe", headers=alice)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "cancelled"

        resp = await client.delete("/api/services/auto-poster/subscribe", headers=alice)
        assert resp.status_code == 404

        resp = await client.post("/api/services/auto-poster/subscribe", headers=alice)
        assert resp.status_code == 200

    async def test_viewer_cannot_subscribe(self, client: AsyncClient, world):
        bob = bearer((await login(client, "bob"))["session_token"])
        resp = await client.post("/api/services/auto-poster/subscribe", headers=bob)
        assert resp.status_code == 403

    async def test_subscribe_requires_session(self, client: AsyncClient, world):
        resp = await client.post("/api/services/auto-poster/subscribe")
        assert resp.status_code == 401


class TestWorkbench:
    async def test_requires_platform_admin(self, client: AsyncClient, world, alice):
        resp = await client.get("/api/admin/services", headers=alice)
        assert resp.status_code == 403

    async def test_requires_token(self, client: AsyncClient, world):
        resp = await client.get("/api/admin/services")
        assert resp.status_code == 401
        assert resp.json()["code"] == "MISSING_SESSION_TOKEN"

    async def test_list_includes_inactive(self, client: AsyncClient, world, carol):
        resp = await client.get("/api/admin/services", headers=carol)
        assert resp.json()["pagination"]["total"] == 3

    async def test_create_update_toggle(self, client: AsyncClient, world, carol):
        resp = await client.post(
            "/api/admin/services",
            json={
                "service_name": "Inbox Triage",
                "service_short_name": "inbox-triage",
                "description": "Sorts incoming mail",
                "category": "communication",
                "tags": ["email"],
            },
            headers=carol,
        )
        assert resp.status_code == 201
        service_id = resp.json()["data"]["id"]

        resp = await client.patch(
            f"/api/admin/services/{service_id}", json={"description": "Sorts and labels mail"}, headers=carol
        )
        assert resp.json()["data"]["description"] == "Sorts and labels mail"

        resp = await client.post(
            f"/api/admin/services/{service_id}/toggle-status", json={"is_active": False}, headers=carol
        )
        assert resp.json()["data"]["is_active"] is False
        assert (await client.get("/api/services/inbox-triage")).status_code == 404

    async def test_duplicate_short_name(self, client: AsyncClient, world, carol):
        resp = await client.post(
            "/api/admin/services",
            json={"service_name": "Dup", "service_short_name": "crm-sync", "description": "x"},
            headers=carol,
        )
        assert resp.status_code == 409

    async def test_invalid_short_name(self, client: AsyncClient, world, carol):
        resp = await client.post(
            "/api/admin/services",
            json={"service_name": "Bad", "service_short_name": "Not Valid!", "description": "x"},
            headers=carol,
        )
        assert resp.status_code == 400
