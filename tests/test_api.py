"""
API endpoint tests - picker, checklist detail, progress, admin, realtime
"""
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.change_feed import ChangeFeed, get_change_feed


@pytest.mark.api
class TestPickerEndpoints:
    """Companies and grouped checklists"""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test health endpoint responds without a database"""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_checklists_grouped_by_company(self, client, gateway, checklist):
        """Test picker groups checklists under companies sorted by name"""
        zeta = await gateway.get_or_create_company("zeta")
        await gateway.create_checklist(zeta.id, "Warehouse", 2025)
        beta = await gateway.get_or_create_company("Beta")
        await gateway.create_checklist(beta.id, "Office", 2026)

        response = await client.get("/api/v1/checklists")

        assert response.status_code == 200
        groups = response.json()
        assert [group["company"]["name"] for group in groups] == ["Acme", "Beta", "zeta"]
        assert groups[0]["checklists"][0]["name"] == "Fire Inspection"

    @pytest.mark.asyncio
    async def test_company_checklists_newest_first(self, client, gateway, checklist):
        await gateway.create_checklist(checklist.company_id, "Fire Inspection", 2024)

        response = await client.get(f"/api/v1/companies/{checklist.company_id}/checklists")

        assert response.status_code == 200
        assert [c["year"] for c in response.json()] == [2026, 2024]

    @pytest.mark.asyncio
    async def test_companies(self, client, checklist):
        response = await client.get("/api/v1/companies")

        assert response.status_code == 200
        assert response.json() == [{"id": checklist.company_id, "name": "Acme"}]


@pytest.mark.api
class TestChecklistEndpoints:
    """Checklist detail, devices and progress"""

    @pytest.mark.asyncio
    async def test_checklist_detail(self, client, checklist):
        response = await client.get(f"/api/v1/checklists/{checklist.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Acme"
        assert data["location"] == "Fire Inspection"
        assert len(data["devices"]) == 3
        assert data["devices"][0]["uid"] == f"{checklist.id}-S2-1-2-Lobby smoke"

    @pytest.mark.asyncio
    async def test_missing_checklist_returns_404(self, client):
        response = await client.get("/api/v1/checklists/999")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_devices_sorted_and_filtered(self, client, checklist):
        """Test devices listing applies sort then text search"""
        response = await client.get(
            f"/api/v1/checklists/{checklist.id}/devices",
            params={"sort": "address-desc"},
        )
        assert response.status_code == 200
        assert [d["address"] for d in response.json()["devices"]] == ["2", "10", "1"]

        response = await client.get(
            f"/api/v1/checklists/{checklist.id}/devices",
            params={"sort": "serialNumber-asc", "q": "SMOKE"},
        )
        data = response.json()
        assert data["sort"] == "serial_number-asc"
        assert data["total"] == 3
        assert [d["serial_number"] for d in data["devices"]] == ["S1", "S2"]

    @pytest.mark.asyncio
    async def test_invalid_sort_returns_400(self, client, checklist):
        response = await client.get(
            f"/api/v1/checklists/{checklist.id}/devices",
            params={"sort": "colour-asc"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_progress_upsert_and_read(self, client, change_feed, checklist):
        """Test progress PUT upserts one row and notifies subscribers"""
        subscription = change_feed.subscribe("device_progress", checklist.id)
        url = f"/api/v1/checklists/{checklist.id}/progress"

        response = await client.put(url, json={"device_uid": "dev-1", "checked": True})
        assert response.status_code == 200
        assert response.json()["checked"] is True

        await client.put(url, json={"device_uid": "dev-1", "checked": False})

        response = await client.get(url)
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["device_uid"] == "dev-1"
        assert rows[0]["checked"] is False

        assert subscription.queue.qsize() == 2
        subscription.close()

    @pytest.mark.asyncio
    async def test_progress_for_missing_checklist_returns_404(self, client):
        response = await client.put(
            "/api/v1/checklists/999/progress",
            json={"device_uid": "dev-1", "checked": True},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_progress_requires_device_uid(self, client, checklist):
        response = await client.put(
            f"/api/v1/checklists/{checklist.id}/progress",
            json={"device_uid": "", "checked": True},
        )

        assert response.status_code == 422


@pytest.mark.admin
class TestAdminEndpoints:
    """Upload, list and delete"""

    @pytest.mark.asyncio
    async def test_upload_list_delete(self, client):
        """Test the full admin round: upload, see it listed, delete it"""
        document = {
            "name": "Acme",
            "location": "Fire Inspection",
            "devices": [{"loop": "1", "address": "N/A", "messages": "Lobby"}],
        }

        response = await client.post("/api/v1/admin/checklists/upload", json=document)
        assert response.status_code == 200
        data = response.json()
        assert data["success_count"] == 1
        checklist_id = data["results"][0]["checklist_id"]

        response = await client.get("/api/v1/admin/checklists")
        assert [c["id"] for c in response.json()] == [checklist_id]
        assert response.json()[0]["company"]["name"] == "Acme"

        response = await client.delete(f"/api/v1/admin/checklists/{checklist_id}")
        assert response.status_code == 200
        assert response.json()["company_deleted"] is True

        response = await client.delete(f"/api/v1/admin/checklists/{checklist_id}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upload_unknown_mode_returns_400(self, client):
        response = await client.post(
            "/api/v1/admin/checklists/upload",
            params={"mode": "merge"},
            json={"name": "Acme", "devices": []},
        )

        assert response.status_code == 400


@pytest.mark.api
class TestRealtime:
    """Progress WebSocket"""

    def test_subscribe_and_ping(self):
        feed = ChangeFeed()
        app.dependency_overrides[get_change_feed] = lambda: feed
        try:
            client = TestClient(app)
            with client.websocket_connect("/api/v1/realtime/checklists/1/progress") as websocket:
                assert websocket.receive_json() == {"type": "subscribed", "checklist_id": 1}
                assert feed.subscription_count == 1

                websocket.send_text("ping")
                assert websocket.receive_text() == "pong"
        finally:
            app.dependency_overrides.clear()

    def test_change_forwarded_and_subscription_closed_on_disconnect(self):
        """Test a feed change reaches the client and disconnect tears the forwarder down"""
        feed = ChangeFeed()
        app.dependency_overrides[get_change_feed] = lambda: feed
        try:
            client = TestClient(app)
            with client.websocket_connect("/api/v1/realtime/checklists/1/progress") as websocket:
                websocket.receive_json()

                # Publish from the app's event loop thread
                websocket.portal.call(
                    feed.publish,
                    "device_progress",
                    {"checklist_id": 1, "device_uid": "dev-1", "checked": True},
                )
                message = websocket.receive_json()

                assert message["type"] == "change"
                assert message["table"] == "device_progress"
                assert message["new"]["device_uid"] == "dev-1"

            assert feed.subscription_count == 0
        finally:
            app.dependency_overrides.clear()
