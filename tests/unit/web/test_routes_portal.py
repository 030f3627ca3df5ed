"""Tests for fitout.web.routes.portal - the client selection wizard.

Drives the full application: admin setup, invitation, client login and
the wizard through to submission and export.
"""

import io
import zipfile


def _invite(api_client, unit_id):
    response = api_client.post(
        "/api/invitations",
        json={"unitId": unit_id, "client": {"name": "Aroha Smith", "email": "aroha@example.com"}},
    )
    assert response.status_code == 201
    return response.json()["data"]["token"]


class TestPortalAccess:
    def test_unknown_token_is_404(self, api_client, seeded):
        response = api_client.get("/api/portal/" + "0" * 32)

        assert response.status_code == 404
        assert response.json()["detail"] == "Invalid or expired link"

    def test_invitation_link_loads_context(self, api_client, seeded):
        token = _invite(api_client, seeded["unit_id"])

        response = api_client.get(f"/api/portal/{token}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["unit_number"] == "101"
        assert data["project_name"] == "Harbour View"
        assert [s["name"] for s in data["color_schemes"]] == ["Coastal"]
        assert {u["name"] for u in data["upgrades"]} == {"Steam Oven", "LED Downlight"}
        assert data["current_step"] == 1
        assert data["is_submitted"] is False

    def test_client_login_token(self, api_client, seeded):
        login = api_client.post(
            "/api/client-auth",
            json={"username": seeded["username"].upper(), "password": seeded["password"]},
        )
        assert login.status_code == 200

        response = api_client.get(f"/api/portal/{login.json()['token']}")

        assert response.status_code == 200
        assert response.json()["data"]["unit_id"] == seeded["unit_id"]


class TestWizardFlow:
    def test_selection_through_submission(self, api_client, seeded):
        token = _invite(api_client, seeded["unit_id"])
        base = f"/api/portal/{token}"

        saved = api_client.put(
            f"{base}/selection",
            json={
                "colorScheme": "Coastal",
                "upgrades": [
                    {"id": seeded["oven_id"], "quantity": 1},
                    {"id": seeded["downlights_id"], "quantity": 2},
                ],
                "wizardStep": 2,
            },
        )
        assert saved.status_code == 200
        assert saved.json()["data"]["upgradeValue"] == 2700.0

        step = api_client.post(f"{base}/navigate", json={"direction": "next"})
        assert step.json()["data"]["current_step"] == 3

        blocked = api_client.post(f"{base}/navigate", json={"direction": "next"})
        assert blocked.status_code == 400

        for x in (0.2, 0.6):
            placed = api_client.post(
                f"{base}/points", json={"upgradeId": seeded["downlights_id"], "x": x, "y": 0.5}
            )
            assert placed.status_code == 201
            assert placed.json()["data"]["upgrade_name"] == "LED Downlight"

        extra = api_client.post(
            f"{base}/points", json={"upgradeId": seeded["downlights_id"], "x": 0.9, "y": 0.5}
        )
        assert extra.status_code == 400

        submitted = api_client.post(f"{base}/submit")
        assert submitted.status_code == 200
        summary = submitted.json()["data"]["summary"]
        assert summary["subtotal"] == 2700.0
        assert summary["gst"] == 405.0
        assert summary["total"] == 3105.0

        context = api_client.get(base).json()["data"]
        assert context["is_submitted"] is True
        assert context["current_step"] == 5

        locked = api_client.put(f"{base}/selection", json={"colorScheme": "Coastal"})
        assert locked.status_code == 409

        submissions = api_client.get("/api/submissions").json()["data"]
        assert len(submissions) == 1
        assert submissions[0]["status"] == "submitted"
        assert submissions[0]["clientName"] == "Aroha Smith"

        export = api_client.post(
            f"/api/submissions/{submissions[0]['id']}/export",
            json={"exportTypes": ["finishes", "upgrades"]},
        )
        assert export.status_code == 200
        assert export.headers["content-type"] == "application/zip"
        assert 'filename="submission-101-documents.zip"' in export.headers["content-disposition"]
        names = zipfile.ZipFile(io.BytesIO(export.content)).namelist()
        assert sorted(names) == ["finishes.pdf", "upgrades.pdf"]

    def test_unknown_upgrade_rejected(self, api_client, seeded):
        token = _invite(api_client, seeded["unit_id"])

        response = api_client.put(
            f"/api/portal/{token}/selection",
            json={"colorScheme": "Coastal", "upgrades": [{"id": "missing", "quantity": 1}]},
        )

        assert response.status_code == 400

    def test_remove_unknown_point(self, api_client, seeded):
        token = _invite(api_client, seeded["unit_id"])
        api_client.put(f"/api/portal/{token}/selection", json={"colorScheme": "Coastal"})

        response = api_client.delete(f"/api/portal/{token}/points/nope")

        assert response.status_code == 400

    def test_invalid_direction_is_422(self, api_client, seeded):
        token = _invite(api_client, seeded["unit_id"])

        response = api_client.post(f"/api/portal/{token}/navigate", json={"direction": "up"})

        assert response.status_code == 422
