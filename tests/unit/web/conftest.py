"""Fixtures for tests that drive the full Fitout application."""

import pytest
from fastapi.testclient import TestClient

from fitout.config import reset_config


@pytest.fixture
def api_client(monkeypatch):
    """Full app on a throwaway SQLite file with admin auth switched off."""
    monkeypatch.setenv("FITOUT_AUTH_DISABLED", "true")
    reset_config()

    from fitout.web.app import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def seeded(api_client):
    """Project with a unit type, scheme, three upgrades and unit 101, built via the API.

    Returns a dict of ids plus the unit's generated login.
    """
    project = api_client.post(
        "/api/projects", json={"name": "Harbour View", "developmentCompany": "Coastal Developments"}
    ).json()["data"]
    project_id = project["id"]

    unit_type = api_client.post(
        f"/api/projects/{project_id}/unit-types",
        json={"name": "Type A", "bedrooms": 2, "bathrooms": 1, "size_m2": "78.5"},
    ).json()["data"]
    allowed = [unit_type["id"]]

    scheme = api_client.post(
        f"/api/projects/{project_id}/color-schemes",
        json={
            "name": "Coastal",
            "materials": {"benchtop": "Caesarstone Oyster", "flooring": "Oak Herringbone"},
            "allowed_unit_types": allowed,
        },
    ).json()["data"]

    def upgrade(name, category, price, max_quantity=1):
        return api_client.post(
            f"/api/projects/{project_id}/upgrade-options",
            json={
                "name": name,
                "category": category,
                "price": price,
                "max_quantity": max_quantity,
                "allowed_unit_types": allowed,
            },
        ).json()["data"]

    oven = upgrade("Steam Oven", "Appliances", "2400.00")
    downlights = upgrade("LED Downlight", "Lighting", "150.00", 4)

    api_client.patch(
        f"/api/unit-types/{unit_type['id']}",
        json={
            "allowed_color_schemes": [scheme["id"]],
            "allowed_upgrades": [oven["id"], downlights["id"]],
        },
    )

    unit = api_client.post(
        "/api/units",
        json={"projectId": project_id, "unitNumber": "101", "unitTypeId": unit_type["id"]},
    ).json()["data"]

    return {
        "project_id": project_id,
        "unit_type_id": unit_type["id"],
        "scheme_id": scheme["id"],
        "oven_id": oven["id"],
        "downlights_id": downlights["id"],
        "unit_id": unit["id"],
        "username": unit["username"],
        "password": unit["password"],
    }
