"""
Per-user settings tests.
"""

import pytest


@pytest.mark.asyncio
async def test_defaults_created_on_first_read(customer, client_for):
    response = await client_for(customer).get("/api/settings")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "theme": "system",
        "order_updates": True,
        "promotions": True,
        "product_updates": True,
        "email": True,
        "in_app": True,
        "items_per_page": 10,
        "default_view": "list",
    }


@pytest.mark.asyncio
async def test_partial_update_keeps_other_fields(customer, client_for):
    ac = client_for(customer)

    response = await ac.patch("/api/settings", json={"theme": "dark", "promotions": False})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["theme"] == "dark"
    assert data["promotions"] is False
    assert data["order_updates"] is True

    again = (await ac.get("/api/settings")).json()["data"]
    assert again == data


@pytest.mark.asyncio
async def test_settings_are_per_user(customer, manager, client_for):
    await client_for(manager).patch("/api/settings", json={"default_view": "grid"})

    mine = (await client_for(customer).get("/api/settings")).json()["data"]
    assert mine["default_view"] == "list"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"items_per_page": 4},
    {"items_per_page": 101},
    {"theme": "neon"},
])
async def test_invalid_values_are_rejected(customer, client_for, payload):
    response = await client_for(customer).patch("/api/settings", json=payload)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_settings_require_session(client):
    assert (await client.get("/api/settings")).status_code == 401
