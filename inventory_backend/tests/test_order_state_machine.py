"""
Tests for the order status state machine and transition engine.
"""

import random

import pytest

from inventory_backend.app.core.config import settings
from inventory_backend.app.domain.orders.state_machine import (
    TRANSITIONS, can_transition, is_terminal, may_invoke, successors
)
from inventory_backend.app.models.enums import OrderStatus, Role

S = OrderStatus


# --- Pure state machine ---

def test_graph_edges():
    assert successors(S.PENDING) == {S.APPROVED, S.CANCELLED}
    assert successors(S.APPROVED) == {S.SHIPPED, S.CANCELLED}
    assert successors(S.SHIPPED) == {S.DELIVERED, S.CANCELLED}
    assert is_terminal(S.DELIVERED)
    assert is_terminal(S.CANCELLED)
    assert set(TRANSITIONS) == set(OrderStatus)


@pytest.mark.parametrize("current", list(OrderStatus))
@pytest.mark.parametrize("requested", list(OrderStatus))
def test_no_backward_or_self_edges(current, requested):
    order = [S.PENDING, S.APPROVED, S.SHIPPED, S.DELIVERED]
    if can_transition(current, requested) and requested != S.CANCELLED:
        assert order.index(requested) == order.index(current) + 1
    assert not can_transition(current, current)


def test_random_walks_stay_on_graph():
    rng = random.Random(42)
    for _ in range(200):
        status = S.PENDING
        while not is_terminal(status):
            requested = rng.choice(list(OrderStatus))
            if can_transition(status, requested):
                status = requested
            else:
                assert requested not in TRANSITIONS[status]
        assert status in (S.DELIVERED, S.CANCELLED)


@pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER])
def test_privileged_roles_may_apply_any_edge(role):
    for current, targets in TRANSITIONS.items():
        for requested in targets:
            assert may_invoke(role, False, current, requested)


def test_owner_may_only_cancel_pending():
    assert may_invoke(Role.CUSTOMER, True, S.PENDING, S.CANCELLED)
    assert not may_invoke(Role.CUSTOMER, True, S.APPROVED, S.CANCELLED)
    assert not may_invoke(Role.CUSTOMER, True, S.PENDING, S.APPROVED)
    assert not may_invoke(Role.CUSTOMER, True, S.SHIPPED, S.DELIVERED)
    assert not may_invoke(Role.CUSTOMER, False, S.PENDING, S.CANCELLED)
    assert not may_invoke(Role.EMPLOYEE, False, S.PENDING, S.APPROVED)


# --- Transition engine over the API ---

@pytest.fixture
async def pending_order(admin, customer, create_product, place_order):
    product = await create_product(admin, name="Widget", price=29.99, quantity=10)
    return await place_order(customer, [{"product_id": product.id, "quantity": 2}])


@pytest.mark.asyncio
async def test_manager_ships_and_customer_cannot_deliver(pending_order, manager, customer, client_for):
    order_id = pending_order["id"]
    assert pending_order["status"] == "Pending"
    assert pending_order["status_history"] == []

    manager_client = client_for(manager)
    approved = await manager_client.patch(f"/api/orders/{order_id}/status", json={"status": "Approved"})
    assert approved.status_code == 200
    data = approved.json()["data"]
    assert data["status"] == "Approved"
    assert len(data["status_history"]) == 1
    assert data["status_history"][0]["updated_by"] == manager.id

    shipped = await manager_client.patch(f"/api/orders/{order_id}/status", json={
        "status": "Shipped", "tracking_number": "TRK123"
    })
    assert shipped.status_code == 200
    assert shipped.json()["data"]["tracking_number"] == "TRK123"
    assert shipped.json()["data"]["status"] == "Shipped"

    delivered = await client_for(customer).patch(f"/api/orders/{order_id}/status", json={"status": "Delivered"})
    assert delivered.status_code == 403
    assert delivered.json()["error_code"] == "ERR_PERM_001"

    current = await manager_client.get(f"/api/orders/{order_id}")
    assert current.json()["data"]["status"] == "Shipped"
    assert len(current.json()["data"]["status_history"]) == 2


@pytest.mark.asyncio
async def test_history_length_tracks_transitions_and_is_stable(pending_order, admin, client_for):
    order_id = pending_order["id"]
    ac = client_for(admin)

    for action in ("approve", "ship", "deliver"):
        response = await ac.patch(f"/api/orders/{order_id}/{action}")
        assert response.status_code == 200, response.text

    first = (await ac.get(f"/api/orders/{order_id}")).json()["data"]
    second = (await ac.get(f"/api/orders/{order_id}")).json()["data"]

    assert [e["status"] for e in first["status_history"]] == ["Approved", "Shipped", "Delivered"]
    assert first["status_history"] == second["status_history"]
    assert first["can_return"] is True
    assert first["can_cancel"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("path,target", [
    ("approve", "Approved"),
    ("deliver", "Delivered"),
    ("ship", "Shipped"),
])
async def test_illegal_transition_leaves_order_unchanged(pending_order, admin, client_for, path, target):
    order_id = pending_order["id"]
    ac = client_for(admin)
    await ac.patch(f"/api/orders/{order_id}/cancel", json={"notes": "Out of stock"})

    response = await ac.patch(f"/api/orders/{order_id}/{path}")

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_TRANSITION_001"
    assert body["details"] == {"current_status": "Cancelled", "requested_status": target}

    order = (await ac.get(f"/api/orders/{order_id}")).json()["data"]
    assert order["status"] == "Cancelled"
    assert len(order["status_history"]) == 1


@pytest.mark.asyncio
async def test_skipping_a_state_is_illegal(pending_order, admin, client_for):
    response = await client_for(admin).patch(
        f"/api/orders/{pending_order['id']}/status", json={"status": "Delivered"}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_customer_cancels_own_pending_order(pending_order, customer, client_for):
    response = await client_for(customer).patch(f"/api/orders/{pending_order['id']}/cancel")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "Cancelled"
    assert data["status_history"][0]["notes"] == settings.cancel_default_notes


@pytest.mark.asyncio
async def test_customer_cannot_cancel_after_approval_but_manager_can(pending_order, customer, manager, client_for):
    order_id = pending_order["id"]
    manager_client = client_for(manager)
    await manager_client.patch(f"/api/orders/{order_id}/approve")

    denied = await client_for(customer).patch(f"/api/orders/{order_id}/cancel", json={"notes": "Changed my mind"})
    assert denied.status_code == 403

    allowed = await manager_client.patch(f"/api/orders/{order_id}/cancel", json={"notes": "Customer request"})
    assert allowed.status_code == 200
    assert allowed.json()["data"]["status"] == "Cancelled"


@pytest.mark.asyncio
async def test_manager_cancels_shipped_order(pending_order, manager, client_for):
    order_id = pending_order["id"]
    ac = client_for(manager)
    await ac.patch(f"/api/orders/{order_id}/approve")
    await ac.patch(f"/api/orders/{order_id}/ship", json={"tracking_number": "TRK-1"})

    response = await ac.patch(f"/api/orders/{order_id}/cancel")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Cancelled"


@pytest.mark.asyncio
async def test_other_customer_is_forbidden(pending_order, create_user, client_for):
    stranger = await create_user(Role.CUSTOMER)

    cancel = await client_for(stranger).patch(f"/api/orders/{pending_order['id']}/cancel")
    read = await client_for(stranger).get(f"/api/orders/{pending_order['id']}")

    assert cancel.status_code == 403
    assert read.status_code == 403


@pytest.mark.asyncio
async def test_employee_cannot_transition(pending_order, employee, client_for):
    ac = client_for(employee)

    assert (await ac.get(f"/api/orders/{pending_order['id']}")).status_code == 200
    assert (await ac.patch(f"/api/orders/{pending_order['id']}/approve")).status_code == 403


@pytest.mark.asyncio
async def test_unknown_order_is_not_found(admin, client_for):
    response = await client_for(admin).patch("/api/orders/9999/approve")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unauthenticated_transition_is_rejected_before_lookup(client):
    response = await client.patch("/api/orders/9999/approve")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_tracking_number_only_when_shipping(pending_order, admin, client_for):
    response = await client_for(admin).patch(f"/api/orders/{pending_order['id']}/status", json={
        "status": "Approved", "tracking_number": "TRK123"
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
@pytest.mark.parametrize("tracking_number", ["", "has space", "x" * 101, "bad/slash"])
async def test_malformed_tracking_number(pending_order, admin, client_for, tracking_number):
    ac = client_for(admin)
    await ac.patch(f"/api/orders/{pending_order['id']}/approve")

    response = await ac.patch(f"/api/orders/{pending_order['id']}/ship", json={"tracking_number": tracking_number})

    assert response.status_code == 400
    order = (await ac.get(f"/api/orders/{pending_order['id']}")).json()["data"]
    assert order["status"] == "Approved"


@pytest.mark.asyncio
async def test_estimated_delivery_before_order_date(pending_order, admin, client_for):
    ac = client_for(admin)
    await ac.patch(f"/api/orders/{pending_order['id']}/approve")

    response = await ac.patch(f"/api/orders/{pending_order['id']}/ship", json={
        "tracking_number": "TRK123", "estimated_delivery": "2000-01-01"
    })
    assert response.status_code == 400

    ok = await ac.patch(f"/api/orders/{pending_order['id']}/ship", json={
        "tracking_number": "TRK123", "estimated_delivery": "2999-01-01"
    })
    assert ok.status_code == 200
    assert ok.json()["data"]["estimated_delivery"] == "2999-01-01"


@pytest.mark.asyncio
async def test_cancel_notes_can_be_required(pending_order, customer, client_for, monkeypatch):
    monkeypatch.setattr(settings, "cancel_notes_required", True)
    ac = client_for(customer)

    blank = await ac.patch(f"/api/orders/{pending_order['id']}/cancel", json={"notes": "  "})
    assert blank.status_code == 400

    with_reason = await ac.patch(f"/api/orders/{pending_order['id']}/cancel", json={"notes": "Ordered twice"})
    assert with_reason.status_code == 200
    assert with_reason.json()["data"]["status_history"][0]["notes"] == "Ordered twice"


@pytest.mark.asyncio
async def test_tracking_can_be_required_on_ship(pending_order, admin, client_for, monkeypatch):
    monkeypatch.setattr(settings, "require_tracking_on_ship", True)
    ac = client_for(admin)
    await ac.patch(f"/api/orders/{pending_order['id']}/approve")

    assert (await ac.patch(f"/api/orders/{pending_order['id']}/ship")).status_code == 400
    assert (await ac.patch(
        f"/api/orders/{pending_order['id']}/ship", json={"tracking_number": "TRK9"}
    )).status_code == 200
