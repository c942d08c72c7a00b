"""
Order API endpoints.

Checkout and listings go through ``OrderService``; every status change goes
through ``OrderTransitionEngine``, which enforces the transition graph,
role rules and ownership.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.dependencies import Actor, get_current_user
from inventory_backend.app.core.guards import Policy, require_role
from inventory_backend.app.db.session import get_db
from inventory_backend.app.domain.orders.transition_engine import OrderTransitionEngine
from inventory_backend.app.models.enums import ALL_ROLES, PRIVILEGED_ROLES, STAFF_ROLES, OrderStatus
from inventory_backend.app.models.order import Order
from inventory_backend.app.schemas.common import ApiResponse
from inventory_backend.app.schemas.order import (
    OrderCreate, StatusUpdate, TransitionNotes, ShipRequest, PaymentUpdate,
    OrderResponse, OrderDetailResponse, AvailableProduct,
)
from inventory_backend.app.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

# Customers see their own orders, staff see all
order_read_policy = Policy(
    allowed_roles=ALL_ROLES,
    resolve_owner=lambda order: order.customer_id,
    bypass_roles=STAFF_ROLES,
    resource_name="orders",
)


def _order(order: Order) -> OrderResponse:
    return OrderResponse.model_validate(order)


@router.post("", response_model=ApiResponse[OrderResponse], status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an order.

    Customers order for themselves; staff must name the customer by
    ``customer_id`` or ``customer_info``.
    """
    order = await OrderService.create_order(db, actor, payload)
    return ApiResponse(data=_order(order), message="Order created")


@router.get("/available-products", response_model=ApiResponse[List[AvailableProduct]])
async def available_products(
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    products = await OrderService.available_products(db)
    return ApiResponse(data=[AvailableProduct.model_validate(p) for p in products])


@router.get("/all", response_model=ApiResponse[List[OrderResponse]])
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    actor: Actor = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    orders = await OrderService.list_orders(db, status=status, start_date=start_date, end_date=end_date)
    return ApiResponse(data=[_order(o) for o in orders])


@router.get("/my-orders", response_model=ApiResponse[List[OrderResponse]])
async def list_my_orders(
    status: Optional[OrderStatus] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=100),
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    orders = await OrderService.list_customer_orders(db, actor.user_id, status=status, limit=limit)
    return ApiResponse(data=[_order(o) for o in orders])


@router.get("/{order_id}", response_model=ApiResponse[OrderDetailResponse])
async def get_order(
    order_id: int,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    order = await OrderService.get_order(db, order_id)
    order_read_policy.authorize(actor, order)

    detail = OrderDetailResponse(
        **_order(order).model_dump(),
        **OrderService.order_actions(order),
    )
    return ApiResponse(data=detail)


@router.patch("/{order_id}/status", response_model=ApiResponse[OrderResponse])
async def update_order_status(
    order_id: int,
    payload: StatusUpdate,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Move an order to any successor status the actor is allowed to apply."""
    order = await OrderTransitionEngine.transition(
        db, order_id, payload.status, actor,
        notes=payload.notes,
        tracking_number=payload.tracking_number,
        estimated_delivery=payload.estimated_delivery,
    )
    return ApiResponse(data=_order(order), message=f"Order status updated to {order.status.value}")


@router.patch("/{order_id}/payment", response_model=ApiResponse[OrderResponse])
async def update_payment(
    order_id: int,
    payload: PaymentUpdate,
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    order = await OrderService.update_payment(db, order_id, payload, actor)
    return ApiResponse(data=_order(order), message="Payment updated")


@router.patch("/{order_id}/approve", response_model=ApiResponse[OrderResponse])
async def approve_order(
    order_id: int,
    payload: Optional[TransitionNotes] = None,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notes = payload.notes if payload else None
    order = await OrderTransitionEngine.approve(db, order_id, actor, notes)
    return ApiResponse(data=_order(order), message="Order approved")


@router.patch("/{order_id}/ship", response_model=ApiResponse[OrderResponse])
async def ship_order(
    order_id: int,
    payload: Optional[ShipRequest] = None,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    payload = payload or ShipRequest()
    order = await OrderTransitionEngine.ship(
        db, order_id, actor, payload.notes,
        tracking_number=payload.tracking_number,
        estimated_delivery=payload.estimated_delivery,
    )
    return ApiResponse(data=_order(order), message="Order shipped")


@router.patch("/{order_id}/deliver", response_model=ApiResponse[OrderResponse])
async def deliver_order(
    order_id: int,
    payload: Optional[TransitionNotes] = None,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notes = payload.notes if payload else None
    order = await OrderTransitionEngine.deliver(db, order_id, actor, notes)
    return ApiResponse(data=_order(order), message="Order delivered")


@router.patch("/{order_id}/cancel", response_model=ApiResponse[OrderResponse])
async def cancel_order(
    order_id: int,
    payload: Optional[TransitionNotes] = None,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Customers may cancel their own pending orders; admin and manager any non-terminal one."""
    notes = payload.notes if payload else None
    order = await OrderTransitionEngine.cancel(db, order_id, actor, notes)
    return ApiResponse(data=_order(order), message="Order cancelled")
