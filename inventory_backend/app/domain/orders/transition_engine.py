"""
Order Transition Engine (Domain Logic).

Validates and applies order status changes. A transition is persisted as a
single conditional UPDATE of the order row keyed on the expected current
status, so a stale or duplicate request matches no row and fails with
``IllegalTransitionError`` without writing anything.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.config import settings
from inventory_backend.app.core.dependencies import Actor
from inventory_backend.app.core.exceptions import (
    ForbiddenError,
    IllegalTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from inventory_backend.app.domain.orders.state_machine import can_transition, may_invoke
from inventory_backend.app.models.enums import OrderStatus, PRIVILEGED_ROLES
from inventory_backend.app.models.order import Order

logger = logging.getLogger("inventory.orders")

TRACKING_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,100}$")


async def load_order(db: AsyncSession, order_id: int) -> Optional[Order]:
    """Fetch an order with its lines, bypassing any stale identity-map copy."""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class OrderTransitionEngine:

    @staticmethod
    async def transition(
        db: AsyncSession,
        order_id: int,
        requested_status: OrderStatus,
        actor: Actor,
        notes: Optional[str] = None,
        tracking_number: Optional[str] = None,
        estimated_delivery: Optional[date] = None,
    ) -> Order:
        """
        Move an order to ``requested_status``.

        Flow:
        1. Load order (404)
        2. Non-privileged actors must own the order (403)
        3. Requested status must be a direct successor (409)
        4. Role must permit this edge (403)
        5. Validate shipping fields and notes (400)
        6. Conditional UPDATE on the expected status, appending one history entry

        Raises:
            ResourceNotFoundError, ForbiddenError, IllegalTransitionError, ValidationError
        """
        order = await load_order(db, order_id)
        if order is None:
            raise ResourceNotFoundError("Order", order_id)

        current_status = order.status
        is_owner = order.customer_id == actor.user_id

        if actor.role not in PRIVILEGED_ROLES and not is_owner:
            raise ForbiddenError("Access denied. You can only access your own orders.")

        if not can_transition(current_status, requested_status):
            raise IllegalTransitionError(current_status.value, requested_status.value)

        if not may_invoke(actor.role, is_owner, current_status, requested_status):
            if requested_status == OrderStatus.CANCELLED:
                raise ForbiddenError("Order can only be cancelled while it is pending")
            raise ForbiddenError(
                f"Access denied. Moving an order to {requested_status.value} requires admin or manager role"
            )

        notes = _resolve_notes(requested_status, notes)
        _validate_shipping_fields(order, requested_status, tracking_number, estimated_delivery)

        entry = {
            "status": requested_status.value,
            "notes": notes,
            "updated_by": actor.user_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        values = {
            "status": requested_status,
            "status_history": list(order.status_history or []) + [entry],
            "updated_by": actor.user_id,
        }
        if notes:
            values["notes"] = notes
        if tracking_number is not None:
            values["tracking_number"] = tracking_number
        if estimated_delivery is not None:
            values["estimated_delivery"] = estimated_delivery

        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == current_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            # Another request moved the order after we read it
            await db.rollback()
            logger.info(
                "Order %s transition %s -> %s lost to a concurrent update",
                order_id, current_status.value, requested_status.value
            )
            raise IllegalTransitionError(current_status.value, requested_status.value)

        await db.commit()

        logger.info(
            "Order %s moved %s -> %s by user %s (%s)",
            order_id, current_status.value, requested_status.value,
            actor.user_id, actor.role.value
        )

        return await load_order(db, order_id)

    @staticmethod
    async def approve(db: AsyncSession, order_id: int, actor: Actor, notes: Optional[str] = None) -> Order:
        return await OrderTransitionEngine.transition(db, order_id, OrderStatus.APPROVED, actor, notes)

    @staticmethod
    async def ship(
        db: AsyncSession,
        order_id: int,
        actor: Actor,
        notes: Optional[str] = None,
        tracking_number: Optional[str] = None,
        estimated_delivery: Optional[date] = None,
    ) -> Order:
        return await OrderTransitionEngine.transition(
            db, order_id, OrderStatus.SHIPPED, actor, notes,
            tracking_number=tracking_number,
            estimated_delivery=estimated_delivery,
        )

    @staticmethod
    async def deliver(db: AsyncSession, order_id: int, actor: Actor, notes: Optional[str] = None) -> Order:
        return await OrderTransitionEngine.transition(db, order_id, OrderStatus.DELIVERED, actor, notes)

    @staticmethod
    async def cancel(db: AsyncSession, order_id: int, actor: Actor, notes: Optional[str] = None) -> Order:
        return await OrderTransitionEngine.transition(db, order_id, OrderStatus.CANCELLED, actor, notes)


def _resolve_notes(requested_status: OrderStatus, notes: Optional[str]) -> str:
    notes = (notes or "").strip()
    if requested_status == OrderStatus.CANCELLED and not notes:
        if settings.cancel_notes_required:
            raise ValidationError("A reason is required to cancel an order")
        return settings.cancel_default_notes
    return notes


def _validate_shipping_fields(
    order: Order,
    requested_status: OrderStatus,
    tracking_number: Optional[str],
    estimated_delivery: Optional[date],
) -> None:
    if requested_status != OrderStatus.SHIPPED:
        if tracking_number is not None or estimated_delivery is not None:
            raise ValidationError(
                "Tracking number and estimated delivery can only be set when shipping an order"
            )
        return

    if tracking_number is None:
        if settings.require_tracking_on_ship:
            raise ValidationError("A tracking number is required to ship an order")
    elif not TRACKING_NUMBER_PATTERN.match(tracking_number):
        raise ValidationError(
            "Tracking number must be 1-100 letters, digits, dashes or underscores",
            details={"tracking_number": tracking_number}
        )

    if estimated_delivery is not None and order.created_at is not None:
        if estimated_delivery < order.created_at.date():
            raise ValidationError(
                "Estimated delivery cannot be before the order date",
                details={"estimated_delivery": estimated_delivery.isoformat()}
            )
