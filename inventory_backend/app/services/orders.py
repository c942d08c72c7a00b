"""
Order Service.

Checkout, listings and payment updates. Status changes go through
``domain.orders.transition_engine``.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.dependencies import Actor
from inventory_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from inventory_backend.app.domain.orders.transition_engine import load_order
from inventory_backend.app.models.enums import OrderStatus, PaymentStatus, PaymentMethod, Role
from inventory_backend.app.models.order import Order, OrderItem
from inventory_backend.app.models.product import Product
from inventory_backend.app.schemas.order import OrderCreate, PaymentUpdate
from inventory_backend.app.services.users import find_or_create_customer, get_user

logger = logging.getLogger("inventory.orders")

RETURN_WINDOW_DAYS = 14


class OrderService:

    @staticmethod
    async def create_order(db: AsyncSession, actor: Actor, payload: OrderCreate) -> Order:
        """
        Create a Pending order and take its lines out of stock.

        Flow:
        1. Resolve the customer (self for customers, given or found-or-created for staff)
        2. For each line: product must be active, stock decremented conditionally
        3. Price each line from the catalog, total is the rounded sum
        4. Commit order, lines and stock changes together

        Raises:
            ResourceNotFoundError: unknown customer or inactive/missing product
            ValidationError: missing or non-customer target for staff, or insufficient stock
        """
        customer_id = await OrderService._resolve_customer(db, actor, payload)

        lines: List[OrderItem] = []
        for item in payload.items:
            result = await db.execute(
                select(Product).where(Product.id == item.product_id, Product.is_active == True)
            )
            product = result.scalar_one_or_none()
            if not product:
                await db.rollback()
                raise ResourceNotFoundError("Product", item.product_id)

            # Conditional decrement: concurrent checkouts cannot oversell
            decrement = await db.execute(
                update(Product)
                .where(
                    Product.id == item.product_id,
                    Product.is_active == True,
                    Product.quantity >= item.quantity,
                )
                .values(quantity=Product.quantity - item.quantity)
                .execution_options(synchronize_session=False)
            )
            if decrement.rowcount == 0:
                available = product.quantity
                name = product.name
                await db.rollback()
                raise ValidationError(
                    f"Insufficient stock for {name}",
                    details={"product_id": item.product_id, "available": available, "requested": item.quantity}
                )

            lines.append(OrderItem(
                product_id=product.id,
                name=product.name,
                quantity=item.quantity,
                price=product.price,
            ))

        total_amount = round(sum(line.price * line.quantity for line in lines), 2)

        order = Order(
            customer_id=customer_id,
            items=lines,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
            payment_method=payload.payment_method or PaymentMethod.OTHER,
            notes=payload.notes or "",
            status_history=[],
            created_by=actor.user_id,
        )
        db.add(order)
        await db.commit()

        logger.info(
            "Order %s created for customer %s by user %s: %d lines, total %.2f",
            order.id, customer_id, actor.user_id, len(lines), total_amount
        )
        return await load_order(db, order.id)

    @staticmethod
    async def _resolve_customer(db: AsyncSession, actor: Actor, payload: OrderCreate) -> int:
        if actor.role == Role.CUSTOMER:
            return actor.user_id

        if payload.customer_id is not None:
            customer = await get_user(db, payload.customer_id)
            if not customer:
                raise ResourceNotFoundError("Customer", payload.customer_id)
            if customer.role != Role.CUSTOMER:
                raise ValidationError(
                    "Orders can only be placed for customer accounts",
                    details={"customer_id": customer.id, "role": customer.role.value}
                )
            return customer.id

        if payload.customer_info is not None:
            customer = await find_or_create_customer(
                db, payload.customer_info.name, payload.customer_info.email
            )
            return customer.id

        raise ValidationError("Customer information is required for staff-entered orders")

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        status: Optional[OrderStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Order]:
        """All orders, newest first, for staff."""
        query = select(Order)
        if status:
            query = query.where(Order.status == status)
        if start_date:
            query = query.where(Order.created_at >= datetime.combine(start_date, time.min))
        if end_date:
            query = query.where(Order.created_at < datetime.combine(end_date + timedelta(days=1), time.min))

        result = await db.execute(query.order_by(Order.created_at.desc(), Order.id.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def list_customer_orders(
        db: AsyncSession,
        customer_id: int,
        status: Optional[OrderStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Order]:
        query = select(Order).where(Order.customer_id == customer_id)
        if status:
            query = query.where(Order.status == status)
        query = query.order_by(Order.created_at.desc(), Order.id.desc())
        if limit:
            query = query.limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Order:
        order = await load_order(db, order_id)
        if not order:
            raise ResourceNotFoundError("Order", order_id)
        return order

    @staticmethod
    def order_actions(order: Order, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Customer-facing flags: ``can_cancel`` and ``can_return``."""
        now = now or datetime.now(timezone.utc)
        created_at = order.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return {
            "can_cancel": order.status == OrderStatus.PENDING,
            "can_return": (
                order.status == OrderStatus.DELIVERED
                and now - created_at <= timedelta(days=RETURN_WINDOW_DAYS)
            ),
        }

    @staticmethod
    async def update_payment(db: AsyncSession, order_id: int, payload: PaymentUpdate, actor: Actor) -> Order:
        order = await OrderService.get_order(db, order_id)

        order.payment_status = payload.payment_status
        if payload.payment_method:
            order.payment_method = payload.payment_method
        if payload.notes:
            order.notes = payload.notes
        order.updated_by = actor.user_id

        await db.commit()
        logger.info(
            "Order %s payment set to %s by user %s",
            order_id, payload.payment_status.value, actor.user_id
        )
        return await load_order(db, order_id)

    @staticmethod
    async def available_products(db: AsyncSession) -> List[Product]:
        """Active products with stock, for order entry."""
        result = await db.execute(
            select(Product)
            .where(Product.is_active == True, Product.quantity > 0)
            .order_by(Product.category, Product.name)
        )
        return list(result.scalars().all())
