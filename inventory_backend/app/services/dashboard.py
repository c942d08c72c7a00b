"""
Dashboard Service.

Aggregates for the admin/manager overview and the customer home page.
READ-ONLY.
"""

from datetime import datetime, time, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.config import settings
from inventory_backend.app.models.enums import OrderStatus
from inventory_backend.app.models.order import Order
from inventory_backend.app.models.product import Product
from inventory_backend.app.models.user import User
from inventory_backend.app.schemas.order import OrderResponse
from inventory_backend.app.schemas.report import (
    SalesWindow, DashboardStats, CustomerStats, InventoryItem
)

RECENT_ORDERS_LIMIT = 5


class DashboardService:

    @staticmethod
    async def _sales_between(db: AsyncSession, start: datetime, end: Optional[datetime] = None) -> SalesWindow:
        query = select(
            func.coalesce(func.sum(Order.total_amount), 0),
            func.count(Order.id),
        ).where(
            Order.created_at >= start,
            Order.status != OrderStatus.CANCELLED,
        )
        if end is not None:
            query = query.where(Order.created_at < end)
        total, count = (await db.execute(query)).one()
        return SalesWindow(total=round(float(total), 2), count=count)

    @staticmethod
    async def _status_counts(db: AsyncSession, customer_id: Optional[int] = None) -> Dict[str, int]:
        query = select(Order.status, func.count(Order.id)).group_by(Order.status)
        if customer_id is not None:
            query = query.where(Order.customer_id == customer_id)
        counts = {status.value: 0 for status in OrderStatus}
        for status, count in (await db.execute(query)).all():
            counts[status.value] = count
        return counts

    @staticmethod
    async def get_stats(db: AsyncSession, now: Optional[datetime] = None) -> DashboardStats:
        """Sales windows, order and user counts, low stock and recent orders."""
        now = now or datetime.now(timezone.utc)
        today = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
        yesterday = today - timedelta(days=1)
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)

        low_stock = await db.execute(
            select(Product)
            .where(Product.is_active == True, Product.quantity <= settings.low_stock_threshold)
            .order_by(Product.quantity, Product.id)
            .limit(10)
        )

        user_rows = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
        user_counts = {role.value: count for role, count in user_rows.all()}

        recent = await db.execute(
            select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(RECENT_ORDERS_LIMIT)
        )

        return DashboardStats(
            sales_today=await DashboardService._sales_between(db, today),
            sales_yesterday=await DashboardService._sales_between(db, yesterday, today),
            sales_this_week=await DashboardService._sales_between(db, week_start),
            sales_this_month=await DashboardService._sales_between(db, month_start),
            order_counts=await DashboardService._status_counts(db),
            low_stock_products=[InventoryItem.model_validate(p) for p in low_stock.scalars().all()],
            user_counts=user_counts,
            recent_orders=[OrderResponse.model_validate(o) for o in recent.scalars().all()],
        )

    @staticmethod
    async def get_customer_stats(db: AsyncSession, customer_id: int) -> CustomerStats:
        """Order counts and spend of one customer. Cancelled orders do not count as spent."""
        counts = await DashboardService._status_counts(db, customer_id)

        spent = (await db.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0)).where(
                Order.customer_id == customer_id,
                Order.status != OrderStatus.CANCELLED,
            )
        )).scalar()

        recent = await db.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(RECENT_ORDERS_LIMIT)
        )

        return CustomerStats(
            order_counts=counts,
            total_orders=sum(counts.values()),
            total_spent=round(float(spent or 0), 2),
            recent_orders=[OrderResponse.model_validate(o) for o in recent.scalars().all()],
        )
