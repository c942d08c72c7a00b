"""
Reports Service.

Rows are filtered in SQL and aggregated in Python so the same code runs on
PostgreSQL and SQLite. READ-ONLY.
"""

import csv
import io
from collections import OrderedDict, defaultdict
from datetime import date, datetime, time, timedelta, timezone
from statistics import mean
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.config import settings
from inventory_backend.app.core.exceptions import ValidationError
from inventory_backend.app.models.enums import OrderStatus
from inventory_backend.app.models.order import Order
from inventory_backend.app.models.product import Product
from inventory_backend.app.schemas.report import (
    ReportPeriod, ReportType,
    SalesPeriod, SalesSummary, TopProduct, SalesReport,
    InventoryItem, CategoryInventory, InventoryStats, InventoryReport,
    FulfillmentTimeStats, OrderTrendPoint, OrdersReport,
    ProductPerformance, CategoryPerformance, ProductsReport,
)

INVENTORY_SORT_FIELDS = {"name", "category", "quantity", "price", "created_at"}
PRODUCT_SORT_FIELDS = {"name", "total_quantity", "total_revenue", "order_count", "average_order_quantity"}

# Columns written by the CSV export for each report
EXPORT_FIELDS = {
    ReportType.SALES: ["label", "total_sales", "order_count", "average_order_value", "product_count"],
    ReportType.INVENTORY: ["name", "category", "quantity", "price", "sku"],
    ReportType.ORDERS: [
        "label", "total_orders", "pending_orders", "approved_orders",
        "shipped_orders", "delivered_orders", "cancelled_orders",
    ],
    ReportType.PRODUCTS: [
        "name", "category", "sku", "total_quantity", "total_revenue",
        "order_count", "average_order_quantity",
    ],
}


def period_label(moment: datetime, period: ReportPeriod) -> str:
    """Bucket label: ``2024-03-05``, ``2024-W09``, ``2024-03`` or ``2024``."""
    if period == ReportPeriod.YEARLY:
        return moment.strftime("%Y")
    if period == ReportPeriod.MONTHLY:
        return moment.strftime("%Y-%m")
    if period == ReportPeriod.WEEKLY:
        year, week, _ = moment.isocalendar()
        return f"{year}-W{week:02d}"
    return moment.strftime("%Y-%m-%d")


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive UTC timestamps
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _hours(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    if start is None or end is None:
        return None
    return (_as_utc(end) - _as_utc(start)).total_seconds() / 3600


def _avg(values: List[float]) -> float:
    return round(mean(values), 2) if values else 0.0


def _date_range(query, column, start_date: Optional[date], end_date: Optional[date]):
    if start_date:
        query = query.where(column >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(column < datetime.combine(end_date + timedelta(days=1), time.min))
    return query


def _history_times(order: Order) -> Dict[str, datetime]:
    """Latest timestamp at which the order entered each status."""
    times: Dict[str, datetime] = {}
    for entry in order.status_history or []:
        stamp = datetime.fromisoformat(entry["timestamp"])
        status = entry["status"]
        if status not in times or stamp > times[status]:
            times[status] = stamp
    return times


class ReportService:

    @staticmethod
    async def _orders(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[OrderStatus] = None,
        exclude_cancelled: bool = False,
    ) -> List[Order]:
        query = select(Order)
        query = _date_range(query, Order.created_at, start_date, end_date)
        if status:
            query = query.where(Order.status == status)
        if exclude_cancelled:
            query = query.where(Order.status != OrderStatus.CANCELLED)
        result = await db.execute(query.order_by(Order.created_at, Order.id))
        return list(result.scalars().all())

    @staticmethod
    async def _products_by_id(db: AsyncSession, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        result = await db.execute(select(Product).where(Product.id.in_(ids)))
        return {product.id: product for product in result.scalars().all()}

    @staticmethod
    async def _sold_lines(
        db: AsyncSession,
        start_date: Optional[date],
        end_date: Optional[date],
        category: Optional[str],
    ) -> Tuple[List[Order], Dict[int, Product]]:
        """Non-cancelled orders, narrowed to those holding a line in ``category``."""
        orders = await ReportService._orders(db, start_date, end_date, exclude_cancelled=True)
        products = await ReportService._products_by_id(
            db, (line.product_id for order in orders for line in order.items)
        )
        if category:
            orders = [
                order for order in orders
                if any(
                    line.product_id in products and products[line.product_id].category == category
                    for line in order.items
                )
            ]
        return orders, products

    @staticmethod
    async def sales_report(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        period: ReportPeriod = ReportPeriod.DAILY,
        category: Optional[str] = None,
        limit: int = 100,
    ) -> SalesReport:
        """Revenue per period over non-cancelled orders."""
        if category == "all":
            category = None
        orders, products = await ReportService._sold_lines(db, start_date, end_date, category)

        buckets: Dict[str, List[Order]] = OrderedDict()
        for order in sorted(orders, key=lambda o: period_label(o.created_at, period)):
            buckets.setdefault(period_label(order.created_at, period), []).append(order)

        sales_data = [
            SalesPeriod(
                label=label,
                total_sales=round(sum(o.total_amount for o in bucket), 2),
                order_count=len(bucket),
                average_order_value=_avg([o.total_amount for o in bucket]),
                product_count=sum(len(o.items) for o in bucket),
            )
            for label, bucket in list(buckets.items())[:limit]
        ]

        amounts = [o.total_amount for o in orders]
        summary = SalesSummary()
        if amounts:
            summary = SalesSummary(
                total_sales=round(sum(amounts), 2),
                order_count=len(amounts),
                average_order_value=_avg(amounts),
                min_order_value=min(amounts),
                max_order_value=max(amounts),
            )

        top_products: List[TopProduct] = []
        if category:
            totals: Dict[int, Dict[str, float]] = defaultdict(lambda: {"quantity": 0, "revenue": 0.0})
            names: Dict[int, str] = {}
            for order in orders:
                for line in order.items:
                    product = products.get(line.product_id)
                    if product is None or product.category != category:
                        continue
                    totals[line.product_id]["quantity"] += line.quantity
                    totals[line.product_id]["revenue"] += line.price * line.quantity
                    names[line.product_id] = line.name
            ranked = sorted(totals.items(), key=lambda item: item[1]["revenue"], reverse=True)[:5]
            top_products = [
                TopProduct(
                    product_id=product_id,
                    name=names[product_id],
                    category=category,
                    total_quantity=int(values["quantity"]),
                    total_revenue=round(values["revenue"], 2),
                )
                for product_id, values in ranked
            ]

        return SalesReport(
            sales_data=sales_data,
            summary=summary,
            top_products=top_products,
            period=period,
            filters={
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "category": category,
            },
        )

    @staticmethod
    async def inventory_report(
        db: AsyncSession,
        category: Optional[str] = None,
        low_stock_threshold: Optional[int] = None,
        sort_by: str = "quantity",
        sort_order: str = "asc",
        limit: int = 100,
    ) -> InventoryReport:
        """Stock levels of active products."""
        if category == "all":
            category = None
        if sort_by not in INVENTORY_SORT_FIELDS:
            raise ValidationError(
                f"Cannot sort inventory by {sort_by}",
                details={"allowed": sorted(INVENTORY_SORT_FIELDS)}
            )
        threshold = settings.low_stock_threshold if low_stock_threshold is None else low_stock_threshold

        query = select(Product).where(Product.is_active == True)
        if category:
            query = query.where(Product.category == category)
        result = await db.execute(query)
        products = list(result.scalars().all())

        ordered = sorted(products, key=lambda p: (getattr(p, sort_by), p.id), reverse=(sort_order == "desc"))
        low_stock = sorted((p for p in products if p.quantity <= threshold), key=lambda p: (p.quantity, p.id))

        by_category: Dict[str, List[Product]] = defaultdict(list)
        for product in products:
            by_category[product.category].append(product)

        summary = [
            CategoryInventory(
                category=name,
                total_products=len(items),
                total_value=round(sum(p.price * p.quantity for p in items), 2),
                average_price=_avg([p.price for p in items]),
                low_stock_count=sum(1 for p in items if p.quantity <= threshold),
            )
            for name, items in sorted(by_category.items())
        ]

        stats = InventoryStats()
        if products:
            stats = InventoryStats(
                total_products=len(products),
                total_value=round(sum(p.price * p.quantity for p in products), 2),
                average_price=_avg([p.price for p in products]),
                total_quantity=sum(p.quantity for p in products),
                low_stock_count=len(low_stock),
            )

        return InventoryReport(
            inventory_data=[InventoryItem.model_validate(p) for p in ordered[:limit]],
            low_stock_products=[InventoryItem.model_validate(p) for p in low_stock],
            inventory_summary=summary,
            inventory_stats=stats,
            filters={"category": category, "low_stock_threshold": threshold},
        )

    @staticmethod
    async def orders_report(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[OrderStatus] = None,
        period: ReportPeriod = ReportPeriod.DAILY,
        limit: int = 100,
    ) -> OrdersReport:
        """Status counts, fulfilment times and order trend."""
        orders = await ReportService._orders(db, start_date, end_date, status=status)

        status_counts: Dict[str, int] = {}
        for order in orders:
            status_counts[order.status.value] = status_counts.get(order.status.value, 0) + 1

        approval, shipping, delivery, total = [], [], [], []
        for order in orders:
            if order.status not in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
                continue
            times = _history_times(order)
            approved_at = times.get(OrderStatus.APPROVED.value)
            shipped_at = times.get(OrderStatus.SHIPPED.value)
            delivered_at = times.get(OrderStatus.DELIVERED.value)
            for bucket, value in (
                (approval, _hours(order.created_at, approved_at)),
                (shipping, _hours(approved_at, shipped_at)),
                (delivery, _hours(shipped_at, delivered_at)),
                (total, _hours(order.created_at, delivered_at)),
            ):
                if value is not None:
                    bucket.append(value)

        fulfillment = FulfillmentTimeStats(
            avg_approval_time=_avg(approval),
            avg_shipping_time=_avg(shipping),
            avg_delivery_time=_avg(delivery),
            avg_total_fulfillment_time=_avg(total),
            min_total_fulfillment_time=round(min(total), 2) if total else 0.0,
            max_total_fulfillment_time=round(max(total), 2) if total else 0.0,
        )

        trend: Dict[str, OrderTrendPoint] = {}
        for order in orders:
            label = period_label(order.created_at, period)
            point = trend.setdefault(label, OrderTrendPoint(label=label))
            point.total_orders += 1
            field = f"{order.status.value.lower()}_orders"
            setattr(point, field, getattr(point, field) + 1)

        return OrdersReport(
            status_counts=status_counts,
            fulfillment_time_stats=fulfillment,
            order_trend=[trend[label] for label in sorted(trend)][:limit],
            period=period,
            filters={
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status.value if status else None,
            },
        )

    @staticmethod
    async def products_report(
        db: AsyncSession,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
        sort_by: str = "total_revenue",
        sort_order: str = "desc",
        limit: int = 20,
    ) -> ProductsReport:
        """Per-product and per-category sales performance."""
        if category == "all":
            category = None
        if sort_by not in PRODUCT_SORT_FIELDS:
            raise ValidationError(
                f"Cannot sort products by {sort_by}",
                details={"allowed": sorted(PRODUCT_SORT_FIELDS)}
            )
        orders, products = await ReportService._sold_lines(db, start_date, end_date, category)

        per_product: Dict[int, Dict[str, Any]] = {}
        per_category: Dict[Optional[str], Dict[str, Any]] = {}
        for order in orders:
            for line in order.items:
                product = products.get(line.product_id)
                line_category = product.category if product else None
                revenue = line.price * line.quantity

                entry = per_product.setdefault(line.product_id, {
                    "name": line.name, "quantities": [], "revenue": 0.0,
                    "category": line_category,
                    "sku": product.sku if product else None,
                    "price": product.price if product else None,
                })
                entry["quantities"].append(line.quantity)
                entry["revenue"] += revenue

                group = per_category.setdefault(line_category, {
                    "quantity": 0, "revenue": 0.0, "products": set(), "lines": 0,
                })
                group["quantity"] += line.quantity
                group["revenue"] += revenue
                group["products"].add(line.product_id)
                group["lines"] += 1

        performance = [
            ProductPerformance(
                product_id=product_id,
                name=entry["name"],
                category=entry["category"],
                sku=entry["sku"],
                price=entry["price"],
                total_quantity=sum(entry["quantities"]),
                total_revenue=round(entry["revenue"], 2),
                order_count=len(entry["quantities"]),
                average_order_quantity=_avg(entry["quantities"]),
            )
            for product_id, entry in per_product.items()
        ]
        performance.sort(key=lambda p: getattr(p, sort_by), reverse=(sort_order == "desc"))

        categories = [
            CategoryPerformance(
                category=name,
                total_quantity=group["quantity"],
                total_revenue=round(group["revenue"], 2),
                product_count=len(group["products"]),
                order_count=group["lines"],
                average_revenue_per_product=round(group["revenue"] / len(group["products"]), 2),
            )
            for name, group in per_category.items()
        ]
        categories.sort(key=lambda c: c.total_revenue, reverse=True)

        return ProductsReport(
            product_performance=performance[:limit],
            category_performance=categories,
            filters={
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "category": category,
                "sort_by": sort_by,
                "sort_order": sort_order,
            },
        )

    @staticmethod
    def export_rows(report_type: ReportType, report: Any) -> List[Dict[str, Any]]:
        """Main table of a report, as plain dicts."""
        if report_type == ReportType.SALES:
            rows = report.sales_data
        elif report_type == ReportType.INVENTORY:
            rows = report.inventory_data
        elif report_type == ReportType.ORDERS:
            rows = report.order_trend
        else:
            rows = report.product_performance
        return [row.model_dump() for row in rows]

    @staticmethod
    def to_csv(report_type: ReportType, rows: List[Dict[str, Any]]) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS[report_type], extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)
        return buffer.getvalue()
