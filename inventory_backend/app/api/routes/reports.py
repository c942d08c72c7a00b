"""
Report API endpoints (admin and manager only).
"""

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.dependencies import Actor
from inventory_backend.app.core.exceptions import ValidationError
from inventory_backend.app.core.guards import require_role
from inventory_backend.app.db.session import get_db
from inventory_backend.app.models.enums import PRIVILEGED_ROLES, OrderStatus
from inventory_backend.app.schemas.common import ApiResponse
from inventory_backend.app.schemas.report import (
    ReportPeriod, ReportType, SalesReport, InventoryReport, OrdersReport, ProductsReport
)
from inventory_backend.app.services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])

EXPORT_FILENAMES = {
    ReportType.SALES: "sales_report",
    ReportType.INVENTORY: "inventory_report",
    ReportType.ORDERS: "order_fulfillment_report",
    ReportType.PRODUCTS: "product_performance_report",
}


@router.get("/sales", response_model=ApiResponse[SalesReport])
async def sales_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    period: ReportPeriod = Query(ReportPeriod.DAILY),
    category: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Revenue per period; cancelled orders are excluded."""
    report = await ReportService.sales_report(
        db, start_date=start_date, end_date=end_date, period=period, category=category, limit=limit
    )
    return ApiResponse(data=report)


@router.get("/inventory", response_model=ApiResponse[InventoryReport])
async def inventory_report(
    category: Optional[str] = Query(None),
    low_stock_threshold: Optional[int] = Query(None, ge=0),
    sort_by: str = Query("quantity"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    report = await ReportService.inventory_report(
        db, category=category, low_stock_threshold=low_stock_threshold,
        sort_by=sort_by, sort_order=sort_order, limit=limit
    )
    return ApiResponse(data=report)


@router.get("/orders", response_model=ApiResponse[OrdersReport])
async def orders_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    period: ReportPeriod = Query(ReportPeriod.DAILY),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    report = await ReportService.orders_report(
        db, start_date=start_date, end_date=end_date, status=status, period=period, limit=limit
    )
    return ApiResponse(data=report)


@router.get("/products", response_model=ApiResponse[ProductsReport])
async def products_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    category: Optional[str] = Query(None),
    sort_by: str = Query("total_revenue"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    limit: int = Query(20, ge=1, le=1000),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    report = await ReportService.products_report(
        db, start_date=start_date, end_date=end_date, category=category,
        sort_by=sort_by, sort_order=sort_order, limit=limit
    )
    return ApiResponse(data=report)


@router.get("/{report_type}/export")
async def export_report(
    report_type: str,
    format: str = Query("csv"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    period: ReportPeriod = Query(ReportPeriod.DAILY),
    category: Optional[str] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Download the main table of a report. Only ``format=csv`` is supported."""
    try:
        kind = ReportType(report_type)
    except ValueError:
        raise ValidationError(
            "Invalid report type",
            details={"allowed": [t.value for t in ReportType]}
        )
    if format != "csv":
        raise ValidationError("Invalid export format. Supported formats: csv")

    if kind == ReportType.SALES:
        report = await ReportService.sales_report(
            db, start_date=start_date, end_date=end_date, period=period, category=category
        )
    elif kind == ReportType.INVENTORY:
        report = await ReportService.inventory_report(db, category=category)
    elif kind == ReportType.ORDERS:
        report = await ReportService.orders_report(
            db, start_date=start_date, end_date=end_date, status=status, period=period
        )
    else:
        report = await ReportService.products_report(
            db, start_date=start_date, end_date=end_date, category=category
        )

    content = ReportService.to_csv(kind, ReportService.export_rows(kind, report))
    filename = f"{EXPORT_FILENAMES[kind]}_{datetime.now(timezone.utc).date().isoformat()}.csv"

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
