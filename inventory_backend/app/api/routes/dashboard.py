"""
Dashboard API endpoints.

Read-only overview data.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.dependencies import Actor, get_current_user
from inventory_backend.app.core.guards import require_role
from inventory_backend.app.db.session import get_db
from inventory_backend.app.models.enums import PRIVILEGED_ROLES
from inventory_backend.app.schemas.common import ApiResponse
from inventory_backend.app.schemas.report import DashboardStats, CustomerStats
from inventory_backend.app.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=ApiResponse[DashboardStats])
async def get_dashboard_stats(
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Sales, orders, stock and user counts for admin and manager."""
    return ApiResponse(data=await DashboardService.get_stats(db))


@router.get("/customer-stats", response_model=ApiResponse[CustomerStats])
async def get_customer_stats(
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's own order summary."""
    return ApiResponse(data=await DashboardService.get_customer_stats(db, actor.user_id))
