"""
API Router.

Aggregates all endpoints mounted under the API prefix.
"""

from fastapi import APIRouter
from inventory_backend.app.api.routes import users, products, orders, reports, dashboard, settings

router = APIRouter()

router.include_router(users.router)
router.include_router(products.router)
router.include_router(orders.router)
router.include_router(reports.router)
router.include_router(dashboard.router)
router.include_router(settings.router)
