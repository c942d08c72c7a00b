"""
FastAPI Application Entry Point.

This is the main application file for the Inventory Manager Backend.
"""

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from inventory_backend.app.core.config import settings
from inventory_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from inventory_backend.app.core.redis_client import ping_redis
from inventory_backend.app.api.router import router as api_router
from inventory_backend.app.db.session import engine, Base
from inventory_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from inventory_backend.app.models.user import User
from inventory_backend.app.models.token import Token
from inventory_backend.app.models.product import Product
from inventory_backend.app.models.product_history import ProductHistory
from inventory_backend.app.models.order import Order, OrderItem
from inventory_backend.app.models.user_settings import UserSettings
from inventory_backend.app.models.audit_log import AuditLog


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Creates database tables on startup.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="REST backend for inventory, orders and reporting",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application name and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "redis": "up" if await ping_redis() else "down",
    }


app.include_router(api_router, prefix=settings.api_prefix)

# Uploaded product images
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")
