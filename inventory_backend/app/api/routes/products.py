"""
Product API endpoints.

Catalog management is restricted to admin and manager; any authenticated
user can browse, and the public listing needs no session.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.dependencies import Actor, get_current_user
from inventory_backend.app.core.guards import require_role
from inventory_backend.app.db.session import get_db
from inventory_backend.app.models.enums import PRIVILEGED_ROLES, ProductChangeType
from inventory_backend.app.schemas.common import ApiResponse, Page
from inventory_backend.app.schemas.product import ProductResponse, ProductHistoryResponse
from inventory_backend.app.services.products import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


def _history_page(page: dict) -> Page[ProductHistoryResponse]:
    return Page[ProductHistoryResponse](
        items=[ProductHistoryResponse.model_validate(h) for h in page["items"]],
        total=page["total"],
        page=page["page"],
        page_size=page["page_size"],
        pages=page["pages"],
    )


@router.post("", response_model=ApiResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(..., min_length=1, max_length=200),
    category: str = Form(..., min_length=1, max_length=100),
    quantity: int = Form(..., ge=0),
    price: float = Form(..., ge=0),
    description: str = Form(..., min_length=1),
    sku: Optional[str] = Form(None, max_length=100),
    image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Create a product (multipart form, optional png/jpg/jpeg image)."""
    product = await ProductService.create_product(
        db, actor,
        {
            "name": name,
            "sku": sku,
            "category": category,
            "quantity": quantity,
            "price": price,
            "description": description,
        },
        image=image,
    )
    return ApiResponse(data=ProductResponse.model_validate(product), message="Product created")


@router.get("", response_model=ApiResponse[List[ProductResponse]])
async def list_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    products = await ProductService.list_products(db, category=category, search=search)
    return ApiResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/public", response_model=ApiResponse[List[ProductResponse]])
async def list_public_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Catalog listing for anonymous visitors."""
    products = await ProductService.list_products(db, category=category, search=search)
    return ApiResponse(data=[ProductResponse.model_validate(p) for p in products])


@router.get("/history/all", response_model=ApiResponse[Page[ProductHistoryResponse]])
async def list_all_history(
    change_type: Optional[ProductChangeType] = Query(None),
    user_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Change history across all products."""
    result = await ProductService.history(
        db,
        product_id=product_id,
        change_type=change_type,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return ApiResponse(data=_history_page(result))


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(
    product_id: int,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    product = await ProductService.get_product(db, product_id)
    return ApiResponse(data=ProductResponse.model_validate(product))


@router.patch("/{product_id}", response_model=ApiResponse[ProductResponse])
async def update_product(
    product_id: int,
    name: Optional[str] = Form(None, min_length=1, max_length=200),
    category: Optional[str] = Form(None, min_length=1, max_length=100),
    quantity: Optional[int] = Form(None, ge=0),
    price: Optional[float] = Form(None, ge=0),
    description: Optional[str] = Form(None, min_length=1),
    sku: Optional[str] = Form(None, max_length=100),
    image: Optional[UploadFile] = File(None),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Update any subset of product fields; each change is recorded in the history."""
    product = await ProductService.update_product(
        db, product_id, actor,
        {
            "name": name,
            "sku": sku,
            "category": category,
            "quantity": quantity,
            "price": price,
            "description": description,
        },
        image=image,
    )
    return ApiResponse(data=ProductResponse.model_validate(product), message="Product updated")


@router.delete("/{product_id}", response_model=ApiResponse[None])
async def delete_product(
    product_id: int,
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    await ProductService.delete_product(db, product_id, actor)
    return ApiResponse(message="Product deleted")


@router.get("/{product_id}/history", response_model=ApiResponse[Page[ProductHistoryResponse]])
async def get_product_history(
    product_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    actor: Actor = Depends(require_role(PRIVILEGED_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    result = await ProductService.product_history(db, product_id, page=page, page_size=page_size)
    return ApiResponse(data=_history_page(result))
