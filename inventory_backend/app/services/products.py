"""
Product catalog service.

Products are soft-deleted. Every create, field change and delete writes one
ProductHistory row per affected field.
"""

import logging
import math
import os
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.config import settings
from inventory_backend.app.core.dependencies import Actor
from inventory_backend.app.core.exceptions import ResourceNotFoundError, ValidationError
from inventory_backend.app.models.enums import ProductChangeType
from inventory_backend.app.models.product import Product
from inventory_backend.app.models.product_history import ProductHistory

logger = logging.getLogger("inventory.products")

ALLOWED_IMAGE_TYPES = {"image/png", "image/jpg", "image/jpeg"}

# Fields an update may touch, and the history category each one falls under
EDITABLE_FIELDS = {
    "name": ProductChangeType.INFORMATION,
    "sku": ProductChangeType.INFORMATION,
    "category": ProductChangeType.INFORMATION,
    "description": ProductChangeType.INFORMATION,
    "price": ProductChangeType.PRICE,
    "quantity": ProductChangeType.QUANTITY,
}


def file_size_formatter(size: int, decimals: int = 2) -> str:
    """Human readable file size, e.g. ``1.5 KB``."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    index = 0
    value = float(size)
    while value >= 1000 and index < len(units) - 1:
        value /= 1000
        index += 1
    return f"{round(value, decimals):g} {units[index]}"


async def save_image(image: UploadFile) -> Dict[str, str]:
    """Store an uploaded product image and return its metadata."""
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Only .png, .jpg and .jpeg images are allowed",
            details={"content_type": image.content_type}
        )

    content = await image.read()
    original_name = os.path.basename(image.filename or "image")
    stored_name = f"{datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S-%f')}-{original_name}"

    os.makedirs(settings.upload_dir, exist_ok=True)
    path = os.path.join(settings.upload_dir, stored_name)
    with open(path, "wb") as f:
        f.write(content)

    return {
        "file_name": original_name,
        "file_path": f"/uploads/{stored_name}",
        "file_type": image.content_type,
        "file_size": file_size_formatter(len(content)),
    }


def _history(product_id: int, user_id: int, change_type: ProductChangeType, field: str,
             previous_value: Any = None, new_value: Any = None, notes: str = "") -> ProductHistory:
    return ProductHistory(
        product_id=product_id,
        user_id=user_id,
        change_type=change_type,
        field=field,
        previous_value=previous_value,
        new_value=new_value,
        notes=notes,
    )


def _snapshot(product: Product) -> Dict[str, Any]:
    return {
        "name": product.name,
        "sku": product.sku,
        "category": product.category,
        "quantity": product.quantity,
        "price": product.price,
    }


class ProductService:

    @staticmethod
    async def create_product(
        db: AsyncSession,
        actor: Actor,
        fields: Dict[str, Any],
        image: Optional[UploadFile] = None,
    ) -> Product:
        product = Product(user_id=actor.user_id, **fields)
        if image is not None:
            product.image = await save_image(image)

        db.add(product)
        await db.flush()

        db.add(_history(
            product.id, actor.user_id, ProductChangeType.CREATED, "product",
            new_value=_snapshot(product), notes="Product created"
        ))
        await db.commit()
        await db.refresh(product)

        logger.info("Product %s '%s' created by user %s", product.id, product.name, actor.user_id)
        return product

    @staticmethod
    async def list_products(
        db: AsyncSession,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Product]:
        """Active products, newest first."""
        query = select(Product).where(Product.is_active == True)
        if category:
            query = query.where(Product.category == category)
        if search:
            query = query.where(Product.name.ilike(f"%{search}%"))

        result = await db.execute(query.order_by(Product.created_at.desc(), Product.id.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_product(db: AsyncSession, product_id: int) -> Product:
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id, Product.is_active == True)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if not product:
            raise ResourceNotFoundError("Product", product_id)
        return product

    @staticmethod
    async def update_product(
        db: AsyncSession,
        product_id: int,
        actor: Actor,
        changes: Dict[str, Any],
        image: Optional[UploadFile] = None,
    ) -> Product:
        """
        Apply the given field changes, recording one history row per field
        whose value actually changed.
        """
        product = await ProductService.get_product(db, product_id)

        for field, value in changes.items():
            if field not in EDITABLE_FIELDS or value is None:
                continue
            previous = getattr(product, field)
            if previous == value:
                continue
            setattr(product, field, value)
            db.add(_history(
                product.id, actor.user_id, EDITABLE_FIELDS[field], field,
                previous_value=previous, new_value=value
            ))

        if image is not None:
            previous_image = product.image
            product.image = await save_image(image)
            db.add(_history(
                product.id, actor.user_id, ProductChangeType.INFORMATION, "image",
                previous_value=previous_image, new_value=product.image
            ))

        await db.commit()
        await db.refresh(product)

        logger.info("Product %s updated by user %s", product_id, actor.user_id)
        return product

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int, actor: Actor) -> None:
        """Soft delete: the product disappears from listings but keeps its history."""
        product = await ProductService.get_product(db, product_id)
        product.is_active = False
        db.add(_history(
            product.id, actor.user_id, ProductChangeType.DELETED, "is_active",
            previous_value=True, new_value=False, notes="Product deleted"
        ))
        await db.commit()
        logger.info("Product %s deleted by user %s", product_id, actor.user_id)

    @staticmethod
    async def product_history(
        db: AsyncSession,
        product_id: int,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """History of one product, including deleted products."""
        result = await db.execute(select(Product.id).where(Product.id == product_id))
        if result.scalar_one_or_none() is None:
            raise ResourceNotFoundError("Product", product_id)

        return await ProductService.history(db, product_id=product_id, page=page, page_size=page_size)

    @staticmethod
    async def history(
        db: AsyncSession,
        product_id: Optional[int] = None,
        change_type: Optional[ProductChangeType] = None,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        sort: str = "desc",
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """Paginated history across products, filtered and sorted by timestamp."""
        conditions = []
        if product_id is not None:
            conditions.append(ProductHistory.product_id == product_id)
        if change_type is not None:
            conditions.append(ProductHistory.change_type == change_type)
        if user_id is not None:
            conditions.append(ProductHistory.user_id == user_id)
        if start_date is not None:
            conditions.append(ProductHistory.timestamp >= datetime.combine(start_date, time.min))
        if end_date is not None:
            conditions.append(ProductHistory.timestamp < datetime.combine(end_date + timedelta(days=1), time.min))

        total = (await db.execute(
            select(func.count(ProductHistory.id)).where(*conditions)
        )).scalar() or 0

        if sort == "asc":
            ordering = (ProductHistory.timestamp.asc(), ProductHistory.id.asc())
        else:
            ordering = (ProductHistory.timestamp.desc(), ProductHistory.id.desc())

        result = await db.execute(
            select(ProductHistory)
            .where(*conditions)
            .order_by(*ordering)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        return {
            "items": list(result.scalars().all()),
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": math.ceil(total / page_size) if total else 0,
        }
