"""
Product Pydantic schemas.

Create and update requests arrive as multipart forms and are parsed in the
route; these models describe what the API returns.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Optional
from inventory_backend.app.models.enums import ProductChangeType


class ProductImage(BaseModel):
    file_name: str
    file_path: str
    file_type: str
    file_size: str


class ProductResponse(BaseModel):
    """Schema for product response."""
    id: int
    user_id: int
    name: str
    sku: Optional[str]
    category: str
    quantity: int
    price: float
    description: str
    image: Optional[ProductImage]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductHistoryResponse(BaseModel):
    id: int
    product_id: int
    user_id: int
    change_type: ProductChangeType
    field: str
    previous_value: Optional[Any]
    new_value: Optional[Any]
    notes: str
    timestamp: datetime

    class Config:
        from_attributes = True
