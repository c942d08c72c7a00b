"""
User settings Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from inventory_backend.app.models.enums import Theme, DefaultView


class SettingsResponse(BaseModel):
    theme: Theme
    order_updates: bool
    promotions: bool
    product_updates: bool
    email: bool
    in_app: bool
    items_per_page: int
    default_view: DefaultView

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""
    theme: Optional[Theme] = None
    order_updates: Optional[bool] = None
    promotions: Optional[bool] = None
    product_updates: Optional[bool] = None
    email: Optional[bool] = None
    in_app: Optional[bool] = None
    items_per_page: Optional[int] = Field(None, ge=5, le=100)
    default_view: Optional[DefaultView] = None
