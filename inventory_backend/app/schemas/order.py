"""
Order Pydantic schemas.

Defines request and response models for checkout, listing and status changes.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime, date
from typing import Optional, List
from inventory_backend.app.models.enums import OrderStatus, PaymentStatus, PaymentMethod


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class CustomerInfo(BaseModel):
    """Customer details for staff-entered orders."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class OrderCreate(BaseModel):
    """
    Schema for creating an order.

    Customers order for themselves. Staff must give ``customer_id`` or
    ``customer_info``.
    """
    items: List[OrderItemCreate] = Field(..., min_length=1)
    customer_id: Optional[int] = None
    customer_info: Optional[CustomerInfo] = None
    notes: Optional[str] = Field(None, max_length=1000)
    payment_method: Optional[PaymentMethod] = None


class StatusUpdate(BaseModel):
    """Generic transition request (PATCH /orders/{id}/status)."""
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=1000)
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[date] = None


class TransitionNotes(BaseModel):
    """Body for approve, deliver and cancel."""
    notes: Optional[str] = Field(None, max_length=1000)


class ShipRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[date] = None


class PaymentUpdate(BaseModel):
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = Field(None, max_length=1000)


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    notes: str = ""
    updated_by: Optional[int] = None
    timestamp: datetime


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    name: str
    quantity: int
    price: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Schema for order response."""
    id: int
    customer_id: int
    items: List[OrderItemResponse]
    total_amount: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    notes: str
    tracking_number: Optional[str]
    estimated_delivery: Optional[date]
    status_history: List[StatusHistoryEntry]
    created_by: int
    updated_by: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderDetailResponse(OrderResponse):
    """Single order with the actions still open to its customer."""
    can_cancel: bool
    can_return: bool


class AvailableProduct(BaseModel):
    id: int
    name: str
    category: str
    price: float
    quantity: int

    class Config:
        from_attributes = True
