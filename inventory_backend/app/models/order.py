"""
Order and order line models.

The status history is kept on the order row itself (JSON array) so that a
status transition is a single conditional UPDATE of one row.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Text, JSON, Date
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from inventory_backend.app.db.session import Base
from inventory_backend.app.models.enums import OrderStatus, PaymentStatus, PaymentMethod


class Order(Base):
    """
    Customer order.

    ``status_history`` entries: {"status", "notes", "updated_by", "timestamp"}.
    Entries are only ever appended by the transition engine.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    total_amount = Column(Float, nullable=False)

    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.OTHER, nullable=False)

    notes = Column(Text, nullable=False, default="")
    tracking_number = Column(String(100), nullable=True)
    estimated_delivery = Column(Date, nullable=True)

    status_history = Column(JSON, nullable=False, default=list)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order(id={self.id}, customer={self.customer_id}, status='{self.status.value}')>"


class OrderItem(Base):
    """One order line, written once at checkout."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    # Snapshot at checkout
    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem(order={self.order_id}, product={self.product_id}, qty={self.quantity})>"
