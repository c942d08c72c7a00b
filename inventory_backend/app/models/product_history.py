"""
Product history model.

One row per recorded change to a catalog product.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON, Text, Index
from sqlalchemy.sql import func
from inventory_backend.app.db.session import Base
from inventory_backend.app.models.enums import ProductChangeType


class ProductHistory(Base):
    __tablename__ = "product_history"
    __table_args__ = (
        Index("ix_product_history_product_timestamp", "product_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    change_type = Column(Enum(ProductChangeType), nullable=False, index=True)
    field = Column(String(100), nullable=False)
    previous_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    notes = Column(Text, nullable=False, default="")

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ProductHistory(product={self.product_id}, change='{self.change_type.value}', field='{self.field}')>"
