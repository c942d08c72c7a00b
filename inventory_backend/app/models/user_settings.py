"""
Per-user UI preferences.
"""

from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from inventory_backend.app.db.session import Base
from inventory_backend.app.models.enums import Theme, DefaultView


class UserSettings(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    theme = Column(Enum(Theme), default=Theme.SYSTEM, nullable=False)

    # Notifications
    order_updates = Column(Boolean, default=True, nullable=False)
    promotions = Column(Boolean, default=True, nullable=False)
    product_updates = Column(Boolean, default=True, nullable=False)
    email = Column(Boolean, default=True, nullable=False)
    in_app = Column(Boolean, default=True, nullable=False)

    # Display
    items_per_page = Column(Integer, default=10, nullable=False)
    default_view = Column(Enum(DefaultView), default=DefaultView.LIST, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserSettings(user={self.user_id}, theme='{self.theme.value}')>"
