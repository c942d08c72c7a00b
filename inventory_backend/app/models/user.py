"""
User database model.

This module defines the User SQLAlchemy model for authentication.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from inventory_backend.app.db.session import Base
from inventory_backend.app.models.enums import Role

DEFAULT_PHOTO = "https://i.ibb.co/4pDNDk1/avatar.png"


class User(Base):
    """
    User model for authentication and user management.

    ``hashed_password`` is written only through ``services.users`` which
    encodes the raw password on write.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(Role), default=Role.CUSTOMER, nullable=False, index=True)

    # Profile
    photo = Column(String(500), default=DEFAULT_PHOTO, nullable=False)
    phone = Column(String(50), default="+216", nullable=False)
    bio = Column(String(250), default="bio", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
