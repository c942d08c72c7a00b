"""
Password reset token model.

Only the sha256 digest of the token handed to the user is stored.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from inventory_backend.app.db.session import Base


class Token(Base):
    __tablename__ = "tokens"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token = Column(String(128), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<Token(user={self.user_id}, expires_at={self.expires_at})>"
