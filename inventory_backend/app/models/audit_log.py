"""
Audit Log Database Model.

Tracks authentication and account events for security monitoring.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from inventory_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - USER_REGISTERED
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - PASSWORD_CHANGED / PASSWORD_RESET_REQUESTED / PASSWORD_RESET
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for anonymous attempts)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email})>"
