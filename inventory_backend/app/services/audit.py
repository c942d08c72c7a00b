"""
Audit logging service for tracking authentication and account events.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from inventory_backend.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
    PASSWORD_RESET = "PASSWORD_RESET"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Record an event in the audit log and commit it.

    Args:
        db: Database session
        action: One of the AuditAction constants
        actor_id: ID of the user involved (None for anonymous attempts)
        actor_email: Email of the user involved
        metadata: Additional context stored as JSON
        ip_address: Client address of the request
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_events_for_user(db: AsyncSession, user_id: int, limit: int = 50) -> List[AuditLog]:
    """Most recent audit events where the user was the actor."""
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.actor_id == user_id)
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
        .limit(limit)
    )
    return list(result.scalars().all())
