"""
Authentication dependencies for FastAPI.

Resolves the session cookie into an ``Actor`` for protected routes.
"""

from dataclasses import dataclass
from typing import Optional
from fastapi import Depends
from fastapi.security import APIKeyCookie
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from inventory_backend.app.core.config import settings
from inventory_backend.app.core.exceptions import UnauthenticatedError
from inventory_backend.app.core.jwt import decode_access_token
from inventory_backend.app.core.token_revocation import is_token_revoked
from inventory_backend.app.db.session import get_db
from inventory_backend.app.models.enums import Role, PRIVILEGED_ROLES, STAFF_ROLES
from inventory_backend.app.models.user import User

# HTTP-only session cookie
session_cookie = APIKeyCookie(name=settings.cookie_name, auto_error=False)


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing a request."""
    user_id: int
    role: Role
    name: str
    email: str

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


async def get_session_token(token: Optional[str] = Depends(session_cookie)) -> str:
    if not token:
        raise UnauthenticatedError("Not authorized, please login")
    return token


async def get_current_user(
    token: str = Depends(get_session_token),
    db: AsyncSession = Depends(get_db)
) -> Actor:
    """
    FastAPI dependency establishing the actor of a request.

    Checks:
    1. Token signature and expiry
    2. Token not revoked by logout
    3. Subject still resolves to a user record (role read from the record)

    Raises:
        UnauthenticatedError: 401 if any check fails
    """
    payload = decode_access_token(token)
    if payload is None:
        raise UnauthenticatedError("Invalid or expired token, please login again")

    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthenticatedError("Invalid token payload")

    if await is_token_revoked(token):
        raise UnauthenticatedError("Session has been logged out, please login again")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise UnauthenticatedError("User not found")

    return Actor(user_id=user.id, role=user.role, name=user.name, email=user.email)
