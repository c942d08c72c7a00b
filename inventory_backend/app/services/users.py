"""
User persistence service.

All writes of user records go through here. A raw password passed to
``save_user`` is hashed before the row is flushed; nothing else in the
codebase touches ``User.hashed_password``.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.config import settings
from inventory_backend.app.core.exceptions import ValidationError, ResourceNotFoundError
from inventory_backend.app.core.security import (
    get_password_hash, verify_password, generate_reset_token, hash_reset_token
)
from inventory_backend.app.models.enums import Role
from inventory_backend.app.models.token import Token
from inventory_backend.app.models.user import User

logger = logging.getLogger("inventory.users")


async def save_user(db: AsyncSession, user: User, password: Optional[str] = None, commit: bool = True) -> User:
    """
    Persist a user, encoding ``password`` onto the record first when given.
    """
    if password is not None:
        user.hashed_password = get_password_hash(password)
    elif not user.hashed_password:
        raise ValueError("A new user needs a password")

    db.add(user)
    if commit:
        await db.commit()
        await db.refresh(user)
    else:
        await db.flush()
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Return the user when the credentials match, None otherwise."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def find_or_create_customer(db: AsyncSession, name: str, email: str) -> User:
    """
    Resolve a customer by email for staff-entered orders, creating one with a
    random password when unknown. Does not commit.
    """
    existing = await get_user_by_email(db, email)
    if existing:
        if existing.role != Role.CUSTOMER:
            raise ValidationError(
                "Orders can only be placed for customer accounts",
                details={"email": existing.email, "role": existing.role.value}
            )
        return existing

    customer = User(name=name, email=email.lower(), role=Role.CUSTOMER)
    await save_user(db, customer, password=secrets.token_urlsafe(12), commit=False)
    logger.info("Created customer %s for staff-entered order", customer.email)
    return customer


async def change_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> User:
    if not verify_password(old_password, user.hashed_password):
        raise ValidationError("Invalid password")
    return await save_user(db, user, password=new_password)


async def create_reset_token(db: AsyncSession, user: User) -> str:
    """
    Issue a password reset token for ``user`` and return the raw value.

    Earlier tokens for the user are discarded.
    """
    await db.execute(delete(Token).where(Token.user_id == user.id))

    raw_token = generate_reset_token()
    now = datetime.now(timezone.utc)
    db.add(Token(
        user_id=user.id,
        token=hash_reset_token(raw_token),
        created_at=now,
        expires_at=now + timedelta(minutes=settings.password_reset_expire_minutes),
    ))
    await db.commit()
    return raw_token


async def reset_password(db: AsyncSession, raw_token: str, new_password: str) -> User:
    result = await db.execute(
        select(Token).where(Token.token == hash_reset_token(raw_token))
    )
    token = result.scalar_one_or_none()

    if token is None:
        raise ValidationError("Invalid or expired token")

    expires_at = token.expires_at
    if expires_at.tzinfo is None:
        # SQLite hands back naive UTC timestamps
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        raise ValidationError("Invalid or expired token")

    user = await get_user(db, token.user_id)
    if user is None:
        raise ResourceNotFoundError("User")

    await db.delete(token)
    return await save_user(db, user, password=new_password)


async def list_customers(db: AsyncSession) -> List[User]:
    result = await db.execute(
        select(User).where(User.role == Role.CUSTOMER).order_by(User.name)
    )
    return list(result.scalars().all())
