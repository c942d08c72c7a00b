"""
Per-user settings service.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.models.user_settings import UserSettings
from inventory_backend.app.schemas.settings import SettingsUpdate


async def get_or_create_settings(db: AsyncSession, user_id: int) -> UserSettings:
    """Return the user's settings, creating the defaults on first access."""
    result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
    user_settings = result.scalar_one_or_none()

    if user_settings is None:
        user_settings = UserSettings(user_id=user_id)
        db.add(user_settings)
        await db.commit()
        await db.refresh(user_settings)

    return user_settings


async def update_settings(db: AsyncSession, user_id: int, payload: SettingsUpdate) -> UserSettings:
    user_settings = await get_or_create_settings(db, user_id)

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user_settings, field, value)

    await db.commit()
    await db.refresh(user_settings)
    return user_settings
