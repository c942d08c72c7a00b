"""
User settings API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inventory_backend.app.core.dependencies import Actor, get_current_user
from inventory_backend.app.db.session import get_db
from inventory_backend.app.schemas.common import ApiResponse
from inventory_backend.app.schemas.settings import SettingsResponse, SettingsUpdate
from inventory_backend.app.services.settings import get_or_create_settings, update_settings

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=ApiResponse[SettingsResponse])
async def get_settings(
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's settings, created with defaults on first access."""
    user_settings = await get_or_create_settings(db, actor.user_id)
    return ApiResponse(data=SettingsResponse.model_validate(user_settings))


@router.patch("", response_model=ApiResponse[SettingsResponse])
async def patch_settings(
    payload: SettingsUpdate,
    actor: Actor = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user_settings = await update_settings(db, actor.user_id, payload)
    return ApiResponse(data=SettingsResponse.model_validate(user_settings), message="Settings updated")
