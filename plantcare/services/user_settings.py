import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.logging import mask_token
from plantcare.models.user import UserSettings
from plantcare.services.due_dates import normalize_timezone

logger = logging.getLogger(__name__)


async def get_user_settings(db: AsyncSession, user_id: int) -> Optional[UserSettings]:
    result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
    return result.scalar_one_or_none()


async def _get_or_create(db: AsyncSession, user_id: int) -> UserSettings:
    user_settings = await get_user_settings(db, user_id)
    if user_settings is None:
        user_settings = UserSettings(user_id=user_id, persona="PRIMARY", timezone="UTC")
        db.add(user_settings)
    return user_settings


async def save_fcm_token(db: AsyncSession, user_id: int, fcm_token: str) -> UserSettings:
    """Register a push token. A user seen for the first time is opted in from now."""
    user_settings = await get_user_settings(db, user_id)
    if user_settings is None:
        user_settings = UserSettings(
            user_id=user_id,
            persona="PRIMARY",
            timezone="UTC",
            notifications_enabled=True,
            notifications_enabled_at=datetime.now(timezone.utc),
        )
        db.add(user_settings)
    user_settings.fcm_token = fcm_token
    await db.commit()
    await db.refresh(user_settings)
    logger.info("save_fcm_token: saved token %s for user %d", mask_token(fcm_token), user_id)
    return user_settings


async def clear_fcm_token(db: AsyncSession, user_id: int) -> None:
    await db.execute(
        update(UserSettings).where(UserSettings.user_id == user_id).values(fcm_token=None)
    )
    await db.commit()
    logger.info("clear_fcm_token: removed push token for user %d", user_id)


async def update_notification_settings(db: AsyncSession, user_id: int, enabled: bool) -> UserSettings:
    """Switching on stamps the opt-in cutoff; switching off clears it."""
    user_settings = await _get_or_create(db, user_id)
    user_settings.notifications_enabled = enabled
    user_settings.notifications_enabled_at = datetime.now(timezone.utc) if enabled else None
    await db.commit()
    await db.refresh(user_settings)
    return user_settings


async def get_user_timezone(db: AsyncSession, user_id: int) -> str:
    tz = await db.scalar(select(UserSettings.timezone).where(UserSettings.user_id == user_id))
    return normalize_timezone(tz)
