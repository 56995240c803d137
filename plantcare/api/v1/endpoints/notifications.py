from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.deps import CurrentUser, Dispatcher, get_db
from plantcare.schemas.notification import (
    DispatchResultRead,
    FcmTokenUpdate,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    OverdueTaskList,
    OverdueTaskRead,
)
from plantcare.services.overdue_tasks import find_overdue_tasks_for_user
from plantcare.services.user_settings import save_fcm_token, update_notification_settings

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _settings_read(user_settings) -> NotificationSettingsRead:
    return NotificationSettingsRead(
        notifications_enabled=user_settings.notifications_enabled,
        notifications_enabled_at=user_settings.notifications_enabled_at,
        has_fcm_token=user_settings.fcm_token is not None,
        persona=user_settings.persona,
        timezone=user_settings.timezone,
    )


@router.post("/fcm-token", response_model=NotificationSettingsRead)
async def register_fcm_token(
    data: FcmTokenUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    user_settings = await save_fcm_token(db, current_user.id, data.fcm_token)
    return _settings_read(user_settings)


@router.put("/settings", response_model=NotificationSettingsRead)
async def update_settings(
    data: NotificationSettingsUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
):
    user_settings = await update_notification_settings(db, current_user.id, data.enabled)
    return _settings_read(user_settings)


@router.get("/overdue-tasks", response_model=OverdueTaskList)
async def list_my_overdue_tasks(current_user: CurrentUser, db: AsyncSession = Depends(get_db)):
    tasks = await find_overdue_tasks_for_user(db, current_user.id)
    return OverdueTaskList(items=[OverdueTaskRead.model_validate(t) for t in tasks], count=len(tasks))


@router.post("/test", response_model=DispatchResultRead)
async def send_test_notification(
    current_user: CurrentUser,
    dispatcher: Dispatcher,
    db: AsyncSession = Depends(get_db),
):
    result = await dispatcher.send_test_notification(db, current_user.id)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Failed to send test notification")
    return result
