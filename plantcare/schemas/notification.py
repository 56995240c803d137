from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class FcmTokenUpdate(BaseModel):
    fcm_token: str = Field(min_length=1, max_length=512)


class NotificationSettingsUpdate(BaseModel):
    enabled: bool


class NotificationSettingsRead(BaseModel):
    notifications_enabled: bool
    notifications_enabled_at: Optional[datetime]
    has_fcm_token: bool
    persona: Literal["PRIMARY", "SECONDARY", "TERTIARY"]
    timezone: str


class OverdueTaskRead(BaseModel):
    id: int
    plant_id: int
    plant_name: str
    task_key: str
    next_due_on: datetime
    last_completed_on: Optional[datetime]
    user_id: int

    model_config = {"from_attributes": True}


class OverdueTaskList(BaseModel):
    items: list[OverdueTaskRead]
    count: int


class OverdueTaskStatsRead(BaseModel):
    total_overdue_tasks: int
    users_with_overdue_tasks: int
    tasks_by_type: dict[str, int]

    model_config = {"from_attributes": True}


class DispatchResultRead(BaseModel):
    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    model_config = {"from_attributes": True}


class CycleSummaryRead(BaseModel):
    notification_index: int
    started_at: datetime
    users: int
    successful: int
    failed: int
    skipped: int
    duration_ms: int
    status: str = "success"
    error: Optional[str] = None

    model_config = {"from_attributes": True}


class SchedulerStatusRead(BaseModel):
    is_running: bool
    is_processing: bool
    notification_index: int
    interval_seconds: int
    next_run_at: Optional[datetime]
    last_cycle: Optional[CycleSummaryRead]

    model_config = {"from_attributes": True}


class TriggerResponse(BaseModel):
    ran: bool
    summary: Optional[CycleSummaryRead] = None
    status: SchedulerStatusRead


class NotificationStatsRead(BaseModel):
    overdue_tasks: OverdueTaskStatsRead
    scheduler: SchedulerStatusRead
