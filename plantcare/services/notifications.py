"""
Notification dispatch.

One push per user per cycle. When a user has several overdue tasks the one
sent is ``tasks[notification_index % len(tasks)]``; the scheduler advances
the index once per cycle, so over N cycles each of N tasks gets its turn.

Before sending, two checks can skip the user for this cycle:

- the task was already overdue before the user switched notifications on;
- a NotificationLog entry for this task exists since the task was last
  completed (or since the plant was added), i.e. this due-date occurrence has
  already been announced.

A failure for one user is recorded in that user's result and never stops the
rest of the cycle.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.core.exceptions import PushDeliveryError
from plantcare.core.logging import mask_token
from plantcare.models.plant import TaskTemplate
from plantcare.services.notification_log import WEB_PUSH, append_notification_log, was_task_notified_since
from plantcare.services.notification_messages import build_care_reminder, resolve_task_label
from plantcare.services.overdue_tasks import OverdueTask
from plantcare.services.push import PushChannel
from plantcare.services.user_settings import clear_fcm_token, get_user_settings

logger = logging.getLogger(__name__)

CARE_REMINDER = "care_reminder"


@dataclass
class DispatchResult:
    user_id: int
    success: bool
    task_id: Optional[int] = None
    error: Optional[str] = None
    skipped: bool = False
    reason: Optional[str] = None
    message_id: Optional[str] = None


def select_task(user_tasks: list[OverdueTask], notification_index: int) -> OverdueTask:
    return user_tasks[notification_index % len(user_tasks)]


def dedup_reference(task: OverdueTask) -> datetime:
    """Start of the current due-date occurrence: last completion, or plant creation if later."""
    if task.last_completed_on is None:
        return task.plant_created_at
    return max(task.last_completed_on, task.plant_created_at)


async def load_task_labels(db: AsyncSession) -> dict[str, str]:
    result = await db.execute(select(TaskTemplate.key, TaskTemplate.label))
    return {key: label for key, label in result.all()}


class NotificationDispatcher:
    def __init__(self, push_channel: PushChannel, send_delay: float = 0.1):
        self.push_channel = push_channel
        self.send_delay = send_delay

    async def send_notifications_to_users(
        self,
        db: AsyncSession,
        tasks_by_user: dict[int, list[OverdueTask]],
        notification_index: int,
    ) -> list[DispatchResult]:
        results: list[DispatchResult] = []
        if not tasks_by_user:
            return results

        try:
            labels = await load_task_labels(db)
        except Exception:
            logger.exception("send_notifications_to_users: task label lookup failed, using built-in labels")
            await db.rollback()
            labels = {}

        for position, (user_id, user_tasks) in enumerate(tasks_by_user.items()):
            if position and self.send_delay:
                await asyncio.sleep(self.send_delay)
            try:
                result = await self._notify_user(db, user_id, user_tasks, notification_index, labels)
            except Exception as exc:
                logger.exception("send_notifications_to_users: error for user %d", user_id)
                await db.rollback()
                result = DispatchResult(user_id=user_id, success=False, error=str(exc))
            results.append(result)

        return results

    async def _notify_user(
        self,
        db: AsyncSession,
        user_id: int,
        user_tasks: list[OverdueTask],
        notification_index: int,
        labels: dict[str, str],
    ) -> DispatchResult:
        task = select_task(user_tasks, notification_index)

        if task.notifications_enabled_at and task.next_due_on < task.notifications_enabled_at:
            logger.info(
                "notify: skipping task %d for user %d, overdue before notifications were enabled",
                task.id, user_id,
            )
            return DispatchResult(user_id=user_id, success=True, task_id=task.id,
                                  skipped=True, reason="due_before_opt_in")

        if await was_task_notified_since(db, user_id, task.id, dedup_reference(task)):
            logger.info(
                "notify: skipping task %d for user %d, already notified for current due date",
                task.id, user_id,
            )
            return DispatchResult(user_id=user_id, success=True, task_id=task.id,
                                  skipped=True, reason="already_notified")

        label = resolve_task_label(task.task_key, labels)
        message = build_care_reminder(task.plant_name, task.task_key, label, task.user_persona, notification_index)
        data = {
            "plant_id": str(task.plant_id),
            "task_id": str(task.id),
            "task_key": task.task_key,
            "type": CARE_REMINDER,
            "user_id": str(user_id),
        }

        logger.info("notify: sending %s (%s) to user %d", task.task_key, task.plant_name, user_id)
        try:
            message_id = await self.push_channel.send(task.fcm_token, message.title, message.body, data)
        except PushDeliveryError as exc:
            if exc.is_invalid_token:
                logger.warning(
                    "notify: token %s for user %d is no longer valid (%s), clearing it",
                    mask_token(task.fcm_token), user_id, exc.code,
                )
                await clear_fcm_token(db, user_id)
            else:
                logger.warning("notify: delivery to user %d failed: %s", user_id, exc)
            return DispatchResult(user_id=user_id, success=False, task_id=task.id, error=exc.message)

        await append_notification_log(
            db,
            user_id,
            {"title": message.title, "body": message.body, "data": data, "message_id": message_id},
            channel=WEB_PUSH,
        )
        return DispatchResult(user_id=user_id, success=True, task_id=task.id, message_id=message_id)

    async def send_test_notification(self, db: AsyncSession, user_id: int) -> DispatchResult:
        """Send a fixed test push to the user's registered token. Nothing is logged."""
        user_settings = await get_user_settings(db, user_id)
        if user_settings is None or not user_settings.fcm_token:
            return DispatchResult(user_id=user_id, success=False, error="No push token registered")

        try:
            message_id = await self.push_channel.send(
                user_settings.fcm_token,
                "Test Notification",
                "This is a test notification from your plant care app!",
                {"type": "test"},
            )
        except PushDeliveryError as exc:
            if exc.is_invalid_token:
                await clear_fcm_token(db, user_id)
            return DispatchResult(user_id=user_id, success=False, error=exc.message)
        return DispatchResult(user_id=user_id, success=True, message_id=message_id)
