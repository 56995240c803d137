"""
NotificationLog access: append-only writes and the de-duplication lookup.

The log has no task column. A delivery is tied to a task through the task id
embedded in ``payload_json``; ``task_log_marker`` produces the exact fragment
that appears there, so task 1 never matches a payload for task 12.
"""
import json
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from plantcare.models.logs import NotificationLog

WEB_PUSH = "WEB_PUSH"


def task_log_marker(task_id: int) -> str:
    # json.dumps of the payload renders data["task_id"] exactly like this
    return json.dumps({"task_id": str(task_id)})[1:-1]


async def append_notification_log(
    db: AsyncSession,
    user_id: int,
    payload: dict[str, Any],
    channel: str = WEB_PUSH,
    sent_at: Optional[datetime] = None,
) -> NotificationLog:
    log = NotificationLog(
        user_id=user_id,
        payload_json=json.dumps(payload),
        channel=channel,
        sent_at=sent_at or datetime.now(timezone.utc),
    )
    db.add(log)
    await db.commit()
    return log


async def find_recent_log_containing(
    db: AsyncSession,
    user_id: int,
    since: datetime,
    marker: str,
) -> Optional[NotificationLog]:
    result = await db.execute(
        select(NotificationLog).where(
            NotificationLog.user_id == user_id,
            NotificationLog.sent_at >= since,
            NotificationLog.payload_json.contains(marker, autoescape=True),
        ).limit(1)
    )
    return result.scalar_one_or_none()


async def was_task_notified_since(db: AsyncSession, user_id: int, task_id: int, since: datetime) -> bool:
    return await find_recent_log_containing(db, user_id, since, task_log_marker(task_id)) is not None
