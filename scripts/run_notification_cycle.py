#!/usr/bin/env python3
"""
One-off script to run a single overdue-task notification cycle.

Usage (inside the API container):
    python scripts/run_notification_cycle.py                 # round-robin slot 0
    python scripts/run_notification_cycle.py --index 3       # pick a different slot
    python scripts/run_notification_cycle.py --stats-only    # report, send nothing

Do not run this while the API's own scheduler is active against the same
database unless a duplicate push is acceptable.
"""
import argparse
import asyncio

from plantcare.core.logging import configure_logging

configure_logging()

from plantcare.core.config import settings
from plantcare.db.session import AsyncSessionLocal
from plantcare.services.notifications import NotificationDispatcher
from plantcare.services.overdue_tasks import get_overdue_task_stats
from plantcare.services.push import FirebasePushChannel
from plantcare.tasks.notification_scheduler import NotificationScheduler

parser = argparse.ArgumentParser(description="Overdue-task notification cycle")
parser.add_argument("--index", type=int, default=0, help="Round-robin notification index to use")
parser.add_argument("--stats-only", action="store_true", help="Print overdue stats without sending")


async def main() -> None:
    args = parser.parse_args()

    async with AsyncSessionLocal() as db:
        stats = await get_overdue_task_stats(db)
    print(
        f"Overdue tasks: {stats.total_overdue_tasks} across "
        f"{stats.users_with_overdue_tasks} users {stats.tasks_by_type}"
    )
    if args.stats_only:
        return

    dispatcher = NotificationDispatcher(
        FirebasePushChannel.from_settings(settings),
        send_delay=settings.NOTIFICATION_SEND_DELAY_MS / 1000,
    )
    scheduler = NotificationScheduler(AsyncSessionLocal, dispatcher)
    scheduler.notification_index = args.index

    print("Starting notification cycle...\n")
    summary = await scheduler.trigger()
    if summary is None:
        print("\nSkipped, another cycle is already running.")
        return
    if summary.status == "failed":
        print(f"\nCycle failed after {summary.duration_ms}ms: {summary.error}")
        return
    print(
        f"\nCycle finished: {summary.successful} sent, {summary.skipped} skipped, "
        f"{summary.failed} failed in {summary.duration_ms}ms."
    )


if __name__ == "__main__":
    asyncio.run(main())
