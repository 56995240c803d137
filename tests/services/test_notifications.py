import json
from types import SimpleNamespace

from sqlalchemy import func, select

from plantcare.core.exceptions import PushDeliveryError, TOKEN_NOT_REGISTERED
from plantcare.models.logs import NotificationLog
from plantcare.models.plant import TaskTemplate
from plantcare.services.notification_log import append_notification_log
from plantcare.services.notifications import NotificationDispatcher, dedup_reference, select_task
from plantcare.services.overdue_tasks import get_overdue_tasks_grouped_by_user
from tests.factories import create_plant, create_task, create_user, days_ago, get_token


async def _log_count(db) -> int:
    return await db.scalar(select(func.count(NotificationLog.id)))


async def _dispatch(db, dispatcher, index=0):
    tasks_by_user = await get_overdue_tasks_grouped_by_user(db)
    return await dispatcher.send_notifications_to_users(db, tasks_by_user, index)


async def test_one_push_per_user_per_cycle(db, dispatcher, push_channel):
    user = await create_user(db)
    plant = await create_plant(db, user, pet_name="Fern")
    first = await create_task(db, plant, task_key="watering", next_due_on=days_ago(3))
    await create_task(db, plant, task_key="pruning", next_due_on=days_ago(1))

    results = await _dispatch(db, dispatcher)

    assert len(results) == 1
    assert results[0].success and not results[0].skipped
    assert results[0].task_id == first.id
    assert len(push_channel.sent) == 1
    push = push_channel.sent[0]
    assert push.title == "Time to water your Fern!"
    assert push.body == "Your Fern plant needs water today. Tap to mark it done."
    assert push.data == {
        "plant_id": str(plant.id),
        "task_id": str(first.id),
        "task_key": "watering",
        "type": "care_reminder",
        "user_id": str(user.id),
    }


async def test_successful_send_is_logged(db, dispatcher, push_channel):
    user = await create_user(db)
    task = await create_task(db, await create_plant(db, user), next_due_on=days_ago(1))

    results = await _dispatch(db, dispatcher)

    log = await db.scalar(select(NotificationLog).where(NotificationLog.user_id == user.id))
    payload = json.loads(log.payload_json)
    assert payload["data"]["task_id"] == str(task.id)
    assert payload["message_id"] == results[0].message_id
    assert payload["title"] == push_channel.sent[0].title


async def test_round_robin_selects_by_index(db, dispatcher, push_channel):
    user = await create_user(db)
    plant = await create_plant(db, user)
    t1 = await create_task(db, plant, next_due_on=days_ago(3))
    t2 = await create_task(db, plant, next_due_on=days_ago(2))

    results = await _dispatch(db, dispatcher, index=1)
    assert results[0].task_id == t2.id

    results = await _dispatch(db, dispatcher, index=2)
    assert results[0].task_id == t1.id
    assert push_channel.sent_task_ids() == [t2.id, t1.id]


async def test_skips_task_already_notified(db, dispatcher, push_channel):
    user = await create_user(db)
    await create_task(db, await create_plant(db, user), next_due_on=days_ago(1))

    await _dispatch(db, dispatcher)
    results = await _dispatch(db, dispatcher)

    assert results[0].skipped
    assert results[0].success
    assert results[0].reason == "already_notified"
    assert len(push_channel.sent) == 1
    assert await _log_count(db) == 1


async def test_notifies_again_after_completion(db, dispatcher, push_channel):
    user = await create_user(db)
    plant = await create_plant(db, user)
    task = await create_task(db, plant, last_completed_on=days_ago(2), next_due_on=days_ago(0.1))

    # Reminder for the previous occurrence, sent before the last completion
    await append_notification_log(db, user.id, {"data": {"task_id": str(task.id)}}, sent_at=days_ago(3))

    results = await _dispatch(db, dispatcher)

    assert not results[0].skipped
    assert push_channel.sent_task_ids() == [task.id]


async def test_skips_task_overdue_before_opt_in(db, dispatcher, push_channel):
    user = await create_user(db, notifications_enabled_at=days_ago(1))
    await create_task(db, await create_plant(db, user), next_due_on=days_ago(5))

    results = await _dispatch(db, dispatcher)

    assert results[0].skipped
    assert results[0].reason == "due_before_opt_in"
    assert push_channel.attempts == 0
    assert await _log_count(db) == 0


async def test_task_due_after_opt_in_is_sent(db, dispatcher, push_channel):
    user = await create_user(db, notifications_enabled_at=days_ago(5))
    await create_task(db, await create_plant(db, user), next_due_on=days_ago(1))

    results = await _dispatch(db, dispatcher)

    assert results[0].success and not results[0].skipped
    assert len(push_channel.sent) == 1


async def test_invalid_token_is_cleared(db, dispatcher, push_channel):
    user = await create_user(db)
    await create_task(db, await create_plant(db, user), next_due_on=days_ago(1))
    token = await get_token(db, user)
    push_channel.errors[token] = PushDeliveryError(TOKEN_NOT_REGISTERED, "Requested entity was not found.")

    results = await _dispatch(db, dispatcher)

    assert not results[0].success
    assert results[0].error == "Requested entity was not found."
    assert await get_token(db, user) is None
    assert await _log_count(db) == 0


async def test_transient_failure_keeps_token(db, dispatcher, push_channel):
    user = await create_user(db)
    await create_task(db, await create_plant(db, user), next_due_on=days_ago(1))
    token = await get_token(db, user)
    push_channel.errors[token] = PushDeliveryError("messaging/internal-error", "Internal error")

    results = await _dispatch(db, dispatcher)

    assert not results[0].success
    assert await get_token(db, user) == token


async def test_one_user_failing_does_not_stop_others(db, dispatcher, push_channel):
    broken = await create_user(db)
    healthy = await create_user(db)
    await create_task(db, await create_plant(db, broken), next_due_on=days_ago(3))
    healthy_task = await create_task(db, await create_plant(db, healthy), next_due_on=days_ago(1))
    push_channel.errors[await get_token(db, broken)] = RuntimeError("socket closed")
    # The failure rolls the session back and expires loaded instances
    broken_id, healthy_id, healthy_task_id = broken.id, healthy.id, healthy_task.id

    results = await _dispatch(db, dispatcher)

    by_user = {r.user_id: r for r in results}
    assert not by_user[broken_id].success
    assert by_user[broken_id].error == "socket closed"
    assert by_user[healthy_id].success
    assert push_channel.sent_task_ids() == [healthy_task_id]


async def test_template_label_names_unknown_task(db, dispatcher, push_channel):
    db.add(TaskTemplate(key="repotting", label="Repot", default_frequency_days=180))
    await db.commit()
    user = await create_user(db)
    await create_task(db, await create_plant(db, user, pet_name="Fern"), task_key="repotting",
                      next_due_on=days_ago(1))

    await _dispatch(db, dispatcher)

    assert push_channel.sent[0].title == "🌱 Task Due: Repot"
    assert push_channel.sent[0].body == "Time to repot Fern!"


async def test_known_task_keeps_its_copy_despite_template(db, dispatcher, push_channel):
    db.add(TaskTemplate(key="watering", label="Hydrate", default_frequency_days=3))
    await db.commit()
    user = await create_user(db, persona="TERTIARY")
    await create_task(db, await create_plant(db, user, pet_name="Fern"), next_due_on=days_ago(1))

    await _dispatch(db, dispatcher)

    assert push_channel.sent[0].title == "✨ Your Fern needs a drink!"


async def test_unknown_task_key_uses_raw_key(db, dispatcher, push_channel):
    user = await create_user(db)
    await create_task(db, await create_plant(db, user, pet_name="Fern"), task_key="repotting",
                      next_due_on=days_ago(1))

    await _dispatch(db, dispatcher)

    assert push_channel.sent[0].title == "🌱 Task Due: repotting"


async def test_label_lookup_failure_still_notifies_everyone(db, dispatcher, push_channel, monkeypatch):
    async def broken_labels(session):
        raise RuntimeError("task_templates unavailable")

    monkeypatch.setattr("plantcare.services.notifications.load_task_labels", broken_labels)
    task_ids = []
    for name in ("Fern", "Ivy", "Basil"):
        user = await create_user(db)
        task = await create_task(db, await create_plant(db, user, pet_name=name), task_key="repotting",
                                 next_due_on=days_ago(1))
        task_ids.append(task.id)
    tasks_by_user = await get_overdue_tasks_grouped_by_user(db)

    results = await dispatcher.send_notifications_to_users(db, tasks_by_user, 0)

    assert len(results) == 3
    assert all(r.success and not r.skipped for r in results)
    assert sorted(push_channel.sent_task_ids()) == sorted(task_ids)
    assert {p.title for p in push_channel.sent} == {"🌱 Task Due: repotting"}


async def test_empty_input_sends_nothing(db, dispatcher, push_channel):
    assert await dispatcher.send_notifications_to_users(db, {}, 0) == []
    assert push_channel.attempts == 0


async def test_send_delay_between_users(db, push_channel, monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("plantcare.services.notifications.asyncio.sleep", fake_sleep)
    for _ in range(3):
        user = await create_user(db)
        await create_task(db, await create_plant(db, user), next_due_on=days_ago(1))

    await _dispatch(db, NotificationDispatcher(push_channel, send_delay=0.1))

    assert delays == [0.1, 0.1]
    assert len(push_channel.sent) == 3


async def test_test_notification(db, dispatcher, push_channel):
    user = await create_user(db)

    result = await dispatcher.send_test_notification(db, user.id)

    assert result.success
    assert push_channel.sent[0].title == "Test Notification"
    assert push_channel.sent[0].data == {"type": "test"}
    assert await _log_count(db) == 0


async def test_test_notification_without_token(db, dispatcher, push_channel):
    user = await create_user(db, fcm_token=None)

    result = await dispatcher.send_test_notification(db, user.id)

    assert not result.success
    assert push_channel.attempts == 0


def test_select_task_wraps():
    tasks = ["a", "b", "c"]
    assert [select_task(tasks, i) for i in range(5)] == ["a", "b", "c", "a", "b"]


def test_dedup_reference_prefers_latest_event():

    created = days_ago(10)
    completed = days_ago(2)
    assert dedup_reference(SimpleNamespace(last_completed_on=None, plant_created_at=created)) == created
    assert dedup_reference(SimpleNamespace(last_completed_on=completed, plant_created_at=created)) == completed
    assert dedup_reference(SimpleNamespace(last_completed_on=created, plant_created_at=completed)) == completed
