from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from push_engine.domains.notifications.services import TriggerDispatcher
from push_engine.models import NotificationStatus, PushChannel
from tests.utils.push_builders import create_notification, create_user, register_device


@pytest.mark.parametrize(
    "status, expected",
    [
        (NotificationStatus.SENT, True),
        (NotificationStatus.DRAFT, False),
        (NotificationStatus.SCHEDULED, False),
    ],
)
def test_create_qualifies_only_when_sent(status, expected):
    assert TriggerDispatcher.qualifies_on_create(status) is expected


@pytest.mark.parametrize(
    "before, after, expected",
    [
        (NotificationStatus.DRAFT, NotificationStatus.SENT, True),
        (NotificationStatus.SCHEDULED, NotificationStatus.SENT, True),
        (NotificationStatus.SENT, NotificationStatus.SENT, False),
        (NotificationStatus.DRAFT, NotificationStatus.SCHEDULED, False),
        (NotificationStatus.SENT, NotificationStatus.DRAFT, False),
    ],
)
def test_update_qualifies_only_on_entering_sent(before, after, expected):
    assert TriggerDispatcher.qualifies_on_update(before, after) is expected


@pytest.mark.asyncio
async def test_dispatcher_awaits_async_enqueuer():
    queued = []

    async def enqueue(notification_id, generation):
        queued.append((notification_id, generation))

    dispatcher = TriggerDispatcher(enqueue)

    assert await dispatcher.on_created("n-1", NotificationStatus.SENT, 1) is True
    assert await dispatcher.on_created("n-2", NotificationStatus.DRAFT, 0) is False
    assert await dispatcher.on_updated("n-3", NotificationStatus.SENT, NotificationStatus.SENT, 1) is False
    assert queued == [("n-1", 1)]


@pytest.mark.asyncio
async def test_sweep_promotes_only_due_scheduled(async_session, notifications_facade, enqueuer):
    now = datetime.now(timezone.utc)
    user = await create_user(async_session)
    due = await create_notification(
        async_session,
        target_users=[user.id],
        status=NotificationStatus.SCHEDULED,
        scheduled_for=now - timedelta(minutes=1),
    )
    future = await create_notification(
        async_session,
        target_users=[user.id],
        status=NotificationStatus.SCHEDULED,
        scheduled_for=now + timedelta(hours=1),
    )
    draft = await create_notification(async_session, target_users=[user.id], status=NotificationStatus.DRAFT)
    due_id, future_id, draft_id = due.id, future.id, draft.id

    promoted = await notifications_facade.scheduler.process_due(now)

    for record in (due, future, draft):
        await async_session.refresh(record)
    assert promoted == [(due_id, 1)]
    assert enqueuer.calls == [(due_id, 1)]
    assert due.status == NotificationStatus.SENT
    assert due.processed_at is not None
    assert due.send_generation == 1
    assert future.status == NotificationStatus.SCHEDULED
    assert draft.status == NotificationStatus.DRAFT
    assert future_id not in [call[0] for call in enqueuer.calls]
    assert draft_id not in [call[0] for call in enqueuer.calls]


@pytest.mark.asyncio
async def test_sweep_alone_leads_to_delivery_bookkeeping(async_session, notifications_facade, enqueuer, fcm_adapter):
    user = await create_user(async_session)
    await register_device(async_session, user, PushChannel.FCM, "A1")
    notification = await create_notification(
        async_session,
        target_users=[user.id],
        status=NotificationStatus.SCHEDULED,
        scheduled_for=datetime.now(timezone.utc) - timedelta(seconds=5),
    )

    await notifications_facade.scheduler.process_due()
    for notification_id, generation in enqueuer.calls:
        await notifications_facade.deliver(notification_id, generation)

    await async_session.refresh(notification)
    assert len(fcm_adapter.calls) == 1
    assert notification.delivered_to == 1
    assert notification.failed_deliveries == 0


@pytest.mark.asyncio
async def test_sweep_with_nothing_due(async_session, notifications_facade, enqueuer):
    assert await notifications_facade.scheduler.process_due() == []
    assert enqueuer.calls == []


@pytest.mark.asyncio
async def test_sweep_requeues_generation_whose_enqueue_failed(
    async_session, notifications_facade, enqueuer, fcm_adapter
):
    user = await create_user(async_session)
    await register_device(async_session, user, PushChannel.FCM, "A1")
    notification = await create_notification(
        async_session,
        target_users=[user.id],
        status=NotificationStatus.SCHEDULED,
        scheduled_for=datetime.now(timezone.utc) - timedelta(minutes=1),
    )
    notification_id = notification.id
    enqueuer.failures.append(ConnectionError("broker unreachable"))

    with pytest.raises(ConnectionError):
        await notifications_facade.scheduler.process_due()

    await async_session.refresh(notification)
    assert notification.status == NotificationStatus.SENT
    assert notification.delivery_generation is None
    assert enqueuer.calls == []

    assert await notifications_facade.scheduler.process_due() == [(notification_id, 1)]
    assert enqueuer.calls == [(notification_id, 1)]

    await notifications_facade.deliver(notification_id, 1)
    await async_session.refresh(notification)
    assert notification.delivered_to == 1
    assert await notifications_facade.scheduler.process_due() == []
    assert len(fcm_adapter.calls) == 1


@pytest.mark.asyncio
async def test_sweep_catches_up_send_now_whose_enqueue_failed(async_session, notifications_facade, enqueuer):
    admin = await create_user(async_session, is_admin=True)
    draft = await create_notification(async_session, target_users=[], status=NotificationStatus.DRAFT)
    draft_id = draft.id
    enqueuer.failures.append(ConnectionError("broker unreachable"))

    with pytest.raises(ConnectionError):
        await notifications_facade.notification_service.send_now(admin, str(draft_id))

    assert await notifications_facade.scheduler.process_due() == [(draft_id, 1)]
    assert enqueuer.calls == [(draft_id, 1)]


@pytest.mark.asyncio
async def test_sweep_ignores_claimed_sent_records(async_session, notifications_facade, enqueuer):
    notification = await create_notification(async_session, target_users=[])
    await notifications_facade.deliver(notification.id, 1)

    assert await notifications_facade.scheduler.process_due() == []
    assert enqueuer.calls == []
