from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from push_engine.domains.notifications.channels import TokenFailureReason
from push_engine.models import Notification, NotificationStatus, PushChannel
from tests.utils.push_builders import (
    auth_headers,
    create_notification,
    create_user,
    per_token,
    register_device,
)


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(async_client, async_session):
    reader = await create_user(async_session)
    notification = await create_notification(async_session, target_users=[reader.id])
    headers = auth_headers(reader)

    for _ in range(2):
        response = await async_client.post(
            "/api/v1/notifications/mark-read",
            json={"notificationId": str(notification.id)},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

    await async_session.refresh(notification)
    assert notification.read_by == [str(reader.id)]
    assert notification.last_updated is not None


@pytest.mark.asyncio
async def test_mark_read_requires_authentication(async_client, async_session):
    notification = await create_notification(async_session, target_users=[])

    response = await async_client.post(
        "/api/v1/notifications/mark-read",
        json={"notificationId": str(notification.id)},
    )

    assert response.status_code == 401
    assert response.json()["error"]["status"] == "unauthenticated"


@pytest.mark.asyncio
async def test_mark_read_rejects_invalid_token(async_client):
    response = await async_client.post(
        "/api/v1/notifications/mark-read",
        json={"notificationId": str(uuid4())},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_mark_read_requires_notification_id(async_client, async_session):
    reader = await create_user(async_session)

    for body in ({}, {"notificationId": "  "}):
        response = await async_client.post(
            "/api/v1/notifications/mark-read",
            json=body,
            headers=auth_headers(reader),
        )
        assert response.status_code == 400
        assert response.json()["error"]["status"] == "invalid-argument"


@pytest.mark.asyncio
async def test_mark_read_unknown_notification(async_client, async_session):
    reader = await create_user(async_session)

    response = await async_client.post(
        "/api/v1/notifications/mark-read",
        json={"notificationId": str(uuid4())},
        headers=auth_headers(reader),
    )

    assert response.status_code == 404
    assert response.json()["error"]["status"] == "not-found"


@pytest.mark.asyncio
async def test_send_test_rejects_non_admin(async_client, async_session, fcm_adapter):
    caller = await create_user(async_session)
    target = await create_user(async_session)
    await register_device(async_session, target, PushChannel.FCM, "A1")

    response = await async_client.post(
        "/api/v1/notifications/send-test",
        json={"targetUserId": str(target.id)},
        headers=auth_headers(caller),
    )

    assert response.status_code == 403
    assert response.json()["error"]["status"] == "permission-denied"
    assert fcm_adapter.calls == []
    count = await async_session.scalar(select(func.count()).select_from(Notification))
    assert count == 0


@pytest.mark.asyncio
async def test_send_test_uses_fcm_registrations_only(async_client, async_session, fcm_adapter, expo_adapter):
    admin = await create_user(async_session, is_admin=True)
    target = await create_user(async_session)
    await register_device(async_session, target, PushChannel.FCM, "A1")
    await register_device(async_session, target, PushChannel.FCM, "A2", device_id="tablet")
    await register_device(async_session, target, PushChannel.EXPO, "B1")
    fcm_adapter.respond = lambda tokens: per_token(PushChannel.FCM, tokens, {"A2": TokenFailureReason.TRANSIENT})

    response = await async_client.post(
        "/api/v1/notifications/send-test",
        json={"targetUserId": str(target.id)},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "delivered": 1, "failed": 1}
    message, tokens = fcm_adapter.calls[0]
    assert sorted(tokens) == ["A1", "A2"]
    assert message.title == "Test Notification"
    assert message.body == "This is a test notification from E-SERBISYO admin"
    assert message.data == {"type": "test", "priority": "normal"}
    assert expo_adapter.calls == []
    count = await async_session.scalar(select(func.count()).select_from(Notification))
    assert count == 0


@pytest.mark.asyncio
async def test_send_test_target_without_fcm_token(async_client, async_session):
    admin = await create_user(async_session, is_admin=True)
    target = await create_user(async_session)
    await register_device(async_session, target, PushChannel.EXPO, "B1")

    response = await async_client.post(
        "/api/v1/notifications/send-test",
        json={"targetUserId": str(target.id), "title": "Hi"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 404
    assert response.json()["error"]["status"] == "not-found"


@pytest.mark.asyncio
async def test_send_test_requires_target(async_client, async_session):
    admin = await create_user(async_session, is_admin=True)

    response = await async_client.post(
        "/api/v1/notifications/send-test",
        json={"title": "Hi"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_sent_notification_queues_delivery(async_client, async_session, enqueuer):
    admin = await create_user(async_session, is_admin=True)
    resident = await create_user(async_session)

    response = await async_client.post(
        "/api/v1/notifications",
        json={"title": "Road closure", "message": "Purok 3", "targetUsers": [str(resident.id)]},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "sent"
    assert body["target_users"] == [str(resident.id)]
    assert [(str(call[0]), call[1]) for call in enqueuer.calls] == [(body["id"], 1)]


@pytest.mark.asyncio
async def test_create_scheduled_or_draft_does_not_queue(async_client, async_session, enqueuer):
    admin = await create_user(async_session, is_admin=True)

    scheduled = await async_client.post(
        "/api/v1/notifications",
        json={"title": "Clean-up drive", "scheduledFor": "2030-01-01T08:00:00Z"},
        headers=auth_headers(admin),
    )
    draft = await async_client.post(
        "/api/v1/notifications",
        json={"title": "Draft", "draft": True},
        headers=auth_headers(admin),
    )

    assert scheduled.json()["status"] == "scheduled"
    assert draft.json()["status"] == "draft"
    assert enqueuer.calls == []


@pytest.mark.asyncio
async def test_send_now_queues_once(async_client, async_session, enqueuer):
    admin = await create_user(async_session, is_admin=True)
    notification = await create_notification(async_session, target_users=[], status=NotificationStatus.DRAFT)

    first = await async_client.post(
        f"/api/v1/notifications/{notification.id}/send-now", headers=auth_headers(admin)
    )
    second = await async_client.post(
        f"/api/v1/notifications/{notification.id}/send-now", headers=auth_headers(admin)
    )

    assert first.status_code == 200
    assert first.json()["status"] == "sent"
    assert second.status_code == 200
    assert enqueuer.calls == [(notification.id, 1)]


@pytest.mark.asyncio
async def test_resend_creates_copy(async_client, async_session, enqueuer):
    admin = await create_user(async_session, is_admin=True)
    original = await create_notification(async_session, target_users=[str(uuid4())])

    response = await async_client.post(
        f"/api/v1/notifications/{original.id}/resend", headers=auth_headers(admin)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] != str(original.id)
    assert body["title"] == original.title
    assert body["status"] == "sent"
    assert len(enqueuer.calls) == 1


@pytest.mark.asyncio
async def test_get_notification_for_recipient_and_stranger(async_client, async_session):
    resident = await create_user(async_session)
    stranger = await create_user(async_session)
    notification = await create_notification(async_session, target_users=[resident.id])

    allowed = await async_client.get(f"/api/v1/notifications/{notification.id}", headers=auth_headers(resident))
    denied = await async_client.get(f"/api/v1/notifications/{notification.id}", headers=auth_headers(stranger))

    assert allowed.status_code == 200
    assert allowed.json()["title"] == notification.title
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_register_device_upserts_per_device(async_client, async_session):
    resident = await create_user(async_session)
    headers = auth_headers(resident)

    first = await async_client.put("/api/v1/devices/fcm/phone-1", json={"token": "old"}, headers=headers)
    second = await async_client.put("/api/v1/devices/fcm/phone-1", json={"token": "new"}, headers=headers)
    other = await async_client.put("/api/v1/devices/expo/phone-1", json={"token": "expo"}, headers=headers)
    bad = await async_client.put("/api/v1/devices/sms/phone-1", json={"token": "x"}, headers=headers)
    anonymous = await async_client.put("/api/v1/devices/fcm/phone-1", json={"token": "x"})

    assert first.status_code == 200
    assert second.json()["token"] == "new"
    assert other.json()["channel"] == "expo"
    assert bad.status_code == 400
    assert anonymous.status_code == 401
