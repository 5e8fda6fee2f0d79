"""Notifications domain facade coordinating push delivery services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from push_engine.domains.notifications.channels import PushClients
from push_engine.domains.notifications.repositories import NotificationRepository, RegistrationRepository
from push_engine.domains.notifications.services import (
    DeliveryEnqueuer,
    DeliveryService,
    NotificationService,
    SchedulerService,
    TestPushService,
    TriggerDispatcher,
)
from push_engine.models import DeviceRegistration, PushChannel, User


def enqueue_delivery_task(notification_id: UUID, generation: int) -> None:
    """Default enqueuer: hand the delivery to a Celery worker."""
    from push_engine.tasks.notifications import deliver_notification

    deliver_notification.delay(str(notification_id), generation)


@dataclass
class NotificationsFacade:
    """Entry point for notification operations used by API and Celery."""

    session: AsyncSession
    clients: Optional[PushClients] = None
    enqueue: Optional[DeliveryEnqueuer] = None

    # ------------------------------------------------------------------
    # Service accessors
    # ------------------------------------------------------------------
    @property
    def dispatcher(self) -> TriggerDispatcher:
        return TriggerDispatcher(self.enqueue or enqueue_delivery_task)

    @property
    def notification_service(self) -> NotificationService:
        return NotificationService(self.session, self.dispatcher)

    @property
    def scheduler(self) -> SchedulerService:
        return SchedulerService(NotificationRepository(self.session), self.dispatcher)

    @property
    def delivery_service(self) -> DeliveryService:
        return DeliveryService(self.session, self._require_clients())

    @property
    def test_push_service(self) -> TestPushService:
        return TestPushService(self.session, self._require_clients())

    def _require_clients(self) -> PushClients:
        if self.clients is None:
            raise RuntimeError("Push clients are not configured for this facade")
        return self.clients

    # ------------------------------------------------------------------
    # Convenience helpers for API and task consumers
    # ------------------------------------------------------------------
    async def mark_notification_as_read(self, caller: Optional[User], notification_id: Optional[str]) -> bool:
        return await self.notification_service.mark_as_read(caller, notification_id)

    async def send_test_notification(
        self,
        caller: Optional[User],
        *,
        target_user_id: Optional[str],
        title: Optional[str] = None,
        message: Optional[str] = None,
    ) -> dict:
        return await self.test_push_service.send(
            caller,
            target_user_id=target_user_id,
            title=title,
            message=message,
        )

    async def deliver(self, notification_id: UUID, generation: int):
        return await self.delivery_service.deliver(notification_id, generation)

    async def process_scheduled_notifications(self):
        return await self.scheduler.process_due()

    async def register_device(
        self,
        user: User,
        *,
        channel: PushChannel,
        device_id: str,
        token: str,
    ) -> DeviceRegistration:
        return await RegistrationRepository(self.session).upsert(
            user_id=user.id,
            channel=channel,
            device_id=device_id,
            token=token,
        )
