"""Turns notification status changes into delivery jobs."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional
from uuid import UUID

from loguru import logger

from push_engine.models import NotificationStatus

DeliveryEnqueuer = Callable[[UUID, int], Any]


class TriggerDispatcher:
    """
    Decides whether a create or update event starts a delivery.

    Only entering ``sent`` qualifies: a record created as sent, or an update
    whose previous status was anything else. The enqueue callable receives
    ``(notification_id, send_generation)`` and may be sync or async.
    """

    def __init__(self, enqueue: DeliveryEnqueuer):
        self._enqueue = enqueue

    @staticmethod
    def qualifies_on_create(status: NotificationStatus) -> bool:
        return NotificationStatus(status) == NotificationStatus.SENT

    @staticmethod
    def qualifies_on_update(before: Optional[NotificationStatus], after: NotificationStatus) -> bool:
        before_status = NotificationStatus(before) if before is not None else None
        return before_status != NotificationStatus.SENT and NotificationStatus(after) == NotificationStatus.SENT

    async def on_created(self, notification_id: UUID, status: NotificationStatus, generation: int) -> bool:
        if not self.qualifies_on_create(status):
            return False
        await self._dispatch(notification_id, generation)
        return True

    async def on_updated(
        self,
        notification_id: UUID,
        before: Optional[NotificationStatus],
        after: NotificationStatus,
        generation: int,
    ) -> bool:
        if not self.qualifies_on_update(before, after):
            return False
        await self._dispatch(notification_id, generation)
        return True

    async def redispatch(self, notification_id: UUID, generation: int) -> None:
        """Queue a generation again; a duplicate job loses the delivery claim."""
        logger.info(f"Notification {notification_id} generation {generation} is still unclaimed; queueing again")
        await self._dispatch(notification_id, generation)

    async def _dispatch(self, notification_id: UUID, generation: int) -> None:
        logger.info(f"Queueing delivery for notification {notification_id} (generation {generation})")
        result = self._enqueue(notification_id, generation)
        if inspect.isawaitable(result):
            await result
