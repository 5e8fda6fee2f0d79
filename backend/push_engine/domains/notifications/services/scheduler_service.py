"""Promotes due scheduled notifications to sent."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger

from push_engine.domains.notifications.repositories import NotificationRepository
from push_engine.models import NotificationStatus

from .trigger_dispatcher import TriggerDispatcher


class SchedulerService:
    def __init__(self, notifications: NotificationRepository, dispatcher: TriggerDispatcher):
        self._notifications = notifications
        self._dispatcher = dispatcher

    async def process_due(self, now: Optional[datetime] = None) -> List[Tuple[UUID, int]]:
        """
        Flip every due scheduled record and emit an update event for each.

        SENT records whose generation no delivery job has claimed yet (the
        enqueue after their status write failed) are queued again first, so a
        broker outage during an earlier sweep or API call is caught up here.
        Providers are never contacted; delivery happens in the queued jobs.
        Returns every ``(id, generation)`` queued by this run.
        """
        now = now or datetime.now(timezone.utc)

        # Before promotion, so records flipped below are not queued twice.
        unclaimed = await self._notifications.list_unclaimed_sent()
        for notification_id, generation in unclaimed:
            await self._dispatcher.redispatch(notification_id, generation)

        promoted = await self._notifications.promote_due_scheduled(now)
        for notification_id, generation in promoted:
            await self._dispatcher.on_updated(
                notification_id,
                NotificationStatus.SCHEDULED,
                NotificationStatus.SENT,
                generation,
            )

        if not unclaimed and not promoted:
            logger.info("No scheduled notifications to process")
            return []

        logger.info(
            f"Processed {len(promoted)} scheduled notifications, re-queued {len(unclaimed)} unclaimed"
        )
        return unclaimed + promoted
