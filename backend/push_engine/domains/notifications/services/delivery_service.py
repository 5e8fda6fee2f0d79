"""Fan-out delivery of a notification across all push channels."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from push_engine.core.config import settings
from push_engine.domains.notifications.channels import (
    AggregateResult,
    ChannelAdapter,
    ChannelMessage,
    ChannelResult,
    PushClients,
)
from push_engine.domains.notifications.repositories import (
    NotificationRepository,
    RegistrationRepository,
)
from push_engine.models import Notification

from .target_resolver import ResolvedTargets, TargetResolver
from .token_lifecycle import TokenLifecycleManager

NO_RECIPIENTS_ERROR = "No valid push tokens found"


@dataclass
class DeliverySummary:
    """What one delivery attempt wrote back to the notification record."""

    notification_id: str
    generation: int
    claimed: bool = True
    delivered: int = 0
    failed: int = 0
    pruned: int = 0
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "generation": self.generation,
            "claimed": self.claimed,
            "delivered": self.delivered,
            "failed": self.failed,
            "pruned": self.pruned,
            "error": self.error,
        }


def build_channel_message(notification: Notification) -> ChannelMessage:
    return ChannelMessage(
        title=notification.title,
        body=notification.message,
        data={
            "notificationId": str(notification.id),
            "type": notification.type or "general",
            "priority": notification.priority or "normal",
        },
    )


def merge_results(results: Sequence[ChannelResult]) -> Tuple[int, int]:
    """Sum success and failure counts over every channel result."""
    delivered = sum(result.success_count for result in results)
    failed = sum(result.failure_count for result in results)
    return delivered, failed


class DeliveryService:
    """
    Runs one delivery attempt for a notification generation.

    The attempt is claimed on the record before any provider is contacted, so a
    redelivered trigger for the same generation becomes a no-op. Every claimed
    attempt ends with exactly one bookkeeping write.
    """

    def __init__(
        self,
        session: AsyncSession,
        clients: PushClients,
        *,
        channel_timeout: Optional[float] = None,
    ):
        self._session = session
        self._clients = clients
        self._notifications = NotificationRepository(session)
        registrations = RegistrationRepository(session)
        self._resolver = TargetResolver(registrations)
        self._tokens = TokenLifecycleManager(registrations)
        self._channel_timeout = (
            channel_timeout if channel_timeout is not None else settings.PUSH_CHANNEL_TIMEOUT_SECONDS
        )

    async def deliver(self, notification_id: UUID, generation: int) -> DeliverySummary:
        summary = DeliverySummary(notification_id=str(notification_id), generation=generation)

        if not await self._notifications.claim_delivery(notification_id, generation):
            logger.info(
                f"Skipping delivery of notification {notification_id}: "
                f"generation {generation} is not current or already claimed"
            )
            summary.claimed = False
            return summary

        target_users: List[str] = []
        try:
            notification = await self._notifications.get(notification_id)
            if notification is None:
                raise LookupError(f"Notification {notification_id} disappeared after claim")
            target_users = [str(user_id) for user_id in (notification.target_users or [])]

            targets = await self._resolver.resolve(target_users)
            if targets.is_empty:
                logger.warning(f"No valid push tokens found for notification {notification_id}")
                summary.failed = len(target_users)
                summary.error = NO_RECIPIENTS_ERROR
                await self._notifications.write_delivery_outcome(
                    notification_id,
                    sent_to=[],
                    delivered_to=0,
                    failed_deliveries=summary.failed,
                    error=NO_RECIPIENTS_ERROR,
                    last_updated=datetime.now(timezone.utc),
                )
                return summary

            results = await self._send_all(build_channel_message(notification), targets)
            summary.delivered, summary.failed = merge_results(results)

            try:
                summary.pruned = await self._tokens.prune(results, targets)
            except Exception as exc:
                logger.exception(
                    f"Failed to remove invalid tokens for notification {notification_id}: {exc}"
                )
                await self._session.rollback()
                summary.error = f"Token cleanup failed: {exc}"

            now = datetime.now(timezone.utc)
            await self._notifications.write_delivery_outcome(
                notification_id,
                sent_to=list(target_users),
                delivered_to=summary.delivered,
                failed_deliveries=summary.failed,
                error=summary.error,
                sent_at=now,
                last_updated=now,
            )
            logger.info(
                f"Notification {notification_id} sent: {summary.delivered} delivered, "
                f"{summary.failed} failed, {summary.pruned} token(s) removed"
            )
            return summary

        except Exception as exc:
            logger.exception(f"Error delivering notification {notification_id}: {exc}")
            await self._session.rollback()
            summary.delivered = 0
            summary.failed = len(target_users)
            summary.pruned = 0
            summary.error = str(exc) or exc.__class__.__name__
            await self._record_failure(notification_id, summary)
            return summary

    async def _send_all(self, message: ChannelMessage, targets: ResolvedTargets) -> List[ChannelResult]:
        calls = []
        for channel, tokens in targets.tokens_by_channel.items():
            if not tokens:
                continue
            calls.append(self._send_channel(self._clients.adapter(channel), message, tokens))
        return list(await asyncio.gather(*calls))

    async def _send_channel(
        self,
        adapter: ChannelAdapter,
        message: ChannelMessage,
        tokens: Sequence[str],
    ) -> ChannelResult:
        """One channel's failure is confined to its own tokens."""
        try:
            return await asyncio.wait_for(adapter.deliver(message, tokens), timeout=self._channel_timeout)
        except asyncio.TimeoutError:
            logger.error(f"{adapter.channel.value} delivery timed out after {self._channel_timeout}s")
            return AggregateResult.all_failed(
                adapter.channel, len(tokens), f"timed out after {self._channel_timeout}s"
            )
        except Exception as exc:
            logger.exception(f"{adapter.channel.value} delivery failed: {exc}")
            return AggregateResult.all_failed(adapter.channel, len(tokens), str(exc))

    async def _record_failure(self, notification_id: UUID, summary: DeliverySummary) -> None:
        try:
            await self._notifications.write_delivery_outcome(
                notification_id,
                sent_to=[],
                delivered_to=0,
                failed_deliveries=summary.failed,
                error=summary.error,
                last_updated=datetime.now(timezone.utc),
            )
        except Exception as exc:
            # Nothing else can record the outcome; leave it in the worker log.
            logger.exception(f"Could not record failure for notification {notification_id}: {exc}")
            await self._session.rollback()
