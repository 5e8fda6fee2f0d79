"""Repository helpers for notification records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from push_engine.models import Notification, NotificationStatus


@dataclass(frozen=True)
class StatusChange:
    """Result of a status write: the previous status and the refreshed record."""

    before: NotificationStatus
    notification: Notification


class NotificationRepository:
    """Data access for notification records."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        if notification.status == NotificationStatus.SENT:
            notification.send_generation = 1
        else:
            notification.send_generation = 0
        self._session.add(notification)
        await self._session.commit()
        await self._session.refresh(notification)
        return notification

    async def get(self, notification_id: UUID) -> Optional[Notification]:
        result = await self._session.execute(
            select(Notification).where(Notification.id == notification_id)
        )
        return result.scalar_one_or_none()

    async def mark_sent(
        self,
        notification_id: UUID,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[StatusChange]:
        """
        Move the record into SENT and bump ``send_generation``.

        The bump is conditional on the stored status not already being SENT,
        so two concurrent "send now" writes produce one generation.
        """
        notification = await self.get(notification_id)
        if notification is None:
            return None

        before = NotificationStatus(notification.status)
        now = now or datetime.now(timezone.utc)

        stmt = (
            update(Notification)
            .where(
                and_(
                    Notification.id == notification_id,
                    Notification.status != NotificationStatus.SENT,
                )
            )
            .values(
                status=NotificationStatus.SENT,
                send_generation=Notification.send_generation + 1,
                last_updated=now,
            )
            .returning(Notification.id)
            .execution_options(synchronize_session="fetch")
        )

        result = await self._session.execute(stmt)
        if not result.all():
            # Someone else moved it into SENT first; report no transition.
            before = NotificationStatus.SENT
        await self._session.commit()
        await self._session.refresh(notification)
        return StatusChange(before=before, notification=notification)

    async def claim_delivery(self, notification_id: UUID, generation: int) -> bool:
        """
        Atomically record that ``generation`` is being delivered.

        Returns False when the record is not SENT at that generation or the
        generation was already claimed.
        """
        result = await self._session.execute(
            update(Notification)
            .where(
                and_(
                    Notification.id == notification_id,
                    Notification.status == NotificationStatus.SENT,
                    Notification.send_generation == generation,
                    or_(
                        Notification.delivery_generation.is_(None),
                        Notification.delivery_generation < generation,
                    ),
                )
            )
            .values(delivery_generation=generation)
            .returning(Notification.id)
            .execution_options(synchronize_session="fetch")
        )
        claimed = result.all()
        await self._session.commit()
        return len(claimed) == 1

    async def write_delivery_outcome(self, notification_id: UUID, **fields: Any) -> None:
        """Apply all delivery bookkeeping fields in one update."""
        await self._session.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(**fields)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.commit()

    async def add_reader(self, notification_id: UUID, user_id: str) -> bool:
        """Add ``user_id`` to ``read_by`` once; returns False when the record is missing."""
        result = await self._session.execute(
            select(Notification).where(Notification.id == notification_id).with_for_update()
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            await self._session.rollback()
            return False

        readers = list(notification.read_by or [])
        if user_id not in readers:
            readers.append(user_id)
        notification.read_by = readers
        notification.last_updated = datetime.now(timezone.utc)
        flag_modified(notification, "read_by")
        await self._session.commit()
        return True

    async def list_unclaimed_sent(self) -> List[Tuple[UUID, int]]:
        """
        ``(id, send_generation)`` of SENT records whose current generation was
        never claimed by a delivery job.
        """
        result = await self._session.execute(
            select(Notification.id, Notification.send_generation)
            .where(
                and_(
                    Notification.status == NotificationStatus.SENT,
                    Notification.send_generation > func.coalesce(Notification.delivery_generation, 0),
                )
            )
            .order_by(Notification.created_at)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def promote_due_scheduled(self, now: datetime) -> List[Tuple[UUID, int]]:
        """
        Flip every due SCHEDULED record to SENT in one statement.

        Returns ``(id, send_generation)`` for each record that changed.
        """
        result = await self._session.execute(
            update(Notification)
            .where(
                and_(
                    Notification.status == NotificationStatus.SCHEDULED,
                    Notification.scheduled_for.is_not(None),
                    Notification.scheduled_for <= now,
                )
            )
            .values(
                status=NotificationStatus.SENT,
                processed_at=now,
                last_updated=now,
                send_generation=Notification.send_generation + 1,
            )
            .returning(Notification.id, Notification.send_generation)
            .execution_options(synchronize_session="fetch")
        )
        rows = [(row[0], row[1]) for row in result.all()]
        await self._session.commit()
        return rows
