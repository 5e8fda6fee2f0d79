"""Notification record operations for the admin centre and recipients."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from push_engine.core.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from push_engine.domains.notifications.repositories import NotificationRepository
from push_engine.models import Notification, NotificationStatus, User

from .trigger_dispatcher import TriggerDispatcher


def parse_notification_id(raw: Optional[str]) -> UUID:
    if raw is None or not str(raw).strip():
        raise InvalidArgumentError("Notification ID is required")
    try:
        return UUID(str(raw).strip())
    except ValueError:
        raise NotFoundError("Notification not found")


def require_caller(caller: Optional[User]) -> User:
    if caller is None:
        raise UnauthenticatedError("User must be authenticated")
    return caller


def require_admin(caller: Optional[User]) -> User:
    caller = require_caller(caller)
    if not caller.is_admin:
        raise PermissionDeniedError("Only admins can perform this action")
    return caller


class NotificationService:
    """Creates, sends and reads notification records; never talks to providers."""

    def __init__(self, session: AsyncSession, dispatcher: TriggerDispatcher):
        self._session = session
        self._notifications = NotificationRepository(session)
        self._dispatcher = dispatcher

    async def create_notification(
        self,
        caller: Optional[User],
        *,
        title: str,
        message: str,
        target_users: Sequence[str],
        type: str = "general",
        priority: str = "normal",
        scheduled_for: Optional[datetime] = None,
        draft: bool = False,
    ) -> Notification:
        """
        Store a new notification.

        Drafts stay put, a ``scheduled_for`` makes it scheduled, anything else
        is sent straight away.
        """
        caller = require_admin(caller)
        if not title or not title.strip():
            raise InvalidArgumentError("Title is required")

        if draft:
            status = NotificationStatus.DRAFT
        elif scheduled_for is not None:
            status = NotificationStatus.SCHEDULED
        else:
            status = NotificationStatus.SENT

        notification = await self._notifications.create(
            Notification(
                title=title.strip(),
                message=message or "",
                type=type or "general",
                priority=priority or "normal",
                target_users=[str(user_id) for user_id in target_users],
                status=status,
                scheduled_for=scheduled_for,
                created_by=caller.id,
                read_by=[],
            )
        )
        logger.info(f"Notification {notification.id} created as {status.value} by {caller.id}")
        await self._dispatcher.on_created(notification.id, status, notification.send_generation)
        return notification

    async def send_now(self, caller: Optional[User], notification_id: str) -> Notification:
        require_admin(caller)
        change = await self._notifications.mark_sent(parse_notification_id(notification_id))
        if change is None:
            raise NotFoundError("Notification not found")
        notification = change.notification
        await self._dispatcher.on_updated(
            notification.id,
            change.before,
            NotificationStatus(notification.status),
            notification.send_generation,
        )
        return notification

    async def resend(self, caller: Optional[User], notification_id: str) -> Notification:
        """Send a fresh copy of an existing notification to the same recipients."""
        caller = require_admin(caller)
        original = await self._notifications.get(parse_notification_id(notification_id))
        if original is None:
            raise NotFoundError("Notification not found")
        return await self.create_notification(
            caller,
            title=original.title,
            message=original.message,
            target_users=list(original.target_users or []),
            type=original.type,
            priority=original.priority,
        )

    async def get_notification(self, caller: Optional[User], notification_id: str) -> Notification:
        caller = require_caller(caller)
        notification = await self._notifications.get(parse_notification_id(notification_id))
        if notification is None:
            raise NotFoundError("Notification not found")
        if not caller.is_admin and str(caller.id) not in (notification.target_users or []):
            raise PermissionDeniedError("Not a recipient of this notification")
        return notification

    async def mark_as_read(self, caller: Optional[User], notification_id: Optional[str]) -> bool:
        """Add the caller to ``read_by``; repeating the call changes nothing."""
        caller = require_caller(caller)
        parsed_id = parse_notification_id(notification_id)
        if not await self._notifications.add_reader(parsed_id, str(caller.id)):
            raise NotFoundError("Notification not found")
        return True

