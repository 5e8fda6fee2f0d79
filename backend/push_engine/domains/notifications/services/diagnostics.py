"""Admin-triggered test push to a single user's FCM devices."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from push_engine.core.config import settings
from push_engine.core.exceptions import InternalError, InvalidArgumentError, NotFoundError
from push_engine.domains.notifications.channels import ChannelMessage, PushClients
from push_engine.domains.notifications.repositories import RegistrationRepository, UserRepository
from push_engine.models import PushChannel, User

from .notification_service import require_admin


class TestPushService:
    """Sends one message without creating a notification record."""

    __test__ = False

    def __init__(self, session: AsyncSession, clients: PushClients):
        self._users = UserRepository(session)
        self._registrations = RegistrationRepository(session)
        self._clients = clients

    async def send(
        self,
        caller: Optional[User],
        *,
        target_user_id: Optional[str],
        title: Optional[str] = None,
        message: Optional[str] = None,
    ) -> Dict[str, Any]:
        caller = require_admin(caller)
        if target_user_id is None or not str(target_user_id).strip():
            raise InvalidArgumentError("Target user ID is required")

        try:
            target_id = UUID(str(target_user_id).strip())
        except ValueError:
            raise NotFoundError("No valid FCM token found for user")

        if await self._users.get(target_id) is None:
            raise NotFoundError("No valid FCM token found for user")
        tokens = [
            registration.token
            for registration in await self._registrations.list_for_user(target_id, PushChannel.FCM)
            if registration.token
        ]
        if not tokens:
            raise NotFoundError("No valid FCM token found for user")

        push = ChannelMessage(
            title=title or settings.TEST_NOTIFICATION_TITLE,
            body=message or settings.TEST_NOTIFICATION_BODY,
            data={"type": "test", "priority": "normal"},
        )
        try:
            result = await self._clients.adapter(PushChannel.FCM).deliver(push, tokens)
        except Exception as exc:
            logger.exception(f"Error sending test notification to {target_id}: {exc}")
            raise InternalError("Failed to send test notification")

        logger.info(
            f"Test notification from {caller.id} to {target_id}: "
            f"{result.success_count} delivered, {result.failure_count} failed"
        )
        return {
            "success": True,
            "delivered": result.success_count,
            "failed": result.failure_count,
        }
