"""Repository helpers for device push registrations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from push_engine.models import DeviceRegistration, PushChannel, User


@dataclass(frozen=True)
class RegistrationKey:
    """Identifies one registration to remove."""

    user_id: UUID
    channel: PushChannel
    token: str


class RegistrationRepository:
    """Data access layer for device registrations."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list_for_user(
        self,
        user_id: UUID,
        channel: Optional[PushChannel] = None,
    ) -> List[DeviceRegistration]:
        stmt = select(DeviceRegistration).where(DeviceRegistration.user_id == user_id)
        if channel is not None:
            stmt = stmt.where(DeviceRegistration.channel == channel)
        stmt = stmt.order_by(DeviceRegistration.created_at, DeviceRegistration.device_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(
        self,
        *,
        user_id: UUID,
        channel: PushChannel,
        device_id: str,
        token: str,
    ) -> DeviceRegistration:
        """Create or replace the token for ``(user, channel, device)``."""
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            select(DeviceRegistration).where(
                and_(
                    DeviceRegistration.user_id == user_id,
                    DeviceRegistration.channel == channel,
                    DeviceRegistration.device_id == device_id,
                )
            )
        )
        registration = result.scalar_one_or_none()
        if registration is None:
            registration = DeviceRegistration(
                user_id=user_id,
                channel=channel,
                device_id=device_id,
                token=token,
                last_used_at=now,
            )
            self._session.add(registration)
        else:
            registration.token = token
            registration.last_used_at = now

        await self._session.execute(
            update(User).where(User.id == user_id).values(last_token_update=now)
        )
        await self._session.commit()
        await self._session.refresh(registration)
        return registration

    async def delete_many(self, keys: Iterable[RegistrationKey]) -> int:
        """
        Remove the given registrations in a single transaction.

        Owners get ``last_token_update`` refreshed. Nothing is written when
        ``keys`` is empty.
        """
        keys = list(keys)
        if not keys:
            return 0

        now = datetime.now(timezone.utc)
        removed = 0
        try:
            for key in keys:
                result = await self._session.execute(
                    delete(DeviceRegistration).where(
                        and_(
                            DeviceRegistration.user_id == key.user_id,
                            DeviceRegistration.channel == key.channel,
                            DeviceRegistration.token == key.token,
                        )
                    )
                    .returning(DeviceRegistration.id)
                )
                removed += len(result.all())

            owners = {key.user_id for key in keys}
            await self._session.execute(
                update(User).where(User.id.in_(owners)).values(last_token_update=now)
            )
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return removed
