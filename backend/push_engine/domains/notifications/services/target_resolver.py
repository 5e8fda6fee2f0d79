"""Expands recipient user ids into per-channel push tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from loguru import logger

from push_engine.domains.notifications.repositories import RegistrationRepository
from push_engine.models import DeviceRegistration, PushChannel


@dataclass(frozen=True)
class PushTarget:
    user_id: str
    channel: PushChannel
    token: str
    device_id: str


@dataclass
class ResolvedTargets:
    """Tokens grouped by channel plus the reverse token -> owner lookup."""

    tokens_by_channel: Dict[PushChannel, List[str]] = field(default_factory=dict)
    owners_by_token: Dict[Tuple[PushChannel, str], List[str]] = field(default_factory=dict)
    targets: List[PushTarget] = field(default_factory=list)
    unresolved_users: List[str] = field(default_factory=list)

    def add(self, target: PushTarget) -> None:
        self.targets.append(target)
        self.tokens_by_channel.setdefault(target.channel, []).append(target.token)
        owners = self.owners_by_token.setdefault((target.channel, target.token), [])
        if target.user_id not in owners:
            owners.append(target.user_id)

    def owners_of(self, channel: PushChannel, token: str) -> List[str]:
        return list(self.owners_by_token.get((channel, token), []))

    @property
    def total_tokens(self) -> int:
        return sum(len(tokens) for tokens in self.tokens_by_channel.values())

    @property
    def is_empty(self) -> bool:
        return self.total_tokens == 0


class TargetResolver:
    """Looks up each recipient's registrations; one bad user never blocks the rest."""

    def __init__(self, registrations: RegistrationRepository):
        self._registrations = registrations

    async def resolve(
        self,
        user_ids: Sequence[str],
        channels: Optional[Iterable[PushChannel]] = None,
    ) -> ResolvedTargets:
        wanted = set(channels) if channels is not None else set(PushChannel)
        resolved = ResolvedTargets()
        cache: Dict[str, List[DeviceRegistration]] = {}

        for raw_user_id in user_ids:
            user_id = str(raw_user_id)
            if user_id not in cache:
                try:
                    cache[user_id] = await self._registrations.list_for_user(UUID(user_id))
                except Exception as exc:
                    logger.warning(f"Error reading push registrations for user {user_id}: {exc}")
                    resolved.unresolved_users.append(user_id)
                    cache[user_id] = []

            for registration in cache[user_id]:
                channel = PushChannel(registration.channel)
                if channel not in wanted or not registration.token:
                    continue
                resolved.add(
                    PushTarget(
                        user_id=user_id,
                        channel=channel,
                        token=registration.token,
                        device_id=registration.device_id,
                    )
                )

        logger.debug(
            f"Resolved {resolved.total_tokens} token(s) for {len(user_ids)} recipient(s): "
            + ", ".join(f"{channel.value}={len(tokens)}" for channel, tokens in resolved.tokens_by_channel.items())
        )
        return resolved
