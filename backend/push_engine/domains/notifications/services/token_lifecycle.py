"""Removes registrations that a channel reported as permanently invalid."""

from __future__ import annotations

from typing import Iterable, List
from uuid import UUID

from loguru import logger

from push_engine.domains.notifications.channels import ChannelResult, PerTokenResult
from push_engine.domains.notifications.repositories import RegistrationKey, RegistrationRepository

from .target_resolver import ResolvedTargets


class TokenLifecycleManager:
    def __init__(self, registrations: RegistrationRepository):
        self._registrations = registrations

    def collect_dead_registrations(
        self,
        results: Iterable[ChannelResult],
        targets: ResolvedTargets,
    ) -> List[RegistrationKey]:
        """Registrations to drop; aggregate-only results never contribute."""
        keys: List[RegistrationKey] = []
        seen = set()
        for result in results:
            if not isinstance(result, PerTokenResult):
                continue
            for outcome in result.permanent_failures():
                owners = targets.owners_of(result.channel, outcome.token)
                if not owners:
                    logger.warning(f"No owner known for invalid {result.channel.value} token; skipping removal")
                    continue
                for owner in owners:
                    key = RegistrationKey(user_id=UUID(owner), channel=result.channel, token=outcome.token)
                    if key in seen:
                        continue
                    seen.add(key)
                    keys.append(key)
                    logger.info(
                        f"Removing invalid {result.channel.value} token for user {owner} "
                        f"({outcome.error_reason.value})"
                    )
        return keys

    async def prune(self, results: Iterable[ChannelResult], targets: ResolvedTargets) -> int:
        """Delete dead registrations in one batched write; returns rows removed."""
        keys = self.collect_dead_registrations(results, targets)
        if not keys:
            return 0
        return await self._registrations.delete_many(keys)
