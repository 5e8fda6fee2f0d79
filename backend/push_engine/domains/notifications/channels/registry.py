"""Construction and lifecycle of provider clients and channel adapters."""

from __future__ import annotations

from typing import Dict, Optional

import httpx

from push_engine.core.config import Settings, settings as default_settings
from push_engine.models import PushChannel

from .base import ChannelAdapter
from .expo import ExpoChannelAdapter
from .fcm import FcmChannelAdapter


class PushClients:
    """
    Owns the HTTP client shared by the channel adapters.

    Create one per process (API) or per task invocation (workers) and close it
    with ``aclose()`` or ``async with``.
    """

    def __init__(
        self,
        adapters: Dict[PushChannel, ChannelAdapter],
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._adapters = dict(adapters)
        self._http_client = http_client

    @classmethod
    def from_settings(
        cls,
        config: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PushClients":
        config = config or default_settings
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.PUSH_HTTP_TIMEOUT_SECONDS),
            transport=transport,
        )
        adapters: Dict[PushChannel, ChannelAdapter] = {
            PushChannel.FCM: FcmChannelAdapter(
                http_client,
                project_id=config.FCM_PROJECT_ID,
                access_token=config.FCM_ACCESS_TOKEN,
                batch_size=config.FCM_BATCH_SIZE,
                base_url=config.FCM_API_BASE_URL,
            ),
            PushChannel.EXPO: ExpoChannelAdapter(
                http_client,
                push_url=config.EXPO_PUSH_URL,
                access_token=config.EXPO_ACCESS_TOKEN,
                batch_size=config.EXPO_BATCH_SIZE,
            ),
        }
        return cls(adapters, http_client)

    @property
    def adapters(self) -> Dict[PushChannel, ChannelAdapter]:
        return dict(self._adapters)

    def adapter(self, channel: PushChannel) -> ChannelAdapter:
        return self._adapters[channel]

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()

    async def __aenter__(self) -> "PushClients":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
