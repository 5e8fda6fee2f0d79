"""Expo push service adapter (aggregate outcomes only)."""

from __future__ import annotations

from typing import Optional, Sequence

import httpx
from loguru import logger

from push_engine.models import PushChannel

from .base import AggregateResult, ChannelMessage, chunked


class ExpoChannelAdapter:
    """
    Posts message arrays to the Expo push API.

    Only the HTTP status of each request is inspected, so a request's tokens
    succeed or fail together.
    """

    channel = PushChannel.EXPO

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        push_url: str = "https://exp.host/--/api/v2/push/send",
        access_token: Optional[str] = None,
        batch_size: int = 100,
    ):
        self._client = client
        self._push_url = push_url
        self._access_token = access_token
        self._batch_size = batch_size

    async def deliver(self, message: ChannelMessage, tokens: Sequence[str]) -> AggregateResult:
        accepted = 0
        rejected = 0
        last_error: Optional[str] = None

        for batch in chunked(list(tokens), self._batch_size):
            error = await self._send_batch(message, batch)
            if error is None:
                accepted += len(batch)
            else:
                rejected += len(batch)
                last_error = error

        logger.info(f"Expo sent. Success: {accepted}, Failed: {rejected}")
        return AggregateResult(
            channel=self.channel,
            accepted_tokens=accepted,
            rejected_tokens=rejected,
            error=last_error,
        )

    async def _send_batch(self, message: ChannelMessage, batch: Sequence[str]) -> Optional[str]:
        """Send one request; return None when accepted, else a short error description."""
        messages = [
            {"to": token, "title": message.title, "body": message.body, "data": dict(message.data)}
            for token in batch
        ]
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"

        try:
            response = await self._client.post(self._push_url, json=messages, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(f"Expo push API error: {exc!r}")
            return str(exc) or type(exc).__name__

        if response.status_code >= 300:
            logger.error(f"Expo push API failed with status {response.status_code}")
            return f"Expo push API responded with {response.status_code}"
        return None
