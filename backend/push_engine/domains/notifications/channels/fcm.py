"""Firebase Cloud Messaging adapter (per-token outcomes)."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

import httpx
from loguru import logger

from push_engine.models import PushChannel

from .base import ChannelMessage, PerTokenResult, TokenFailureReason, TokenOutcome, chunked


_NOT_REGISTERED_CODES = {"UNREGISTERED", "NOT_FOUND"}


def classify_fcm_error(status_code: int, body: Optional[dict]) -> TokenFailureReason:
    """
    Map an FCM HTTP v1 error response onto a token failure reason.

    Only UNREGISTERED / NOT_FOUND and token-related INVALID_ARGUMENT errors are
    permanent; quota, auth and server errors may succeed later.
    """
    error = (body or {}).get("error") or {}
    status_name = str(error.get("status") or "")
    detail_codes = {
        str(detail.get("errorCode"))
        for detail in error.get("details") or []
        if isinstance(detail, dict) and detail.get("errorCode")
    }

    if detail_codes & _NOT_REGISTERED_CODES or status_name == "NOT_FOUND":
        return TokenFailureReason.NOT_REGISTERED
    if "INVALID_ARGUMENT" in detail_codes or status_name == "INVALID_ARGUMENT":
        message = str(error.get("message") or "").lower()
        if "token" in message:
            return TokenFailureReason.INVALID_TOKEN
        return TokenFailureReason.MESSAGE_REJECTED
    if status_code in (400, 403):
        return TokenFailureReason.MESSAGE_REJECTED
    return TokenFailureReason.TRANSIENT


class FcmChannelAdapter:
    """Sends to FCM in batches, one concurrent HTTP v1 request per token."""

    channel = PushChannel.FCM

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        project_id: Optional[str],
        access_token: Optional[str],
        batch_size: int = 500,
        base_url: str = "https://fcm.googleapis.com/v1",
    ):
        self._client = client
        self._project_id = project_id
        self._access_token = access_token
        self._batch_size = batch_size
        self._base_url = base_url.rstrip("/")

    @property
    def send_url(self) -> str:
        return f"{self._base_url}/projects/{self._project_id}/messages:send"

    async def deliver(self, message: ChannelMessage, tokens: Sequence[str]) -> PerTokenResult:
        if not self._project_id or not self._access_token:
            logger.error(f"FCM credentials are not configured; failing {len(tokens)} token(s)")
            return PerTokenResult(
                channel=self.channel,
                outcomes=[
                    TokenOutcome(token, False, TokenFailureReason.TRANSIENT, "FCM not configured")
                    for token in tokens
                ],
            )

        outcomes: List[TokenOutcome] = []
        for batch in chunked(list(tokens), self._batch_size):
            outcomes.extend(await asyncio.gather(*(self._send_one(message, token) for token in batch)))

        result = PerTokenResult(channel=self.channel, outcomes=outcomes)
        logger.info(f"FCM sent. Success: {result.success_count}, Failed: {result.failure_count}")
        return result

    async def _send_one(self, message: ChannelMessage, token: str) -> TokenOutcome:
        payload = {
            "message": {
                "token": token,
                "notification": {"title": message.title, "body": message.body},
                "data": {key: str(value) for key, value in message.data.items()},
            }
        }
        headers = {"Authorization": f"Bearer {self._access_token}"}

        try:
            response = await self._client.post(self.send_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning(f"FCM request failed for a token: {exc}")
            return TokenOutcome(token, False, TokenFailureReason.TRANSIENT, str(exc) or type(exc).__name__)

        if response.status_code < 300:
            return TokenOutcome(token, True)

        try:
            body = response.json()
        except ValueError:
            body = None
        reason = classify_fcm_error(response.status_code, body)
        detail = ((body or {}).get("error") or {}).get("message") or response.text[:200]
        return TokenOutcome(token, False, reason, detail)
