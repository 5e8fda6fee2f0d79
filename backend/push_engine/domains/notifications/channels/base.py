"""Shared types for push channel adapters."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Union

from push_engine.models import PushChannel


class TokenFailureReason(str, enum.Enum):
    """Why a single token could not be delivered to."""

    NOT_REGISTERED = "not-registered"
    INVALID_TOKEN = "invalid-token"
    MESSAGE_REJECTED = "message-rejected"
    TRANSIENT = "transient"

    @property
    def is_permanent(self) -> bool:
        """Permanent reasons mean the registration will never work again."""
        return self in {TokenFailureReason.NOT_REGISTERED, TokenFailureReason.INVALID_TOKEN}


@dataclass(frozen=True)
class ChannelMessage:
    """Channel-neutral message content."""

    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenOutcome:
    token: str
    success: bool
    error_reason: Optional[TokenFailureReason] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class PerTokenResult:
    """Result from a channel that reports an outcome for every token."""

    channel: PushChannel
    outcomes: List[TokenOutcome]

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    def permanent_failures(self) -> List[TokenOutcome]:
        return [
            outcome
            for outcome in self.outcomes
            if not outcome.success and outcome.error_reason is not None and outcome.error_reason.is_permanent
        ]


@dataclass(frozen=True)
class AggregateResult:
    """
    Result from a channel that only reports acceptance per request.

    Every token of a rejected request counts as failed, even if the provider
    delivered some of them.
    """

    channel: PushChannel
    accepted_tokens: int
    rejected_tokens: int
    error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return self.accepted_tokens

    @property
    def failure_count(self) -> int:
        return self.rejected_tokens

    @classmethod
    def all_failed(cls, channel: PushChannel, token_count: int, error: str) -> "AggregateResult":
        return cls(channel=channel, accepted_tokens=0, rejected_tokens=token_count, error=error)


ChannelResult = Union[PerTokenResult, AggregateResult]


class ChannelAdapter(Protocol):
    """Sends one message to many tokens on a single channel."""

    channel: PushChannel

    async def deliver(self, message: ChannelMessage, tokens: Sequence[str]) -> ChannelResult:
        ...


def chunked(items: Sequence[str], size: int) -> List[Sequence[str]]:
    """Split ``items`` into consecutive slices of at most ``size`` elements."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [items[start:start + size] for start in range(0, len(items), size)]
