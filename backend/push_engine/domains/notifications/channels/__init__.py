from .base import (
    AggregateResult,
    ChannelAdapter,
    ChannelMessage,
    ChannelResult,
    PerTokenResult,
    TokenFailureReason,
    TokenOutcome,
)
from .expo import ExpoChannelAdapter
from .fcm import FcmChannelAdapter
from .registry import PushClients

__all__ = [
    "AggregateResult",
    "ChannelAdapter",
    "ChannelMessage",
    "ChannelResult",
    "PerTokenResult",
    "TokenFailureReason",
    "TokenOutcome",
    "ExpoChannelAdapter",
    "FcmChannelAdapter",
    "PushClients",
]
