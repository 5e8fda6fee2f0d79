from .delivery_service import (
    NO_RECIPIENTS_ERROR,
    DeliveryService,
    DeliverySummary,
    build_channel_message,
    merge_results,
)
from .notification_service import NotificationService
from .scheduler_service import SchedulerService
from .target_resolver import PushTarget, ResolvedTargets, TargetResolver
from .diagnostics import TestPushService
from .token_lifecycle import TokenLifecycleManager
from .trigger_dispatcher import DeliveryEnqueuer, TriggerDispatcher

__all__ = [
    "NO_RECIPIENTS_ERROR",
    "DeliveryService",
    "DeliverySummary",
    "build_channel_message",
    "merge_results",
    "NotificationService",
    "SchedulerService",
    "PushTarget",
    "ResolvedTargets",
    "TargetResolver",
    "TestPushService",
    "TokenLifecycleManager",
    "DeliveryEnqueuer",
    "TriggerDispatcher",
]
