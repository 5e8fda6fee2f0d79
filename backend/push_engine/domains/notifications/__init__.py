"""Push notification domain package."""

from .facade import NotificationsFacade

__all__ = ["NotificationsFacade"]
