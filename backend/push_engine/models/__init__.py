"""
Models package
"""

from .base import Base, BaseModel
from .user import User
from .notifications import Notification, NotificationStatus
from .device_registration import DeviceRegistration, PushChannel

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Notification",
    "NotificationStatus",
    "DeviceRegistration",
    "PushChannel",
]
