"""
Pydantic schemas
"""

from .notifications import (
    DeviceRegistrationRequest,
    DeviceRegistrationResponse,
    MarkReadRequest,
    NotificationCreateRequest,
    NotificationResponse,
    SendTestRequest,
    SendTestResponse,
    SuccessResponse,
)

__all__ = [
    "DeviceRegistrationRequest",
    "DeviceRegistrationResponse",
    "MarkReadRequest",
    "NotificationCreateRequest",
    "NotificationResponse",
    "SendTestRequest",
    "SendTestResponse",
    "SuccessResponse",
]
