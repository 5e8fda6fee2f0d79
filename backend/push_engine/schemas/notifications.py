"""
Pydantic schemas for notification and device endpoints.

Request bodies use the camelCase keys the mobile and admin clients send.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from push_engine.models import NotificationStatus, PushChannel


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MarkReadRequest(CamelModel):
    notification_id: Optional[str] = Field(default=None, alias="notificationId")


class SuccessResponse(BaseModel):
    success: bool = True


class SendTestRequest(CamelModel):
    title: Optional[str] = None
    message: Optional[str] = None
    target_user_id: Optional[str] = Field(default=None, alias="targetUserId")


class SendTestResponse(BaseModel):
    success: bool
    delivered: int
    failed: int


class NotificationCreateRequest(CamelModel):
    """Payload from the admin notification centre."""

    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(default="")
    type: str = Field(default="general", max_length=50)
    priority: str = Field(default="normal", max_length=20)
    target_users: List[str] = Field(default_factory=list, alias="targetUsers")
    scheduled_for: Optional[datetime] = Field(default=None, alias="scheduledFor")
    draft: bool = Field(default=False, description="Store without sending")


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    message: str
    type: str
    priority: str
    status: NotificationStatus
    target_users: List[str] = Field(default_factory=list)
    read_by: List[str] = Field(default_factory=list)
    scheduled_for: Optional[datetime] = None
    sent_to: Optional[List[str]] = None
    delivered_to: Optional[int] = None
    failed_deliveries: Optional[int] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None


class DeviceRegistrationRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096)


class DeviceRegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    channel: PushChannel
    device_id: str
    token: str
    updated_at: Optional[datetime] = None
