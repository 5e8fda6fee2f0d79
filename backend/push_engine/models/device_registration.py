"""
Per-device push registrations owned by users.
"""

from __future__ import annotations

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from .base import BaseModel
from .notifications import enum_values
from .user import User


class PushChannel(str, enum.Enum):
    """Push delivery transports."""

    FCM = "fcm"
    EXPO = "expo"


class DeviceRegistration(BaseModel):
    """A device's push token on one channel."""

    __tablename__ = "device_registrations"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    channel = Column(
        Enum(PushChannel, name="push_channel", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    device_id = Column(String(255), nullable=False)
    token = Column(String(4096), nullable=False)
    last_used_at = Column(DateTime(timezone=True))

    user = relationship(User, backref="device_registrations")

    __table_args__ = (
        UniqueConstraint("user_id", "channel", "device_id", name="uq_device_registration_device"),
    )
