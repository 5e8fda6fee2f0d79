"""
Notification models
"""

import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSON, UUID

from .base import BaseModel


def enum_values(enum_cls):
    """Return enum values preserving definition order."""
    return [member.value for member in enum_cls]


class NotificationStatus(str, enum.Enum):
    """Notification lifecycle status"""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"


class Notification(BaseModel):
    """One logical push notification addressed to a list of users"""
    __tablename__ = "notifications"

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False, default="")
    type = Column(String(50), nullable=False, default="general")
    priority = Column(String(20), nullable=False, default="normal")

    # Ordered recipient user ids; duplicates are kept as given
    target_users = Column(JSON, nullable=False, default=list)
    status = Column(
        Enum(NotificationStatus, name="notification_status", values_callable=enum_values),
        nullable=False,
        default=NotificationStatus.DRAFT,
        index=True,
    )
    scheduled_for = Column(DateTime(timezone=True), index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    read_by = Column(JSON, nullable=False, default=list)

    # Delivery bookkeeping, written by the engine only
    sent_to = Column(JSON)
    delivered_to = Column(Integer)
    failed_deliveries = Column(Integer)
    error = Column(String(1000))
    sent_at = Column(DateTime(timezone=True))
    processed_at = Column(DateTime(timezone=True))
    last_updated = Column(DateTime(timezone=True))

    # Bumped by every write that moves status into "sent"
    send_generation = Column(Integer, nullable=False, default=0)
    # Last send_generation claimed for delivery
    delivery_generation = Column(Integer)

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, status={self.status}, generation={self.send_generation})>"
