"""
Notification endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from push_engine.api.dependencies import get_current_user_optional, get_notifications_facade
from push_engine.domains.notifications import NotificationsFacade
from push_engine.models import User
from push_engine.schemas import (
    MarkReadRequest,
    NotificationCreateRequest,
    NotificationResponse,
    SendTestRequest,
    SendTestResponse,
    SuccessResponse,
)

router = APIRouter()


@router.post("/mark-read", response_model=SuccessResponse)
async def mark_notification_as_read(
    payload: MarkReadRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    """Record that the caller has read a notification."""
    await facade.mark_notification_as_read(current_user, payload.notification_id)
    return SuccessResponse(success=True)


@router.post("/send-test", response_model=SendTestResponse)
async def send_test_notification(
    payload: SendTestRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    """Send a test push to one user's FCM devices (admins only)."""
    result = await facade.send_test_notification(
        current_user,
        target_user_id=payload.target_user_id,
        title=payload.title,
        message=payload.message,
    )
    return SendTestResponse(**result)


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreateRequest,
    current_user: Optional[User] = Depends(get_current_user_optional),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    notification = await facade.notification_service.create_notification(
        current_user,
        title=payload.title,
        message=payload.message,
        target_users=payload.target_users,
        type=payload.type,
        priority=payload.priority,
        scheduled_for=payload.scheduled_for,
        draft=payload.draft,
    )
    return NotificationResponse.model_validate(notification)


@router.post("/{notification_id}/send-now", response_model=NotificationResponse)
async def send_notification_now(
    notification_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    notification = await facade.notification_service.send_now(current_user, notification_id)
    return NotificationResponse.model_validate(notification)


@router.post("/{notification_id}/resend", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def resend_notification(
    notification_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    notification = await facade.notification_service.resend(current_user, notification_id)
    return NotificationResponse.model_validate(notification)


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    notification = await facade.notification_service.get_notification(current_user, notification_id)
    return NotificationResponse.model_validate(notification)
