"""
Device registration endpoints
"""

from fastapi import APIRouter, Depends

from push_engine.api.dependencies import get_current_user, get_notifications_facade
from push_engine.domains.notifications import NotificationsFacade
from push_engine.models import PushChannel, User
from push_engine.schemas import DeviceRegistrationRequest, DeviceRegistrationResponse

router = APIRouter()


@router.put("/{channel}/{device_id}", response_model=DeviceRegistrationResponse)
async def register_device(
    channel: PushChannel,
    device_id: str,
    payload: DeviceRegistrationRequest,
    current_user: User = Depends(get_current_user),
    facade: NotificationsFacade = Depends(get_notifications_facade),
):
    """Create or refresh the caller's push token for one device."""
    registration = await facade.register_device(
        current_user,
        channel=channel,
        device_id=device_id,
        token=payload.token,
    )
    return DeviceRegistrationResponse.model_validate(registration)
