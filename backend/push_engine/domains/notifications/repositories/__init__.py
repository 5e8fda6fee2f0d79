from .notification_repository import NotificationRepository, StatusChange
from .registration_repository import RegistrationKey, RegistrationRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "StatusChange",
    "RegistrationKey",
    "RegistrationRepository",
    "UserRepository",
]
