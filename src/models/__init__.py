"""SQLAlchemy models."""

from src.models.notification_preference import (
    DeviceToken,
    NotificationChannelSetting,
    NotificationPreference,
)
from src.models.user import User

__all__ = [
    "User",
    "NotificationPreference",
    "NotificationChannelSetting",
    "DeviceToken",
]
