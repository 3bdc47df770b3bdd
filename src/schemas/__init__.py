"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from src.schemas.notification import (
    DeviceTokenCreate,
    DeviceTokenDelete,
    MessageResponse,
    NotificationPreferenceEnvelope,
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "NotificationPreferenceUpdate",
    "NotificationPreferenceResponse",
    "NotificationPreferenceEnvelope",
    "DeviceTokenCreate",
    "DeviceTokenDelete",
    "MessageResponse",
]
