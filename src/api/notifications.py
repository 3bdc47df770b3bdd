"""Notification API endpoints for preferences and device tokens."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_current_user, get_preference_store
from src.models.enums import NotificationChannel, NotificationType
from src.models.user import User
from src.schemas.notification import (
    DeviceTokenCreate,
    DeviceTokenDelete,
    EligibilityEnvelope,
    EligibilityResponse,
    MessageResponse,
    NotificationPreferenceEnvelope,
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)
from src.services.notification_preferences import NotificationPreferenceStore

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("/preferences", response_model=NotificationPreferenceEnvelope)
def get_notification_preferences(
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[NotificationPreferenceStore, Depends(get_preference_store)],
) -> NotificationPreferenceEnvelope:
    """Get notification preferences for the current user, creating defaults if needed."""
    preference = store.get_or_create(current_user.id)
    return NotificationPreferenceEnvelope(
        data=NotificationPreferenceResponse.from_preference(preference)
    )


@router.put("/preferences", response_model=NotificationPreferenceEnvelope)
def update_notification_preferences(
    preferences_update: NotificationPreferenceUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[NotificationPreferenceStore, Depends(get_preference_store)],
) -> NotificationPreferenceEnvelope:
    """Update notification preferences for the current user."""
    preference = store.get_or_create(current_user.id)
    preference = store.update_preferences(preference, preferences_update)
    return NotificationPreferenceEnvelope(
        data=NotificationPreferenceResponse.from_preference(preference)
    )


@router.post("/device-token", response_model=MessageResponse)
def register_device_token(
    token_data: DeviceTokenCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[NotificationPreferenceStore, Depends(get_preference_store)],
) -> MessageResponse:
    """Register a device token for push notifications."""
    preference = store.get_or_create(current_user.id)
    store.add_device_token(preference, token_data.token, token_data.platform)
    return MessageResponse(message="Device token registered successfully")


@router.delete("/device-token", response_model=MessageResponse)
def remove_device_token(
    token_data: DeviceTokenDelete,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[NotificationPreferenceStore, Depends(get_preference_store)],
) -> MessageResponse:
    """Remove a device token. Removing an unknown token still succeeds."""
    preference = store.get_preferences(current_user.id)
    if preference:
        store.remove_device_token(preference, token_data.token)
    return MessageResponse(message="Device token removed successfully")


@router.get("/eligibility", response_model=EligibilityEnvelope)
def get_delivery_eligibility(
    channel: NotificationChannel,
    notification_type: Annotated[NotificationType, Query(alias="type")],
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[NotificationPreferenceStore, Depends(get_preference_store)],
) -> EligibilityEnvelope:
    """Check whether a notification type may be delivered on a channel right now."""
    preference = store.get_or_create(current_user.id)
    enabled = store.is_channel_type_enabled(preference, channel, notification_type)
    quiet_hours = store.is_in_quiet_hours(preference)
    return EligibilityEnvelope(
        data=EligibilityResponse(
            channel=channel,
            notification_type=notification_type,
            enabled=enabled,
            quiet_hours=quiet_hours,
            eligible=enabled and not quiet_hours,
        )
    )
