"""Notification preference Pydantic schemas.

Request and response documents use camelCase keys (``quietHours``,
``deviceTokens``, ``inApp``) to match the mobile client.
"""

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel

from src.models.enums import (
    DevicePlatform,
    NotificationChannel,
    NotificationFrequency,
    NotificationType,
)
from src.models.notification_preference import NotificationPreference

QUIET_HOURS_TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChannelConfigUpdate(CamelModel):
    """Partial update for one channel."""

    model_config = ConfigDict(extra="forbid")

    enabled: StrictBool | None = None
    frequency: NotificationFrequency | None = None
    types: dict[NotificationType, StrictBool] | None = None


class ChannelsUpdate(CamelModel):
    """Partial update keyed by channel; unknown channels are rejected."""

    model_config = ConfigDict(extra="forbid")

    email: ChannelConfigUpdate | None = None
    push: ChannelConfigUpdate | None = None
    in_app: ChannelConfigUpdate | None = None

    def supplied(self) -> list[tuple[NotificationChannel, ChannelConfigUpdate]]:
        """Supplied channel updates paired with their channel."""
        supplied = {
            NotificationChannel.EMAIL: self.email,
            NotificationChannel.PUSH: self.push,
            NotificationChannel.IN_APP: self.in_app,
        }
        return [(channel, update) for channel, update in supplied.items() if update is not None]


class QuietHoursUpdate(CamelModel):
    """Partial update for the quiet hours window."""

    model_config = ConfigDict(extra="forbid")

    enabled: StrictBool | None = None
    start: str | None = Field(None, pattern=QUIET_HOURS_TIME_PATTERN)
    end: str | None = Field(None, pattern=QUIET_HOURS_TIME_PATTERN)
    timezone: str | None = Field(None, min_length=1, max_length=64)

    @field_validator("start", "end")
    @classmethod
    def zero_pad_time(cls, value: str | None) -> str | None:
        """Store times as HH:MM so string comparison matches clock order."""
        if value is None:
            return value
        hours, minutes = value.split(":")
        return f"{int(hours):02d}:{minutes}"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str | None) -> str | None:
        """Reject timezone names the zoneinfo database does not know."""
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


class NotificationPreferenceUpdate(CamelModel):
    """Schema for updating notification preferences."""

    model_config = ConfigDict(extra="forbid")

    channels: ChannelsUpdate | None = None
    quiet_hours: QuietHoursUpdate | None = None


class ChannelConfigResponse(CamelModel):
    """Channel state in a preference response."""

    enabled: bool
    frequency: NotificationFrequency
    types: dict[str, bool]


class ChannelsResponse(CamelModel):
    """All three channels in a preference response."""

    email: ChannelConfigResponse
    push: ChannelConfigResponse
    in_app: ChannelConfigResponse


class QuietHoursResponse(CamelModel):
    """Quiet hours window in a preference response."""

    enabled: bool
    start: str
    end: str
    timezone: str


class DeviceTokenResponse(CamelModel):
    """Registered device token."""

    model_config = ConfigDict(from_attributes=True)

    token: str
    platform: DevicePlatform
    last_used: datetime
    is_active: bool


class NotificationPreferenceResponse(CamelModel):
    """Schema for a user's notification preferences."""

    user_id: int
    channels: ChannelsResponse
    quiet_hours: QuietHoursResponse
    device_tokens: list[DeviceTokenResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_preference(cls, preference: NotificationPreference) -> "NotificationPreferenceResponse":
        """Build the response document from the ORM record."""
        channels = {}
        for setting in preference.channel_settings:
            channels[NotificationChannel(setting.channel)] = ChannelConfigResponse(
                enabled=setting.enabled,
                frequency=setting.frequency,
                types=dict(setting.types or {}),
            )

        return cls(
            user_id=preference.user_id,
            channels=ChannelsResponse(
                email=channels[NotificationChannel.EMAIL],
                push=channels[NotificationChannel.PUSH],
                in_app=channels[NotificationChannel.IN_APP],
            ),
            quiet_hours=QuietHoursResponse(
                enabled=preference.quiet_hours_enabled,
                start=preference.quiet_hours_start,
                end=preference.quiet_hours_end,
                timezone=preference.quiet_hours_timezone,
            ),
            device_tokens=[
                DeviceTokenResponse.model_validate(token) for token in preference.device_tokens
            ],
            created_at=preference.created_at,
            updated_at=preference.updated_at,
        )


class NotificationPreferenceEnvelope(BaseModel):
    """Success envelope around a preference document."""

    success: bool = True
    data: NotificationPreferenceResponse


class DeviceTokenCreate(BaseModel):
    """Schema for registering a device token."""

    token: str = Field(..., min_length=1, max_length=512)
    platform: DevicePlatform


class DeviceTokenDelete(BaseModel):
    """Schema for removing a device token."""

    token: str = Field(..., min_length=1, max_length=512)


class MessageResponse(BaseModel):
    """Success envelope around a human-readable message."""

    success: bool = True
    message: str


class EligibilityResponse(CamelModel):
    """Delivery eligibility for one channel and notification type."""

    channel: NotificationChannel
    notification_type: NotificationType = Field(alias="type")
    enabled: bool
    quiet_hours: bool
    eligible: bool


class EligibilityEnvelope(BaseModel):
    """Success envelope around an eligibility answer."""

    success: bool = True
    data: EligibilityResponse
