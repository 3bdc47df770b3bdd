"""Notification preference, channel setting and device token models."""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import (
    DEFAULT_TYPE_FLAGS,
    NotificationChannel,
    NotificationFrequency,
)
from src.models.mixins import TimestampMixin

DEFAULT_QUIET_HOURS_START = "22:00"
DEFAULT_QUIET_HOURS_END = "08:00"
DEFAULT_QUIET_HOURS_TIMEZONE = "UTC"


def default_type_flags() -> dict[str, bool]:
    """Fresh per-type opt-in map for a new channel setting."""
    return {notification_type.value: flag for notification_type, flag in DEFAULT_TYPE_FLAGS.items()}


class NotificationPreference(Base, TimestampMixin):
    """Per-user delivery matrix, quiet hours window and device token registry."""

    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(String(5), nullable=False, default=DEFAULT_QUIET_HOURS_START)
    quiet_hours_end = Column(String(5), nullable=False, default=DEFAULT_QUIET_HOURS_END)
    quiet_hours_timezone = Column(String(64), nullable=False, default=DEFAULT_QUIET_HOURS_TIMEZONE)

    # Relationships
    user = relationship("User", back_populates="notification_preference")
    channel_settings = relationship(
        "NotificationChannelSetting",
        back_populates="preference",
        cascade="all, delete-orphan",
        order_by="NotificationChannelSetting.id",
    )
    device_tokens = relationship(
        "DeviceToken",
        back_populates="preference",
        cascade="all, delete-orphan",
        order_by="DeviceToken.id",
    )

    @classmethod
    def with_defaults(cls, user_id: int) -> "NotificationPreference":
        """Build an unsaved record with every channel and quiet-hours default applied."""
        return cls(
            user_id=user_id,
            quiet_hours_enabled=False,
            quiet_hours_start=DEFAULT_QUIET_HOURS_START,
            quiet_hours_end=DEFAULT_QUIET_HOURS_END,
            quiet_hours_timezone=DEFAULT_QUIET_HOURS_TIMEZONE,
            channel_settings=[
                NotificationChannelSetting(
                    channel=channel.value,
                    enabled=True,
                    frequency=NotificationFrequency.IMMEDIATE.value,
                    types=default_type_flags(),
                )
                for channel in NotificationChannel
            ],
        )

    def get_channel(self, channel: NotificationChannel) -> "NotificationChannelSetting | None":
        """Get the setting row for a channel."""
        for setting in self.channel_settings:
            if setting.channel == channel.value:
                return setting
        return None

    def find_device_token(self, token: str) -> "DeviceToken | None":
        """Get a registered device token by its exact value."""
        for device_token in self.device_tokens:
            if device_token.token == token:
                return device_token
        return None


class NotificationChannelSetting(Base):
    """Enabled flag, digest frequency and per-type opt-ins for one channel."""

    __tablename__ = "notification_channel_settings"
    __table_args__ = (
        UniqueConstraint("preference_id", "channel", name="uq_preference_channel"),
    )

    id = Column(Integer, primary_key=True, index=True)
    preference_id = Column(
        Integer, ForeignKey("notification_preferences.id", ondelete="CASCADE"), nullable=False
    )
    channel = Column(String(10), nullable=False)  # "email" | "push" | "inApp"
    enabled = Column(Boolean, nullable=False, default=True)
    frequency = Column(String(10), nullable=False, default=NotificationFrequency.IMMEDIATE.value)
    # {"goal_reminder": true, ..., "marketing": false}; a missing key reads as enabled
    types = Column(JSON, nullable=False, default=default_type_flags)

    # Relationships
    preference = relationship("NotificationPreference", back_populates="channel_settings")


class DeviceToken(Base):
    """Push delivery token for one installed app instance."""

    __tablename__ = "device_tokens"
    __table_args__ = (UniqueConstraint("preference_id", "token", name="uq_preference_token"),)

    id = Column(Integer, primary_key=True, index=True)
    preference_id = Column(
        Integer,
        ForeignKey("notification_preferences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(String(512), nullable=False, index=True)
    platform = Column(String(10), nullable=False)  # "ios" | "android" | "web"
    last_used = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    preference = relationship("NotificationPreference", back_populates="device_tokens")
