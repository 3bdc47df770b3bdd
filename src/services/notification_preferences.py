"""Notification preference store: delivery matrix, quiet hours and device tokens."""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime, time, timedelta
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.config import Settings, get_settings
from src.exceptions import InvalidArgumentError, PreferenceValidationError, validation_error_details
from src.models.enums import (
    DevicePlatform,
    NotificationChannel,
    NotificationFrequency,
    NotificationType,
)
from src.models.notification_preference import (
    DeviceToken,
    NotificationChannelSetting,
    NotificationPreference,
    default_type_flags,
)
from src.schemas.notification import NotificationPreferenceUpdate

logger = logging.getLogger(__name__)


def _coerce_channel(channel: NotificationChannel | str) -> NotificationChannel:
    try:
        return NotificationChannel(channel)
    except ValueError as e:
        raise InvalidArgumentError(f"Unknown notification channel: {channel}") from e


def _coerce_type(notification_type: NotificationType | str) -> NotificationType:
    try:
        return NotificationType(notification_type)
    except ValueError as e:
        raise InvalidArgumentError(f"Unknown notification type: {notification_type}") from e


class NotificationPreferenceStore:
    """Owns per-user notification preferences and answers delivery questions.

    Every write commits through the injected session. Concurrent writes for
    the same user are last-write-wins; there is no version column.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    # Records

    def get_preferences(self, user_id: int) -> NotificationPreference | None:
        """Get a user's preferences without creating them."""
        return (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.user_id == user_id)
            .first()
        )

    def get_or_create(self, user_id: int) -> NotificationPreference:
        """Get a user's preferences, creating a record with all defaults on first access."""
        preference = self.get_preferences(user_id)
        if preference:
            return preference

        preference = NotificationPreference.with_defaults(user_id)
        self.db.add(preference)
        try:
            self.db.commit()
        except IntegrityError:
            # Another request created the record first
            self.db.rollback()
            existing = self.get_preferences(user_id)
            if existing is None:
                raise
            return existing

        self.db.refresh(preference)
        logger.info(f"Created default notification preferences for user {user_id}")
        return preference

    # Eligibility

    def is_channel_type_enabled(
        self,
        preference: NotificationPreference,
        channel: NotificationChannel | str,
        notification_type: NotificationType | str,
    ) -> bool:
        """Check the channel switch and the per-type flag.

        A type with no stored flag counts as enabled, so types added later are
        on for existing users without a migration.
        """
        channel = _coerce_channel(channel)
        notification_type = _coerce_type(notification_type)

        setting = preference.get_channel(channel)
        if setting is None:
            return True
        if not setting.enabled:
            return False
        return (setting.types or {}).get(notification_type.value) is not False

    def is_in_quiet_hours(
        self,
        preference: NotificationPreference,
        now: datetime | time | None = None,
    ) -> bool:
        """Check if ``now`` falls inside the user's quiet hours, both ends inclusive.

        ``now`` may be a ``time`` or a naive ``datetime`` (taken as the user's
        wall clock) or an aware ``datetime`` (converted into the stored
        timezone). Defaults to the current time.
        """
        if not preference.quiet_hours_enabled:
            return False

        current_time = self._local_clock(preference, now)
        start = preference.quiet_hours_start
        end = preference.quiet_hours_end

        # Overnight window, e.g. 22:00-08:00
        if start > end:
            return current_time >= start or current_time <= end

        return start <= current_time <= end

    def is_delivery_eligible(
        self,
        preference: NotificationPreference,
        channel: NotificationChannel | str,
        notification_type: NotificationType | str,
        now: datetime | time | None = None,
    ) -> bool:
        """Check if a notification may be sent on a channel right now.

        Frequency is not considered; digest batching sits above this check.
        """
        return self.is_channel_type_enabled(
            preference, channel, notification_type
        ) and not self.is_in_quiet_hours(preference, now)

    def next_delivery_time(
        self,
        preference: NotificationPreference,
        now: datetime | None = None,
    ) -> datetime | None:
        """Get the first minute after the current quiet hours window, or None outside it.

        Aware inputs return a UTC datetime; naive inputs return a naive one.
        """
        now = now or datetime.now(UTC)
        if not self.is_in_quiet_hours(preference, now):
            return None

        local = now.astimezone(self._zone(preference)) if now.tzinfo else now
        hours, minutes = (int(part) for part in preference.quiet_hours_end.split(":"))
        resume = local.replace(hour=hours, minute=minutes, second=0, microsecond=0)
        resume += timedelta(minutes=1)
        if resume <= local:
            resume += timedelta(days=1)

        return resume.astimezone(UTC) if resume.tzinfo else resume

    # Device tokens

    def add_device_token(
        self,
        preference: NotificationPreference,
        token: str,
        platform: DevicePlatform | str,
    ) -> NotificationPreference:
        """Register a device token, or refresh and reactivate it if already known."""
        if not token:
            raise PreferenceValidationError(
                "Device token is required",
                errors=[{"field": "token", "message": "Device token is required"}],
            )
        try:
            platform = DevicePlatform(platform)
        except ValueError as e:
            raise PreferenceValidationError(
                "Invalid platform",
                errors=[{"field": "platform", "message": "Invalid platform"}],
            ) from e

        now = datetime.now(UTC)
        existing = preference.find_device_token(token)
        if existing:
            existing.platform = platform.value
            existing.last_used = now
            existing.is_active = True
        else:
            self._evict_stale_tokens(preference)
            preference.device_tokens.append(
                DeviceToken(token=token, platform=platform.value, last_used=now, is_active=True)
            )

        self._commit()
        self.db.refresh(preference)
        logger.info(f"Registered {platform.value} device token for user {preference.user_id}")
        return preference

    def remove_device_token(
        self,
        preference: NotificationPreference,
        token: str,
    ) -> NotificationPreference:
        """Remove a device token. Unknown tokens are ignored."""
        existing = preference.find_device_token(token)
        if existing:
            preference.device_tokens.remove(existing)
            logger.info(f"Removed device token for user {preference.user_id}")

        self._commit()
        self.db.refresh(preference)
        return preference

    def active_device_tokens(self, preference: NotificationPreference) -> list[DeviceToken]:
        """Get the tokens push delivery should target."""
        return [device_token for device_token in preference.device_tokens if device_token.is_active]

    def deactivate_device_token(self, token: str) -> int:
        """Mark a token inactive for every user it is registered to.

        Called when the push provider reports the device as unregistered.
        Returns the number of registrations touched.
        """
        registrations = self.db.query(DeviceToken).filter(DeviceToken.token == token).all()
        now = datetime.now(UTC)
        for registration in registrations:
            registration.is_active = False
            registration.last_used = now

        self._commit()
        if registrations:
            logger.info(f"Marked device token inactive on {len(registrations)} registration(s)")
        return len(registrations)

    # Updates

    def update_preferences(
        self,
        preference: NotificationPreference,
        update: NotificationPreferenceUpdate | Mapping[str, Any],
    ) -> NotificationPreference:
        """Merge a partial update into the record.

        Only supplied fields change. Per-type flags merge key by key, so
        toggling a channel leaves its type flags alone. Invalid input raises
        before anything is modified, and a failed commit is rolled back.
        """
        if not isinstance(update, NotificationPreferenceUpdate):
            update = self._validate_update(update)

        if update.channels is not None:
            for channel, channel_update in update.channels.supplied():
                setting = self._channel_setting(preference, channel)
                if channel_update.enabled is not None:
                    setting.enabled = channel_update.enabled
                if channel_update.frequency is not None:
                    setting.frequency = channel_update.frequency.value
                if channel_update.types:
                    setting.types = {
                        **(setting.types or {}),
                        **{
                            notification_type.value: flag
                            for notification_type, flag in channel_update.types.items()
                        },
                    }

        quiet_hours = update.quiet_hours
        if quiet_hours is not None:
            if quiet_hours.enabled is not None:
                preference.quiet_hours_enabled = quiet_hours.enabled
            if quiet_hours.start is not None:
                preference.quiet_hours_start = quiet_hours.start
            if quiet_hours.end is not None:
                preference.quiet_hours_end = quiet_hours.end
            if quiet_hours.timezone is not None:
                preference.quiet_hours_timezone = quiet_hours.timezone

        self._commit()
        self.db.refresh(preference)
        return preference

    # Helpers

    def _commit(self) -> None:
        """Commit, discarding the pending changes if the database refuses them."""
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _validate_update(self, update: Mapping[str, Any]) -> NotificationPreferenceUpdate:
        try:
            return NotificationPreferenceUpdate.model_validate(update)
        except ValidationError as e:
            errors = e.errors()
            # Unknown channel keys (extra fields) and unknown type keys (dict keys)
            unknown_key = any(
                error["type"] == "extra_forbidden" or "[key]" in error["loc"] for error in errors
            )
            error_cls = InvalidArgumentError if unknown_key else PreferenceValidationError
            raise error_cls("Validation failed", errors=validation_error_details(errors)) from e

    def _channel_setting(
        self,
        preference: NotificationPreference,
        channel: NotificationChannel,
    ) -> NotificationChannelSetting:
        setting = preference.get_channel(channel)
        if setting is None:
            setting = NotificationChannelSetting(
                channel=channel.value,
                enabled=True,
                frequency=NotificationFrequency.IMMEDIATE.value,
                types=default_type_flags(),
            )
            preference.channel_settings.append(setting)
        return setting

    def _evict_stale_tokens(self, preference: NotificationPreference) -> None:
        """Make room for one more token, dropping inactive then least recently used ones."""
        while len(preference.device_tokens) >= self.settings.max_device_tokens:
            stale = min(
                preference.device_tokens,
                key=lambda device_token: (device_token.is_active, device_token.last_used),
            )
            preference.device_tokens.remove(stale)
            logger.info(f"Evicted stale device token for user {preference.user_id}")

    def _zone(self, preference: NotificationPreference) -> ZoneInfo:
        try:
            return ZoneInfo(preference.quiet_hours_timezone or "UTC")
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo("UTC")

    def _local_clock(
        self,
        preference: NotificationPreference,
        now: datetime | time | None,
    ) -> str:
        if now is None:
            now = datetime.now(UTC)
        if isinstance(now, datetime):
            if now.tzinfo is not None:
                now = now.astimezone(self._zone(preference))
            now = now.time()
        return now.strftime("%H:%M")
