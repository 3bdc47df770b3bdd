"""Delivery planning for outgoing notifications.

Decides which channels a notification may go out on for a user, which are
held for a digest and when a quiet-hours deferral ends. Transport is handled
elsewhere.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError

from src.models.enums import (
    NotificationChannel,
    NotificationFrequency,
    NotificationPriority,
    NotificationType,
)
from src.services.notification_preferences import NotificationPreferenceStore

logger = logging.getLogger(__name__)


@dataclass
class DeliveryPlan:
    """Per-channel outcome for one notification to one user."""

    user_id: int
    notification_type: NotificationType
    priority: NotificationPriority = NotificationPriority.MEDIUM
    send_now: list[NotificationChannel] = field(default_factory=list)
    digest: dict[NotificationChannel, NotificationFrequency] = field(default_factory=dict)
    deferred: list[NotificationChannel] = field(default_factory=list)
    deferred_until: datetime | None = None
    push_tokens: list[str] = field(default_factory=list)
    blocked: bool = False

    @property
    def has_deliveries(self) -> bool:
        """Check if anything will be sent now or later."""
        return bool(self.send_now or self.digest or self.deferred)


class DeliveryPlanner:
    """Applies a user's preferences to an outgoing notification."""

    def __init__(self, store: NotificationPreferenceStore):
        self.store = store

    def plan(
        self,
        user_id: int,
        notification_type: NotificationType | str,
        channels: list[NotificationChannel | str] | None = None,
        now: datetime | None = None,
        priority: NotificationPriority | str = NotificationPriority.MEDIUM,
    ) -> DeliveryPlan:
        """Build the delivery plan for a notification.

        ``channels=None`` considers every channel; an empty list considers
        none. Urgent notifications ignore quiet hours but still respect
        opt-outs and digest frequencies.

        If preferences cannot be read the plan is blocked and nothing is
        sent, so a storage outage never overrides an opt-out.
        """
        notification_type = NotificationType(notification_type)
        priority = NotificationPriority(priority)
        requested = [
            NotificationChannel(channel)
            for channel in (NotificationChannel if channels is None else channels)
        ]
        now = now or datetime.now(UTC)
        plan = DeliveryPlan(user_id=user_id, notification_type=notification_type, priority=priority)

        try:
            preference = self.store.get_or_create(user_id)
            hold_for_quiet_hours = not priority.bypasses_quiet_hours() and (
                self.store.is_in_quiet_hours(preference, now)
            )

            for channel in requested:
                if not self.store.is_channel_type_enabled(preference, channel, notification_type):
                    logger.debug(f"Channel {channel.value} disabled for type {notification_type.value}")
                    continue

                setting = preference.get_channel(channel)
                frequency = NotificationFrequency(
                    setting.frequency if setting else NotificationFrequency.IMMEDIATE
                )
                if frequency == NotificationFrequency.NEVER:
                    continue

                if channel == NotificationChannel.PUSH:
                    plan.push_tokens = [
                        device_token.token
                        for device_token in self.store.active_device_tokens(preference)
                    ]
                    if not plan.push_tokens:
                        logger.info(f"No active device tokens for user {user_id}")
                        continue

                if frequency.is_digest():
                    plan.digest[channel] = frequency
                elif hold_for_quiet_hours:
                    plan.deferred.append(channel)
                else:
                    plan.send_now.append(channel)

            if plan.deferred:
                plan.deferred_until = self.store.next_delivery_time(preference, now)
        except SQLAlchemyError as e:
            logger.error(f"Could not read notification preferences for user {user_id}: {e}")
            self.store.db.rollback()
            return DeliveryPlan(
                user_id=user_id,
                notification_type=notification_type,
                priority=priority,
                blocked=True,
            )

        return plan
