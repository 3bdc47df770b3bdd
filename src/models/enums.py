"""Enums for model fields."""

from enum import Enum


class NotificationChannel(str, Enum):
    """Delivery media a notification can go out on."""

    EMAIL = "email"
    PUSH = "push"
    IN_APP = "inApp"


class NotificationType(str, Enum):
    """Event categories a user can opt in or out of per channel."""

    GOAL_REMINDER = "goal_reminder"
    GOAL_ACHIEVED = "goal_achieved"
    GOAL_MILESTONE = "goal_milestone"
    INCOME_ADDED = "income_added"
    EXPENSE_ALERT = "expense_alert"
    SAVINGS_MILESTONE = "savings_milestone"
    BILL_REMINDER = "bill_reminder"
    SECURITY_ALERT = "security_alert"
    ACCOUNT_UPDATE = "account_update"
    MARKETING = "marketing"
    SYSTEM = "system"


class NotificationFrequency(str, Enum):
    """Digest cadence for a channel."""

    IMMEDIATE = "immediate"
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"

    def is_digest(self) -> bool:
        """Check if notifications on this cadence are batched."""
        return self in (NotificationFrequency.DAILY, NotificationFrequency.WEEKLY)


class DevicePlatform(str, Enum):
    """Platforms that issue push device tokens."""

    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


# Opt-in state for each type when a preference record is created.
# Marketing is the only type a user must opt in to.
DEFAULT_TYPE_FLAGS: dict[NotificationType, bool] = {
    notification_type: notification_type != NotificationType.MARKETING
    for notification_type in NotificationType
}


class NotificationPriority(str, Enum):
    """Sender-assigned urgency of a notification."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    def bypasses_quiet_hours(self) -> bool:
        """Check if notifications at this priority go out during quiet hours."""
        return self == NotificationPriority.URGENT
