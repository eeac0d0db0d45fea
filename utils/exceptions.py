"""
Custom exception classes for better error handling.
Provides specific error types instead of generic exceptions.
"""


class NotificationError(Exception):
    """Base exception for notification delivery."""

    pass


class NotificationDeliveryError(NotificationError):
    """Raised when the platform fails while showing a notification."""

    pass


class HabitStoreError(Exception):
    """Base exception for habit store operations."""

    pass


class HabitNotFoundError(HabitStoreError):
    """Raised when a habit is not found."""

    pass


class VacationOverlapError(HabitStoreError):
    """Raised when a vacation period overlaps an existing one."""

    pass
