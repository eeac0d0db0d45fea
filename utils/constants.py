"""
Application-wide constants.
Centralizes magic numbers and configuration values.
"""

# Time-of-day format used as reminder slot keys
TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# Notification delivery
AUTO_DISMISS_SECONDS = 10  # Alerts are dismissed after this many seconds
PERMISSION_PROMPT_TIMEOUT_SECONDS = 300
GROUPED_NOTIFICATION_TAG = "grouped-notification"
DEFAULT_GROUPING_MIN_COUNT = 2

# APScheduler job ids
REMINDER_SLOT_JOB_PREFIX = "reminder_slot_"
DAILY_RESYNC_JOB_ID = "habit_reminders_daily_resync"
DAILY_RESYNC_TIME = "00:01"

# Telegram callback data
CALLBACK_NOTIFY_ALLOW = "notify_allow"
CALLBACK_NOTIFY_DENY = "notify_deny"
CALLBACK_REMINDER_OPEN_PREFIX = "reminder_open:"

# Reminder texts
HABIT_REMINDER_BODY = "Time to complete habit: {habit_name}"
GROUPED_TITLE = "You have {count} reminders for this time"
GROUPED_LIST_BULLET = "•"
