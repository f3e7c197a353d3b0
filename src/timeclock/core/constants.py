"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE

DEFAULT_HISTORY_LIMIT = 10
DEFAULT_LIST_LIMIT = 500
DEFAULT_AUTO_LOGOUT_TIME = "23:59"
DEFAULT_AUTO_LOGOUT_POLL_SECONDS = 30
DEFAULT_STUCK_CORRECTION_GRACE_MINUTES = 15
MIN_PASSWORD_LENGTH = 6
