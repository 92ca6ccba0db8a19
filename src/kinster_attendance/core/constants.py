"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

USERS_STORAGE_KEY = "kinster_users"
ATTENDANCE_STORAGE_KEY = "kinster_attendance"

UNKNOWN_USER_NAME = "Unknown User"
UNKNOWN_USER_EMAIL = "unknown@email.com"

DEFAULT_GEOLOCATION_TIMEOUT_SECONDS = 10.0
DEFAULT_SESSION_DAYS = 7
MIN_PASSWORD_LENGTH = 6

# (email, password, name, role)
DEFAULT_ACCOUNTS = (
    ("admin@kinster.com", "admin123", "Administrator", "admin"),
    ("user@kinster.com", "user123", "Test User", "user"),
)
