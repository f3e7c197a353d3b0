import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_test"),
}

DEBUG = False
TESTING = True

TIMEZONE = "UTC"

# The sweeper thread is started explicitly by tests that need it
AUTO_LOGOUT_ENABLED = False
AUTO_LOGOUT_TIME = "23:59"
AUTO_LOGOUT_POLL_SECONDS = 30

REQUIRE_LEAVE_REJECTION_REASON = False
REQUIRE_CORRECTION_REJECTION_REASON = True
STUCK_CORRECTION_GRACE_MINUTES = 15

AUTO_INIT_DB = False
AUTO_SEED_DB = False
