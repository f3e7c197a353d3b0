import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "timeclock"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock"),
}

DEBUG = False

TIMEZONE = os.getenv("TIMEZONE", "")

AUTO_LOGOUT_ENABLED = bool(int(os.getenv("AUTO_LOGOUT_ENABLED", "1")))
AUTO_LOGOUT_TIME = os.getenv("AUTO_LOGOUT_TIME", "23:59")
AUTO_LOGOUT_POLL_SECONDS = int(os.getenv("AUTO_LOGOUT_POLL_SECONDS", "30"))

REQUIRE_LEAVE_REJECTION_REASON = bool(int(os.getenv("REQUIRE_LEAVE_REJECTION_REASON", "0")))
REQUIRE_CORRECTION_REJECTION_REASON = bool(int(os.getenv("REQUIRE_CORRECTION_REJECTION_REASON", "1")))
STUCK_CORRECTION_GRACE_MINUTES = int(os.getenv("STUCK_CORRECTION_GRACE_MINUTES", "15"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
