"""Example: drive the service layer directly (no Flask).

Controllers are thin; the attendance rules live in the services.
"""

import importlib

from config import get_settings_module

from timeclock.common.datetime_utils import format_duration
from timeclock.container import build_container
from timeclock.core.exceptions import AlreadyClockedIn


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)
    attendance = container.attendance_service

    user = container.users_repo.get_by_email("employee@example.com")
    if not user:
        print("Run scripts/seed_db.py first")
        return

    try:
        attendance.clock_in(user.user_id)
    except AlreadyClockedIn:
        pass
    attendance.break_start(user.user_id)
    attendance.break_end(user.user_id)
    result = attendance.clock_out(user.user_id)
    print("worked:", format_duration(result.record.total_worked_ms))
    print(attendance.get_history_ui(user.user_id, limit=5))


if __name__ == "__main__":
    main()
