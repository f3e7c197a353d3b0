"""List approved time corrections whose attendance record was never updated.

Run periodically (cron) after a crash or a failed deploy; exits with status 1
when something needs attention.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from config import get_settings_module

from timeclock.common.datetime_utils import format_duration
from timeclock.container import build_container


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--grace-minutes", type=int, default=None, help="ignore approvals younger than this")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    grace = args.grace_minutes if args.grace_minutes is not None else container.stuck_correction_grace_minutes
    stuck = container.request_service.find_stuck_corrections(grace_minutes=grace)
    for req in stuck:
        print(
            f"correction={req.request_id} user={req.user_id} record={req.attendance_id} "
            f"requested={format_duration(req.requested_logout_time - req.requested_login_time)}"
        )
    print(f"{len(stuck)} stuck correction(s)")
    return 1 if stuck else 0


if __name__ == "__main__":
    sys.exit(main())
