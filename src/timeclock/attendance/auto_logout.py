"""End-of-day auto clock-out.

A background thread polls the clock and force clocks out every session that
is still open past its day boundary (``AUTO_LOGOUT_TIME`` local time, 23:59 by
default). The clock-out itself is ``AttendanceService.clock_out``, so an open
break is closed the same way as for a manual clock-out.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, time, timedelta, tzinfo
from typing import Callable, Optional

from ..common.datetime_utils import from_ms, now_ms, to_ms
from ..core.constants import DEFAULT_AUTO_LOGOUT_POLL_SECONDS
from ..core.exceptions import NoActiveSession
from .model import ActiveSession, ClockOutResult
from .service import AttendanceService

logger = logging.getLogger(__name__)


class AutoLogoutSweeper:
    def __init__(
        self,
        attendance: AttendanceService,
        *,
        at: time = time(23, 59),
        tz: tzinfo | None = None,
        poll_seconds: float = DEFAULT_AUTO_LOGOUT_POLL_SECONDS,
        clock: Callable[[], int] = now_ms,
    ):
        self._attendance = attendance
        self._at = at
        self._tz = tz
        self._poll_seconds = float(poll_seconds)
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def boundary_for(self, session: ActiveSession) -> int:
        """Instant at which the session is force-closed.

        The boundary of the login day, or of the next day when the session
        was opened after that day's boundary.
        """
        login = from_ms(session.login_time, self._tz)
        boundary = datetime.combine(login.date(), self._at, tzinfo=login.tzinfo)
        if login >= boundary:
            boundary = datetime.combine(login.date() + timedelta(days=1), self._at, tzinfo=login.tzinfo)
        return to_ms(boundary)

    def sweep(self, *, now: Optional[int] = None) -> list[ClockOutResult]:
        at = int(now) if now is not None else int(self._clock())
        results: list[ClockOutResult] = []

        for session in self._attendance.list_open_sessions():
            if at < self.boundary_for(session):
                continue
            try:
                result = self._attendance.clock_out(session.user_id, now=at)
            except NoActiveSession:
                # clocked out by the user between listing and closing
                logger.debug("Session for user %s already closed", session.user_id)
                continue
            except Exception:
                logger.exception("Auto clock-out failed for user %s", session.user_id)
                continue

            logger.info(
                "Auto clock-out for user %s at end of day%s",
                session.user_id,
                " (break auto-closed)" if result.break_auto_closed else "",
            )
            results.append(result)

        return results

    def _run(self) -> None:
        logger.info("Auto clock-out sweeper started (at %s, every %ss)", self._at.strftime("%H:%M"), self._poll_seconds)
        while not self._stop.wait(self._poll_seconds):
            try:
                self.sweep()
            except Exception:
                logger.exception("Auto clock-out sweep failed")
        logger.info("Auto clock-out sweeper stopped")

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="auto-logout-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
