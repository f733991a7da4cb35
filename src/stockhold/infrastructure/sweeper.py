"""Background expiry sweeper.

Periodically returns lapsed holds to the pool. A failing cycle is
logged and the loop carries on; the next cycle retries whatever was
left behind.
"""

from __future__ import annotations

import logging
import threading

from stockhold.application.expire_reservations import ExpireReservationsHandler

logger = logging.getLogger(__name__)


class ExpirySweeper:

    def __init__(self, handler: ExpireReservationsHandler, interval_seconds: float = 60) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._handler = handler
        self._interval = interval_seconds

    def run_once(self) -> int:
        """One sweep cycle. Returns how many reservations were expired."""
        try:
            expired = self._handler.handle()
        except Exception:
            logger.exception("Expiry sweep failed")
            return 0
        if expired:
            logger.info("Sweep expired %d reservation(s)", expired)
        return expired

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop_event = stop_event or threading.Event()
        logger.info("Expiry sweeper started (every %ss)", self._interval)
        while not stop_event.is_set():
            self.run_once()
            stop_event.wait(self._interval)
        logger.info("Expiry sweeper stopped")

    def start(self) -> tuple[threading.Thread, threading.Event]:
        """Run the loop on a daemon thread; set the returned event to stop it."""
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self.run_forever, args=(stop_event,), name="expiry-sweeper", daemon=True
        )
        thread.start()
        return thread, stop_event
