"""
Background notification worker.

Design:
- Runs in its own thread so the caller stays responsive.
- Every cycle (immediately on start, then every NOTIFICATION_INTERVAL_SEC):
    1) Snapshot the repairs from the store.
    2) Scan them against the current alerts (NotificationCenter.scan).
    3) Forward each newly raised alert to notify (desktop notification by default).
- Methods:
    start(): begin the daemon thread
    stop(): signal the thread to stop; the current cycle finishes first
    run_once(): one synchronous cycle, returns the new alerts
- Thread-safety: RepairStore and NotificationCenter do their own locking.
"""

import logging
import threading
from typing import Callable, List, Optional

from .config import NOTIFICATION_INTERVAL_SEC
from .models import NotificationAlert
from .notifications import NotificationCenter
from .repository import RepairStore
from .utils import Clock, SystemClock, send_desktop_notification

logger = logging.getLogger(__name__)


def notify_desktop(alert: NotificationAlert) -> None:
    send_desktop_notification(alert.message)


class NotificationMonitor:
    def __init__(
        self,
        store: RepairStore,
        center: NotificationCenter,
        notify: Optional[Callable[[NotificationAlert], None]] = notify_desktop,
        interval: float = NOTIFICATION_INTERVAL_SEC,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.center = center
        self.notify = notify
        self.interval = interval
        self.clock = clock or SystemClock()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="notification-monitor", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def run_once(self) -> List[NotificationAlert]:
        new_alerts = self.center.scan(self.store.records(), self.clock.now())
        if new_alerts:
            logger.info("Raised %d repair notification(s)", len(new_alerts))
        if self.notify is not None:
            for alert in new_alerts:
                try:
                    self.notify(alert)
                except Exception:
                    logger.exception("Could not deliver notification %s", alert.id)
        return new_alerts

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Notification scan failed")
            self._stop.wait(self.interval)
