"""
Design (utils.py)
- Purpose: Reusable helpers: clock abstraction, repair numbering, date arithmetic,
           backup filenames, id generation and desktop notifications.
- Inputs: Various helper parameters (counts, dates, messages).
- Outputs: Helper results (strings, ints, datetimes).
- Side effects: send_desktop_notification shows an OS notification (plyer).
- Thread-safety: Stateless; safe to call from any thread.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Protocol

from plyer import notification

from .config import (
    BACKUP_FILENAME_TEMPLATE,
    NOTIFICATION_TIMEOUT_SEC,
    NOTIFICATION_TITLE,
    REPAIR_NUMBER_DIGITS,
    REPAIR_NUMBER_PREFIX,
)

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in the local timezone (naive, like the stored timestamps)."""

    def now(self) -> datetime:
        return datetime.now()


def format_repair_number(current_count: int) -> str:
    """
    Purpose: Next display number for a collection holding current_count repairs.
    Inputs: current_count (int >= 0)
    Outputs: "REP" + zero-padded (current_count + 1), e.g. 0 -> "REP001".
    Side Effects: None.

    Count-based: deleting earlier repairs makes the next number repeat one
    already handed out.
    """
    return f"{REPAIR_NUMBER_PREFIX}{str(current_count + 1).zfill(REPAIR_NUMBER_DIGITS)}"


def days_between(later: date, earlier: date) -> int:
    """Whole days from earlier to later (negative if earlier is in the future)."""
    if isinstance(later, datetime):
        later = later.date()
    if isinstance(earlier, datetime):
        earlier = earlier.date()
    return (later - earlier).days


def backup_filename(day: date) -> str:
    """repair-system-backup-<YYYY-MM-DD>.json, shared by snapshots and exports."""
    return BACKUP_FILENAME_TEMPLATE.format(date=day.isoformat())


def new_id() -> str:
    return str(uuid.uuid4())


def send_desktop_notification(message: str, title: str = NOTIFICATION_TITLE) -> None:
    """
    Purpose: Show an OS notification.
    Inputs: message, optional title.
    Side Effects: Calls plyer; failures (no backend on this platform) are logged, not raised.
    Thread-safety: Safe.
    """
    try:
        notification.notify(title=title, message=message, timeout=NOTIFICATION_TIMEOUT_SEC)
    except Exception:
        logger.warning("Desktop notification unavailable: %s", message, exc_info=True)
