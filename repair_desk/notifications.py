"""
Design (notifications.py)
- Purpose: Detect overdue repairs and keep the user's list of alerts.
- Components:
    evaluate(now, records, existing): pure detector, returns only the new alerts.
    NotificationCenter: persisted alert list with read/remove actions.
- Policy: pending for >= 3 days or in progress for >= 8 days raises one alert per
          (repair, status); completed and supplier_delivered repairs never alert.
- Thread-safety: NotificationCenter takes its lock for every read and write.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from .config import IN_PROGRESS_ALERT_DAYS, PENDING_ALERT_DAYS
from .exceptions import StorageError
from .models import AlertType, NotificationAlert, RepairRecord, RepairStatus
from .storage import LocalStorage, load_alerts, save_alerts
from .utils import days_between, new_id

logger = logging.getLogger(__name__)

_THRESHOLDS = {
    RepairStatus.PENDING: (AlertType.PENDING, PENDING_ALERT_DAYS, "pending"),
    RepairStatus.IN_PROGRESS: (AlertType.IN_PROGRESS, IN_PROGRESS_ALERT_DAYS, "in progress"),
}


def evaluate(
    now: datetime,
    records: Iterable[RepairRecord],
    existing: Iterable[NotificationAlert],
    id_factory: Callable[[], str] = new_id,
) -> List[NotificationAlert]:
    """
    Purpose: Alerts that should be raised now and have not been raised before.
    Inputs: now, current repairs, current alerts (read or unread).
    Outputs: New unread alerts, in repair order. Existing alerts are never returned.
    Side Effects: None.
    """
    raised = {(a.record_id, a.alert_type.value) for a in existing}
    today = now.date()
    alerts: List[NotificationAlert] = []
    for record in records:
        rule = _THRESHOLDS.get(record.status)
        if rule is None:
            continue
        alert_type, threshold, label = rule
        if (record.id, alert_type.value) in raised:
            continue
        age_days = days_between(today, record.created_date)
        if age_days < threshold:
            continue
        alerts.append(
            NotificationAlert(
                id=id_factory(),
                record_id=record.id,
                record_sequence_number=record.sequence_number,
                alert_type=alert_type,
                message=f"Repair #{record.sequence_number} has been {label} for {age_days} days",
                created_at=now,
            )
        )
        raised.add((record.id, alert_type.value))
    return alerts


class NotificationCenter:
    """
    Design (NotificationCenter)
    - State:
        _alerts: list of NotificationAlert, oldest first
        _storage: optional LocalStorage; the list is saved after every change
        _subscribers: callables notified with the new alert list
    """

    def __init__(self, storage: Optional[LocalStorage] = None, alerts: Iterable[NotificationAlert] = ()) -> None:
        self._lock = threading.Lock()
        self._storage = storage
        self._alerts: List[NotificationAlert] = list(alerts)
        self._subscribers: List[Callable[[Sequence[NotificationAlert]], None]] = []

    @classmethod
    def from_storage(cls, storage: LocalStorage) -> "NotificationCenter":
        return cls(storage=storage, alerts=load_alerts(storage))

    def _commit(self) -> List[NotificationAlert]:
        # Caller holds the lock
        snapshot = list(self._alerts)
        if self._storage is not None:
            try:
                save_alerts(self._storage, snapshot)
            except StorageError:
                logger.exception("Could not persist notifications")
        return snapshot

    def _publish(self, snapshot: List[NotificationAlert]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Notification subscriber %r failed", callback)

    def subscribe(self, callback: Callable[[Sequence[NotificationAlert]], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -------- Detection --------

    def scan(self, records: Iterable[RepairRecord], now: datetime) -> List[NotificationAlert]:
        """
        Purpose: Run the detector against the current alerts and append what it raises.
        Outputs: The newly raised alerts (possibly empty).
        """
        with self._lock:
            new_alerts = evaluate(now, records, self._alerts)
            if not new_alerts:
                return []
            self._alerts.extend(new_alerts)
            snapshot = self._commit()
        self._publish(snapshot)
        return new_alerts

    # -------- User actions --------

    def _update(self, change: Callable[[List[NotificationAlert]], List[NotificationAlert]]) -> None:
        with self._lock:
            self._alerts = change(self._alerts)
            snapshot = self._commit()
        self._publish(snapshot)

    def mark_as_read(self, alert_id: str) -> None:
        self._update(lambda alerts: [replace(a, read=True) if a.id == alert_id else a for a in alerts])

    def mark_all_as_read(self) -> None:
        self._update(lambda alerts: [replace(a, read=True) for a in alerts])

    def remove(self, alert_id: str) -> None:
        self._update(lambda alerts: [a for a in alerts if a.id != alert_id])

    def clear(self) -> None:
        self._update(lambda alerts: [])

    # -------- Reads --------

    def alerts(self) -> List[NotificationAlert]:
        with self._lock:
            return list(self._alerts)

    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for a in self._alerts if not a.read)
