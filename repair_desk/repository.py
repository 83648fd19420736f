"""
Design (repository.py)
- Purpose: Encapsulate the repair list behind a tiny API (and a lock), so the CLI and
           the notification monitor don't touch shared state directly.
- Inputs: RepairForm for creation, field changes, ids.
- Outputs: Snapshots (immutable tuples) of the current repairs.
- Side effects: Every mutation goes through reduce(); after commit the on_commit hook runs
                (persistence + scheduled backup), then subscribers are notified.
- Thread-safety: Dispatch and reads take the internal lock; snapshots are immutable.
"""

import logging
import threading
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

from .models import RepairForm, RepairRecord
from .reducer import (
    Action,
    AddRepair,
    DeleteRepair,
    MarkDelivered,
    MarkSupplierDelivered,
    SetRepairs,
    State,
    UpdateRepair,
    reduce,
    validate_changes,
)
from .utils import Clock, SystemClock, format_repair_number, new_id

logger = logging.getLogger(__name__)

Subscriber = Callable[[State], None]


class RepairStore:
    """
    Design (RepairStore)
    - State:
        _state: tuple of RepairRecord in insertion (display) order
        _on_commit: callable run with the new state after every dispatch
        _subscribers: callables notified with the new state
        _lock: threading.Lock protecting dispatch and reads
    """

    def __init__(
        self,
        records: Iterable[RepairRecord] = (),
        on_commit: Optional[Callable[[Sequence[RepairRecord]], None]] = None,
        clock: Optional[Clock] = None,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._lock = threading.Lock()
        self._state: State = tuple(records)
        self._on_commit = on_commit
        self._subscribers: List[Subscriber] = []
        self._clock = clock or SystemClock()
        self._id_factory = id_factory

    # -------- Dispatch --------

    def dispatch(self, action: Action) -> State:
        """
        Purpose: Apply one action and run the commit side effects.
        Outputs: The committed state.
        Side effects: on_commit(state) under the lock, then subscribers outside it.
        """
        with self._lock:
            self._state = reduce(self._state, action)
            state = self._state
            if self._on_commit is not None:
                self._on_commit(state)
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Repair subscriber %r failed", callback)
        return state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback(state); returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -------- CRUD for repairs --------

    def create(self, form: RepairForm) -> RepairRecord:
        """
        Purpose: Register a new repair (status pending, created today, next REP number).
        Inputs: form (RepairForm)
        Outputs: The created RepairRecord (last in display order).
        """
        record_id = self._id_factory()
        self.dispatch(AddRepair(form=form, record_id=record_id, created_date=self._clock.now().date()))
        return self.get_by_id(record_id)

    def update(self, record_id: str, **changes) -> Optional[RepairRecord]:
        """
        Purpose: Merge changes into a repair; unknown ids are a silent no-op.
        Inputs: record_id, field=value pairs (client may be a Client or a dict of client fields)
        Outputs: The updated record, or None if record_id is not in the store.
        Raises: ValueError for id/sequence_number/created_date, unknown fields or a bad status.
        """
        normalized = validate_changes(changes)
        self.dispatch(UpdateRepair(record_id=record_id, changes=normalized))
        return self.get_by_id(record_id)

    def delete(self, record_id: str) -> bool:
        """
        Purpose: Remove a repair; no-op if absent.
        Outputs: True if a repair was removed.
        """
        before = len(self.records())
        state = self.dispatch(DeleteRepair(record_id=record_id))
        return len(state) < before

    def replace_all(self, records: Iterable[RepairRecord]) -> None:
        """Replace the whole list (load from storage, import, restore)."""
        self.dispatch(SetRepairs(records=tuple(records)))

    # -------- Status handling --------

    def mark_delivered(self, record_id: str, delivery_date: date) -> Optional[RepairRecord]:
        """Status -> completed and delivery_date set, whatever the previous status."""
        self.dispatch(MarkDelivered(record_id=record_id, delivery_date=delivery_date))
        return self.get_by_id(record_id)

    def mark_supplier_delivered(self, record_id: str) -> Optional[RepairRecord]:
        """Status -> supplier_delivered; delivery_date is left as it was."""
        self.dispatch(MarkSupplierDelivered(record_id=record_id))
        return self.get_by_id(record_id)

    # -------- Snapshots for safe reading --------

    def records(self) -> State:
        with self._lock:
            return self._state

    def get_by_id(self, record_id: str) -> Optional[RepairRecord]:
        with self._lock:
            return next((r for r in self._state if r.id == record_id), None)

    def find(self, reference: str) -> Optional[RepairRecord]:
        """Lookup by id or, case-insensitively, by repair number ("REP001")."""
        record = self.get_by_id(reference)
        if record is not None:
            return record
        wanted = reference.strip().upper()
        with self._lock:
            return next((r for r in self._state if r.sequence_number.upper() == wanted), None)

    def next_sequence_number(self) -> str:
        with self._lock:
            return format_repair_number(len(self._state))
