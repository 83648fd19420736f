"""
Design (reducer.py)
- Purpose: The repair state transition as a pure function: reduce(state, action) -> new state.
- Inputs: Current state (tuple of RepairRecord, display order) and one action.
- Outputs: New state tuple. Unknown ids leave the state unchanged.
- Side effects: None. Id and date generation happen in RepairStore before dispatch,
                persistence and backups after commit.
- Thread-safety: Pure; callers serialize dispatch.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Any, Tuple, Union

from .models import IMMUTABLE_FIELDS, Client, RepairForm, RepairRecord, RepairStatus
from .utils import format_repair_number

State = Tuple[RepairRecord, ...]

_RECORD_FIELDS = frozenset(f.name for f in fields(RepairRecord))
_CLIENT_FIELDS = frozenset(f.name for f in fields(Client))


@dataclass(frozen=True)
class AddRepair:
    form: RepairForm
    record_id: str
    created_date: date


@dataclass(frozen=True)
class UpdateRepair:
    record_id: str
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class DeleteRepair:
    record_id: str


@dataclass(frozen=True)
class MarkDelivered:
    record_id: str
    delivery_date: date


@dataclass(frozen=True)
class MarkSupplierDelivered:
    record_id: str


@dataclass(frozen=True)
class SetRepairs:
    records: Tuple[RepairRecord, ...]


Action = Union[AddRepair, UpdateRepair, DeleteRepair, MarkDelivered, MarkSupplierDelivered, SetRepairs]


def validate_changes(changes: Mapping[str, Any]) -> dict:
    """
    Purpose: Check a partial update before it reaches the reducer.
    Outputs: Normalized copy (status coerced to RepairStatus).
    Raises: ValueError for immutable or unknown fields, an unknown status,
            or unknown client fields.
    """
    frozen = IMMUTABLE_FIELDS.intersection(changes)
    if frozen:
        raise ValueError(f"Cannot change {', '.join(sorted(frozen))}")
    unknown = set(changes) - _RECORD_FIELDS
    if unknown:
        raise ValueError(f"Unknown repair fields: {', '.join(sorted(unknown))}")
    normalized = dict(changes)
    if "status" in normalized:
        normalized["status"] = RepairStatus(normalized["status"])
    client = normalized.get("client")
    if client is not None and not isinstance(client, Client):
        if not isinstance(client, Mapping):
            raise ValueError("client must be a Client or a mapping of client fields")
        unknown = set(client) - _CLIENT_FIELDS
        if unknown:
            raise ValueError(f"Unknown client fields: {', '.join(sorted(unknown))}")
    return normalized


def _merge(record: RepairRecord, changes: Mapping[str, Any]) -> RepairRecord:
    if not changes:
        return record
    changes = dict(changes)
    client = changes.get("client")
    if client is not None and not isinstance(client, Client):
        changes["client"] = replace(record.client, **client)
    return replace(record, **changes)


def _apply(state: State, record_id: str, changes: Mapping[str, Any]) -> State:
    return tuple(_merge(r, changes) if r.id == record_id else r for r in state)


def reduce(state: State, action: Action) -> State:
    if isinstance(action, AddRepair):
        form = action.form
        record = RepairRecord(
            id=action.record_id,
            sequence_number=format_repair_number(len(state)),
            created_date=action.created_date,
            status=RepairStatus.PENDING,
            **{f.name: getattr(form, f.name) for f in fields(RepairForm)},
        )
        return state + (record,)
    if isinstance(action, UpdateRepair):
        return _apply(state, action.record_id, action.changes)
    if isinstance(action, DeleteRepair):
        return tuple(r for r in state if r.id != action.record_id)
    if isinstance(action, MarkDelivered):
        return _apply(
            state,
            action.record_id,
            {"status": RepairStatus.COMPLETED, "delivery_date": action.delivery_date},
        )
    if isinstance(action, MarkSupplierDelivered):
        return _apply(state, action.record_id, {"status": RepairStatus.SUPPLIER_DELIVERED})
    if isinstance(action, SetRepairs):
        return tuple(action.records)
    raise TypeError(f"Unknown action: {action!r}")
