"""
Design (queries.py)
- Purpose: Read-only helpers over a repair snapshot: search, filters, sorting, dashboard counts.
- Inputs: Iterable of RepairRecord plus criteria.
- Outputs: New lists / dicts; inputs are never modified.
- Side effects: None.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional

from .config import RECENT_REPAIRS_LIMIT
from .models import RepairRecord, RepairStatus

SEARCH_FIELDS = ("all", "repair_number", "client", "device")
SORT_KEYS = ("date", "client", "repair_number", "status")
WARRANTY_FILTERS = ("all", "warranty", "no-warranty")


def _matches_client(record: RepairRecord, term: str) -> bool:
    client = record.client
    # Phone is matched as typed (digits and dashes), the rest case-insensitively
    return (
        term in f"{client.name} {client.surname}".lower()
        or term in client.phone
        or term in client.email.lower()
    )


def _matches_device(record: RepairRecord, term: str) -> bool:
    return any(term in value.lower() for value in (record.article, record.brand, record.model, record.serial_imei))


def matches(record: RepairRecord, term: str, field: str = "all") -> bool:
    if field not in SEARCH_FIELDS:
        raise ValueError(f"Unknown search field: {field}")
    term = term.lower()
    if not term:
        return True
    if field == "repair_number":
        return term in record.sequence_number.lower()
    if field == "client":
        return _matches_client(record, term)
    if field == "device":
        return _matches_device(record, term)
    return term in record.sequence_number.lower() or _matches_client(record, term) or _matches_device(record, term)


def filter_repairs(
    records: Iterable[RepairRecord],
    search: str = "",
    field: str = "all",
    status: Optional[RepairStatus] = None,
    warranty: str = "all",
) -> List[RepairRecord]:
    if warranty not in WARRANTY_FILTERS:
        raise ValueError(f"Unknown warranty filter: {warranty}")
    result = []
    for record in records:
        if not matches(record, search, field):
            continue
        if status is not None and record.status is not RepairStatus(status):
            continue
        if warranty == "warranty" and not record.warranty:
            continue
        if warranty == "no-warranty" and record.warranty:
            continue
        result.append(record)
    return result


def sort_repairs(records: Iterable[RepairRecord], key: str = "date", descending: bool = True) -> List[RepairRecord]:
    if key == "date":
        sort_key = lambda r: r.created_date
    elif key == "client":
        sort_key = lambda r: f"{r.client.name} {r.client.surname}".lower()
    elif key == "repair_number":
        sort_key = lambda r: r.sequence_number
    elif key == "status":
        sort_key = lambda r: r.status.value
    else:
        raise ValueError(f"Unknown sort key: {key}")
    return sorted(records, key=sort_key, reverse=descending)


def status_counts(records: Iterable[RepairRecord]) -> Dict[str, int]:
    """Dashboard figures: total, one entry per status, and repairs under warranty."""
    records = list(records)
    counts = Counter(r.status for r in records)
    stats = {"total": len(records)}
    for status in RepairStatus:
        stats[status.value] = counts.get(status, 0)
    stats["warranty"] = sum(1 for r in records if r.warranty)
    return stats


def recent_repairs(records: Iterable[RepairRecord], limit: int = RECENT_REPAIRS_LIMIT) -> List[RepairRecord]:
    return list(records)[:limit]
