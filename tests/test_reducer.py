"""Tests for the pure repair reducer."""

from __future__ import annotations

from datetime import date

import pytest

from repair_desk.models import Client, RepairForm, RepairStatus
from repair_desk.reducer import (
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

TODAY = date(2026, 10, 19)


def _add(state: State, record_id: str, **form: object) -> State:
    return reduce(state, AddRepair(form=RepairForm(**form), record_id=record_id, created_date=TODAY))


def test_add_repair_appends_pending_record_with_next_number() -> None:
    state = _add((), "a", article="Laptop", client=Client(name="Jane"))
    state = _add(state, "b", article="Phone", warranty=True)

    assert [r.id for r in state] == ["a", "b"]
    assert [r.sequence_number for r in state] == ["REP001", "REP002"]
    first, second = state
    assert first.status is RepairStatus.PENDING
    assert first.created_date == TODAY
    assert first.client.name == "Jane"
    assert first.delivery_date is None
    assert second.warranty is True


def test_reduce_leaves_previous_state_untouched() -> None:
    state = _add((), "a")

    after = reduce(state, DeleteRepair("a"))

    assert after == ()
    assert len(state) == 1


def test_update_without_changes_returns_the_same_record() -> None:
    state = _add((), "a", brand="Dell")

    new_state = reduce(state, UpdateRepair("a", {}))

    assert new_state[0] is state[0]


def test_update_merges_client_mapping_into_existing_client() -> None:
    state = _add((), "a", client=Client(name="Jane", phone="555"))

    new_state = reduce(state, UpdateRepair("a", {"client": {"phone": "666"}}))

    assert new_state[0].client == Client(name="Jane", phone="666")


@pytest.mark.parametrize(
    "action",
    [
        UpdateRepair("missing", {"brand": "HP"}),
        DeleteRepair("missing"),
        MarkDelivered("missing", TODAY),
        MarkSupplierDelivered("missing"),
    ],
)
def test_unknown_id_leaves_state_unchanged(action: object) -> None:
    state = _add((), "a")

    assert reduce(state, action) == state


@pytest.mark.parametrize("prior", list(RepairStatus))
def test_mark_delivered_completes_from_any_status(prior: RepairStatus) -> None:
    state = reduce(_add((), "a"), UpdateRepair("a", {"status": prior}))

    (record,) = reduce(state, MarkDelivered("a", date(2026, 10, 25)))

    assert record.status is RepairStatus.COMPLETED
    assert record.delivery_date == date(2026, 10, 25)


def test_mark_supplier_delivered_keeps_delivery_date() -> None:
    state = reduce(_add((), "a"), MarkDelivered("a", TODAY))

    (record,) = reduce(state, MarkSupplierDelivered("a"))

    assert record.status is RepairStatus.SUPPLIER_DELIVERED
    assert record.delivery_date == TODAY


def test_set_repairs_replaces_everything() -> None:
    original = _add((), "a")
    replacement = _add((), "z")

    assert reduce(original, SetRepairs(replacement)) == replacement


def test_validate_changes_coerces_status_strings() -> None:
    assert validate_changes({"status": "in_progress"}) == {"status": RepairStatus.IN_PROGRESS}


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"id": "other"}, "Cannot change id"),
        ({"sequence_number": "REP999"}, "Cannot change sequence_number"),
        ({"created_date": TODAY}, "Cannot change created_date"),
        ({"colour": "red"}, "Unknown repair fields: colour"),
        ({"client": {"nickname": "JJ"}}, "Unknown client fields: nickname"),
        ({"client": "Jane"}, "client must be"),
    ],
)
def test_validate_changes_rejects_invalid_fields(changes: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        validate_changes(changes)


def test_validate_changes_rejects_unknown_status() -> None:
    with pytest.raises(ValueError):
        validate_changes({"status": "lost"})
