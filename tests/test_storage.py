"""Tests for the key-value store and the persisted JSON shapes."""

from __future__ import annotations

import json
from datetime import date, datetime

import pytest

from repair_desk.exceptions import InvalidImportError
from repair_desk.models import AlertType, BackupFrequency, BackupSettings, PrinterSettings, RepairStatus
from repair_desk.storage import (
    LocalStorage,
    export_records,
    get_data_dir,
    load_alerts,
    load_backup_settings,
    load_printer_settings,
    load_records,
    parse_records,
    record_from_dict,
    record_to_dict,
    save_backup_settings,
    save_printer_settings,
    save_records,
)

# A repair exactly as the browser version of the application stored it
LEGACY_REPAIR = {
    "id": "1",
    "date": "2025-06-01",
    "repairNumber": "REP001",
    "receivedBy": "John Doe",
    "warranty": True,
    "code": "LT001",
    "article": "Laptop",
    "brand": "Dell",
    "model": "XPS 15",
    "serialImei": "DL1234567890",
    "provider": "Dell Inc",
    "requestBudget": False,
    "content": "Laptop with charger",
    "problem": "Does not turn on",
    "deliveryDate": None,
    "client": {
        "name": "Jane",
        "surname": "Smith",
        "phone": "555-123-4567",
        "ticketNumber": "TK001",
        "email": "jane@example.com",
        "address": "123 Main St, City",
    },
    "status": "in_progress",
}


def test_legacy_repair_document_loads_and_dumps_unchanged() -> None:
    record = record_from_dict(LEGACY_REPAIR)

    assert record.sequence_number == "REP001"
    assert record.created_date == date(2025, 6, 1)
    assert record.status is RepairStatus.IN_PROGRESS
    assert record.serial_imei == "DL1234567890"
    assert record.client.ticket_number == "TK001"
    assert record_to_dict(record) == LEGACY_REPAIR


def test_delivery_date_accepts_full_timestamps() -> None:
    record = record_from_dict({**LEGACY_REPAIR, "deliveryDate": "2025-06-10T14:00:00.000Z"})

    assert record.delivery_date == date(2025, 6, 10)


@pytest.mark.parametrize(
    "payload, message",
    [
        ("{not json", "Not a JSON document"),
        (json.dumps({"repairs": []}), "Expected a JSON array"),
        (json.dumps([LEGACY_REPAIR, {"id": "2"}]), "Repair #2 is invalid"),
        (json.dumps([{**LEGACY_REPAIR, "status": "lost"}]), "Repair #1 is invalid"),
        (json.dumps([{**LEGACY_REPAIR, "date": "June 1st"}]), "Repair #1 is invalid"),
        (json.dumps([{**LEGACY_REPAIR, "date": None}]), "Repair #1 is invalid"),
        (json.dumps([{**LEGACY_REPAIR, "date": ""}]), "Repair #1 is invalid"),
        (json.dumps(["REP001"]), "Repair #1 is invalid"),
    ],
)
def test_parse_records_rejects_malformed_payloads(payload: str, message: str) -> None:
    with pytest.raises(InvalidImportError, match=message):
        parse_records(payload)


def test_load_records_skips_malformed_entries(storage: LocalStorage) -> None:
    storage.set_json("repairs", [LEGACY_REPAIR, {"id": "broken"}, {**LEGACY_REPAIR, "id": "2", "date": None}])

    records = load_records(storage)

    assert [r.id for r in records] == ["1"]


def test_load_records_tolerates_missing_and_corrupt_documents(storage: LocalStorage) -> None:
    assert load_records(storage) == []

    storage.set_item("repairs", "{not json")

    assert load_records(storage) == []


def test_save_records_overwrites_the_whole_list(storage: LocalStorage) -> None:
    record = record_from_dict(LEGACY_REPAIR)
    save_records(storage, [record, record])
    save_records(storage, [record])

    assert load_records(storage) == [record]


def test_storage_keys_and_removal(storage: LocalStorage) -> None:
    storage.set_item("printerSettings", "{}")
    storage.set_item("repairs", "[]")

    assert storage.keys() == ["printerSettings", "repairs"]

    storage.remove_item("repairs")
    storage.remove_item("repairs")

    assert storage.keys() == ["printerSettings"]
    assert storage.get_item("repairs") is None


@pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
def test_storage_rejects_path_like_keys(storage: LocalStorage, key: str) -> None:
    with pytest.raises(ValueError):
        storage.set_item(key, "x")


def test_data_dir_can_be_overridden(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("REPAIR_DESK_DATA_DIR", str(tmp_path / "elsewhere"))

    assert get_data_dir() == tmp_path / "elsewhere"


def test_backup_settings_defaults_and_round_trip(storage: LocalStorage) -> None:
    assert load_backup_settings(storage) == BackupSettings(
        enabled=False, frequency=BackupFrequency.WEEKLY, last_backup_at=None, max_backups=5
    )

    settings = BackupSettings(
        enabled=True, frequency=BackupFrequency.DAILY, last_backup_at=datetime(2026, 10, 19, 9, 30), max_backups=2
    )
    save_backup_settings(storage, settings)

    assert load_backup_settings(storage) == settings
    assert storage.get_json("backup-settings")["lastBackup"] == "2026-10-19T09:30:00"


def test_invalid_backup_settings_fall_back_to_defaults(storage: LocalStorage) -> None:
    storage.set_json("backup-settings", {"enabled": True, "frequency": "hourly", "maxBackups": 3})
    assert load_backup_settings(storage) == BackupSettings()

    storage.set_json("backup-settings", {"enabled": True, "maxBackups": 0})
    assert load_backup_settings(storage) == BackupSettings()


def test_printer_settings_use_camel_case_keys(storage: LocalStorage) -> None:
    settings = PrinterSettings(font_size=10, show_logo=False, custom_footer="Open 9-18")

    save_printer_settings(storage, settings)

    stored = storage.get_json("printerSettings")
    assert stored["fontSize"] == 10
    assert stored["showLogo"] is False
    assert load_printer_settings(storage) == settings


def test_alerts_written_by_the_browser_version_load(storage: LocalStorage) -> None:
    storage.set_json(
        "notification-storage",
        [
            {
                "id": "n1",
                "repairId": "1",
                "repairNumber": "REP001",
                "message": "Repair #REP001 has been pending for 3 days",
                "type": "pending",
                "createdAt": "2026-10-19T09:30:00.000Z",
                "read": False,
            },
            {"id": "n2", "type": "overdue"},
        ],
    )

    (alert,) = load_alerts(storage)

    assert alert.alert_type is AlertType.PENDING
    assert alert.created_at == datetime(2026, 10, 19, 9, 30)


def test_export_writes_dated_file(tmp_path) -> None:
    record = record_from_dict(LEGACY_REPAIR)

    path = export_records([record], tmp_path / "exports", date(2026, 10, 19))

    assert path.name == "repair-system-backup-2026-10-19.json"
    assert parse_records(path.read_text(encoding="utf-8")) == [record]
