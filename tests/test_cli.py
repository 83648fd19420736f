"""CLI tests for the repair-desk Typer commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repair_desk.cli import app

runner = CliRunner()


@pytest.fixture
def invoke(data_dir: Path):
    def run(*args: str):
        return runner.invoke(app, ["--data-dir", str(data_dir), *args])

    return run


def _add_laptop(invoke):
    return invoke(
        "add",
        "--article", "Laptop",
        "--brand", "Dell",
        "--problem", "Does not turn on",
        "--client-name", "Jane",
        "--client-surname", "Smith",
        "--client-phone", "555-123-4567",
        "--warranty",
    )


def test_add_list_and_show(invoke) -> None:
    added = _add_laptop(invoke)
    listed = invoke("list")
    shown = invoke("show", "REP001")

    assert added.exit_code == 0, added.output
    assert added.output.startswith("Created REP001 (")
    assert "REP001" in listed.output and "Jane Smith" in listed.output
    assert shown.exit_code == 0
    assert "Does not turn on" in shown.output
    assert "Warranty:         yes" in shown.output


def test_list_filters(invoke) -> None:
    _add_laptop(invoke)
    invoke("add", "--article", "Phone", "--client-name", "Robert")

    by_device = invoke("list", "--search", "phone", "--field", "device")
    in_progress = invoke("list", "--status", "in_progress")

    assert "REP002" in by_device.output and "REP001" not in by_device.output
    assert in_progress.output.strip() == "No repairs found."


def test_status_transitions(invoke) -> None:
    _add_laptop(invoke)

    assert invoke("status", "REP001", "in_progress").exit_code == 0
    assert "Status:           in_progress" in invoke("show", "REP001").output

    delivered = invoke("deliver", "REP001", "--date", "2026-10-25")
    assert delivered.output.strip() == "REP001 delivered on 2026-10-25"
    shown = invoke("show", "REP001").output
    assert "Status:           completed" in shown
    assert "Delivered:        2026-10-25" in shown


def test_supplier_delivery_keeps_delivery_date_empty(invoke) -> None:
    _add_laptop(invoke)

    invoke("supplier", "REP001")
    shown = invoke("show", "REP001").output

    assert "Status:           supplier_delivered" in shown
    assert "Delivered:        -" in shown


def test_edit_fields(invoke) -> None:
    _add_laptop(invoke)

    result = invoke("edit", "REP001", "brand=HP", "client.phone=555-000", "request_budget=yes")
    shown = invoke("show", "REP001").output

    assert result.exit_code == 0
    assert "Brand:            HP" in shown
    assert "Phone:            555-000" in shown
    assert "Budget requested: yes" in shown


@pytest.mark.parametrize("assignment", ["sequence_number=REP999", "colour=red", "warranty=maybe", "brand"])
def test_edit_rejects_invalid_assignments(invoke, assignment: str) -> None:
    _add_laptop(invoke)

    result = invoke("edit", "REP001", assignment)

    assert result.exit_code == 1


def test_delete_and_missing_repair(invoke) -> None:
    _add_laptop(invoke)

    deleted = invoke("delete", "REP001", "--yes")
    missing = invoke("show", "REP001")

    assert deleted.output.strip() == "Deleted REP001"
    assert missing.exit_code == 1
    assert "Repair not found: REP001" in missing.output


def test_ticket_output(invoke, tmp_path: Path) -> None:
    _add_laptop(invoke)
    target = tmp_path / "ticket.txt"

    printed = invoke("ticket", "REP001")
    written = invoke("ticket", "REP001", "--output", str(target))

    assert "Repair #: REP001" in printed.output
    assert written.exit_code == 0
    assert "Name: Jane Smith" in target.read_text(encoding="utf-8")


def test_export_and_import(invoke, tmp_path: Path) -> None:
    _add_laptop(invoke)
    exports = tmp_path / "exports"

    exported = invoke("export", "--dir", str(exports))
    (path,) = exports.glob("repair-system-backup-*.json")
    other = runner.invoke(app, ["--data-dir", str(tmp_path / "other"), "import", str(path)])
    listed = runner.invoke(app, ["--data-dir", str(tmp_path / "other"), "list"])

    assert exported.exit_code == 0
    assert other.output.strip() == "Imported 1 repairs"
    assert "REP001" in listed.output


def test_import_failure_is_reported(invoke, tmp_path: Path) -> None:
    _add_laptop(invoke)
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"not": "a list"}), encoding="utf-8")

    result = invoke("import", str(bad))

    assert result.exit_code == 1
    assert "Import failed" in result.output
    assert "REP001" in invoke("list").output


def test_backup_configuration(invoke) -> None:
    configured = invoke("backups", "configure", "--enable", "--frequency", "daily", "--max-backups", "2")
    _add_laptop(invoke)
    listed = invoke("backups", "list")

    assert configured.exit_code == 0
    assert "Automatic backups: on, daily, keep 2" in listed.output
    assert "repair-system-backup-" in listed.output


def test_alerts_for_fresh_repairs(invoke) -> None:
    _add_laptop(invoke)

    scanned = invoke("alerts", "scan")
    listed = invoke("alerts", "list")

    assert "0 new notification(s)" in scanned.output
    assert listed.output.strip() == "No notifications."


def test_printer_settings(invoke) -> None:
    _add_laptop(invoke)

    result = invoke("printer", "set", "show_logo=no", "custom_footer=Open 9-18")
    ticket = invoke("ticket", "REP001").output

    assert result.exit_code == 0
    assert "Sonimag" not in ticket
    assert "Open 9-18" in ticket
    assert invoke("printer", "set", "paper_colour=red").exit_code == 1


@pytest.mark.parametrize("assignment", ["__class__=x", "__dict__=x", "show_logo"])
def test_printer_set_rejects_non_settings(invoke, assignment: str) -> None:
    result = invoke("printer", "set", assignment)

    assert result.exit_code == 1
    assert "Unknown printer setting" in result.output


def test_stats_lists_counts_and_recent_repairs(invoke) -> None:
    _add_laptop(invoke)
    invoke("add", "--article", "Phone", "--client-name", "Robert")
    invoke("status", "REP002", "in_progress")

    output = invoke("stats").output

    assert "total:              2" in output
    assert "in_progress:        1" in output
    assert "Recent repairs:" in output
    assert output.index("REP001") < output.index("REP002")
