"""
Design (cli.py)
- Purpose: Command-line front end over a Workspace (repairs, alerts, backups, receipts).
- Inputs: Command-line arguments; --data-dir / $REPAIR_DESK_DATA_DIR selects the data directory.
- Outputs: Plain text on stdout; errors on stderr with exit code 1.
- Side effects: Mutations persist through the workspace (and may trigger a scheduled backup).
"""

import logging
import time
from dataclasses import fields, replace
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import typer

from .config import DATA_DIR_ENV, NOTIFICATION_INTERVAL_SEC
from .exceptions import RepairDeskError
from .models import BackupFrequency, Client, PrinterSettings, RepairForm, RepairRecord, RepairStatus
from .queries import filter_repairs, recent_repairs, sort_repairs, status_counts
from .ticket import render_ticket
from .workspace import Workspace, open_workspace

logger = logging.getLogger(__name__)

app = typer.Typer(help="Device repair tickets: records, reminders and backups.", no_args_is_help=True)
alerts_app = typer.Typer(help="Overdue-repair notifications.", no_args_is_help=True)
backups_app = typer.Typer(help="Scheduled snapshots of the repair list.", no_args_is_help=True)
printer_app = typer.Typer(help="Receipt preferences.", no_args_is_help=True)
app.add_typer(alerts_app, name="alerts")
app.add_typer(backups_app, name="backups")
app.add_typer(printer_app, name="printer")

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}
_BOOL_FIELDS = {"warranty", "request_budget"}


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", envvar=DATA_DIR_ENV, help="Data directory."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level."),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = open_workspace(data_dir)


# -------- Helpers --------

def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _workspace(ctx: typer.Context) -> Workspace:
    return ctx.obj


def _resolve(ws: Workspace, reference: str) -> RepairRecord:
    record = ws.store.find(reference)
    if record is None:
        _fail(f"Repair not found: {reference}")
    return record


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Not a yes/no value: {raw}")


def _parse_assignments(assignments: List[str]) -> Dict[str, object]:
    """["brand=Dell", "client.phone=555", "warranty=yes"] -> update() keyword arguments."""
    changes: Dict[str, object] = {}
    client: Dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected FIELD=VALUE, got {assignment!r}")
        if key.startswith("client."):
            client[key[len("client."):]] = value
        elif key in _BOOL_FIELDS:
            changes[key] = _parse_bool(value)
        elif key == "delivery_date":
            changes[key] = date.fromisoformat(value) if value else None
        else:
            changes[key] = value
    if client:
        changes["client"] = client
    return changes


def _summary_line(record: RepairRecord) -> str:
    device = " ".join(part for part in (record.article, record.brand, record.model) if part)
    return (
        f"{record.sequence_number:<8}{record.created_date.isoformat():<12}"
        f"{record.status.value:<20}{record.client.full_name:<24}{device}"
    )


def _print_record(record: RepairRecord) -> None:
    client = record.client
    rows = [
        ("Repair #", record.sequence_number),
        ("Id", record.id),
        ("Date", record.created_date.isoformat()),
        ("Status", record.status.value),
        ("Received by", record.received_by),
        ("Warranty", "yes" if record.warranty else "no"),
        ("Budget requested", "yes" if record.request_budget else "no"),
        ("Code", record.code),
        ("Article", record.article),
        ("Brand", record.brand),
        ("Model", record.model),
        ("Serial/IMEI", record.serial_imei),
        ("Provider", record.provider),
        ("Content", record.content),
        ("Problem", record.problem),
        ("Delivered", record.delivery_date.isoformat() if record.delivery_date else "-"),
        ("Client", client.full_name),
        ("Phone", client.phone),
        ("Email", client.email),
        ("Address", client.address),
        ("Client ticket", client.ticket_number),
    ]
    for label, value in rows:
        typer.echo(f"{label + ':':<18}{value}")


# -------- Repairs --------

@app.command("list")
def list_repairs(
    ctx: typer.Context,
    search: str = typer.Option("", "--search", "-s"),
    field: str = typer.Option("all", "--field", help="all, repair_number, client or device."),
    status: Optional[RepairStatus] = typer.Option(None, "--status"),
    warranty: str = typer.Option("all", "--warranty", help="all, warranty or no-warranty."),
    sort: str = typer.Option("date", "--sort", help="date, client, repair_number or status."),
    ascending: bool = typer.Option(False, "--asc", help="Oldest / A-Z first."),
) -> None:
    """List repairs, newest first."""
    ws = _workspace(ctx)
    try:
        records = filter_repairs(ws.store.records(), search=search, field=field, status=status, warranty=warranty)
        records = sort_repairs(records, key=sort, descending=not ascending)
    except ValueError as exc:
        _fail(str(exc))
    if not records:
        typer.echo("No repairs found.")
        return
    for record in records:
        typer.echo(_summary_line(record))


@app.command()
def stats(ctx: typer.Context) -> None:
    """Counts per status and the most recent repairs."""
    records = _workspace(ctx).store.records()
    for label, count in status_counts(records).items():
        typer.echo(f"{label + ':':<20}{count}")
    recent = recent_repairs(records)
    if recent:
        typer.echo("")
        typer.echo("Recent repairs:")
        for record in recent:
            typer.echo(_summary_line(record))


@app.command()
def show(ctx: typer.Context, reference: str = typer.Argument(..., help="Repair id or number.")) -> None:
    _print_record(_resolve(_workspace(ctx), reference))


@app.command()
def add(
    ctx: typer.Context,
    article: str = typer.Option(..., "--article"),
    problem: str = typer.Option("", "--problem"),
    brand: str = typer.Option("", "--brand"),
    model: str = typer.Option("", "--model"),
    serial_imei: str = typer.Option("", "--serial"),
    code: str = typer.Option("", "--code"),
    provider: str = typer.Option("", "--provider"),
    content: str = typer.Option("", "--content"),
    received_by: str = typer.Option("", "--received-by"),
    warranty: bool = typer.Option(False, "--warranty/--no-warranty"),
    request_budget: bool = typer.Option(False, "--budget/--no-budget"),
    client_name: str = typer.Option("", "--client-name"),
    client_surname: str = typer.Option("", "--client-surname"),
    client_phone: str = typer.Option("", "--client-phone"),
    client_email: str = typer.Option("", "--client-email"),
    client_address: str = typer.Option("", "--client-address"),
    client_ticket: str = typer.Option("", "--client-ticket"),
) -> None:
    """Register a new repair."""
    ws = _workspace(ctx)
    form = RepairForm(
        received_by=received_by,
        warranty=warranty,
        code=code,
        article=article,
        brand=brand,
        model=model,
        serial_imei=serial_imei,
        provider=provider,
        request_budget=request_budget,
        content=content,
        problem=problem,
        client=Client(
            name=client_name,
            surname=client_surname,
            phone=client_phone,
            ticket_number=client_ticket,
            email=client_email,
            address=client_address,
        ),
    )
    record = ws.store.create(form)
    typer.echo(f"Created {record.sequence_number} ({record.id})")


@app.command()
def edit(
    ctx: typer.Context,
    reference: str = typer.Argument(...),
    assignments: List[str] = typer.Argument(..., help="FIELD=VALUE pairs, e.g. brand=Dell client.phone=555."),
) -> None:
    """Change fields of a repair."""
    ws = _workspace(ctx)
    record = _resolve(ws, reference)
    try:
        updated = ws.store.update(record.id, **_parse_assignments(assignments))
    except ValueError as exc:
        _fail(str(exc))
    typer.echo(f"Updated {updated.sequence_number}")


@app.command()
def status(ctx: typer.Context, reference: str = typer.Argument(...), new_status: RepairStatus = typer.Argument(...)) -> None:
    """Set any status directly."""
    ws = _workspace(ctx)
    record = _resolve(ws, reference)
    ws.store.update(record.id, status=new_status)
    typer.echo(f"{record.sequence_number} is now {new_status.value}")


@app.command()
def deliver(
    ctx: typer.Context,
    reference: str = typer.Argument(...),
    on: Optional[str] = typer.Option(None, "--date", help="Delivery date (YYYY-MM-DD), default today."),
) -> None:
    """Hand the device back to the client (status completed)."""
    ws = _workspace(ctx)
    record = _resolve(ws, reference)
    try:
        delivery_date = date.fromisoformat(on) if on else ws.clock.now().date()
    except ValueError as exc:
        _fail(str(exc))
    ws.store.mark_delivered(record.id, delivery_date)
    typer.echo(f"{record.sequence_number} delivered on {delivery_date.isoformat()}")


@app.command()
def supplier(ctx: typer.Context, reference: str = typer.Argument(...)) -> None:
    """The supplier returned the device (status supplier_delivered)."""
    ws = _workspace(ctx)
    record = _resolve(ws, reference)
    ws.store.mark_supplier_delivered(record.id)
    typer.echo(f"{record.sequence_number} delivered by supplier")


@app.command()
def delete(
    ctx: typer.Context,
    reference: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    ws = _workspace(ctx)
    record = _resolve(ws, reference)
    if not yes:
        typer.confirm(f"Delete {record.sequence_number}?", abort=True)
    ws.store.delete(record.id)
    typer.echo(f"Deleted {record.sequence_number}")


@app.command()
def ticket(
    ctx: typer.Context,
    reference: str = typer.Argument(...),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout."),
) -> None:
    """Print the receipt for a repair."""
    ws = _workspace(ctx)
    text = render_ticket(_resolve(ws, reference), ws.printer_settings())
    if output is None:
        typer.echo(text)
        return
    try:
        output.write_text(text, encoding="utf-8")
    except OSError as exc:
        _fail(f"Could not write {output}: {exc}")
    typer.echo(f"Ticket written to {output}")


@app.command("export")
def export_command(
    ctx: typer.Context,
    directory: Path = typer.Option(Path("."), "--dir", help="Destination directory."),
) -> None:
    """Export all repairs to repair-system-backup-<date>.json."""
    try:
        path = _workspace(ctx).export(directory)
    except RepairDeskError as exc:
        _fail(f"Export failed: {exc}")
    typer.echo(f"Exported to {path}")


@app.command("import")
def import_command(ctx: typer.Context, path: Path = typer.Argument(..., help="Exported JSON file.")) -> None:
    """Replace all repairs with an exported file."""
    try:
        records = _workspace(ctx).import_file(path)
    except RepairDeskError as exc:
        _fail(f"Import failed: {exc}")
    typer.echo(f"Imported {len(records)} repairs")


# -------- Alerts --------

@alerts_app.command("list")
def list_alerts(ctx: typer.Context, unread: bool = typer.Option(False, "--unread")) -> None:
    alerts = _workspace(ctx).notifications.alerts()
    if unread:
        alerts = [a for a in alerts if not a.read]
    if not alerts:
        typer.echo("No notifications.")
        return
    for alert in alerts:
        marker = " " if alert.read else "*"
        typer.echo(f"{marker} {alert.id}  {alert.created_at:%Y-%m-%d %H:%M}  {alert.message}")


@alerts_app.command()
def scan(ctx: typer.Context) -> None:
    """Check for overdue repairs now."""
    ws = _workspace(ctx)
    new_alerts = ws.monitor(notify=None).run_once()
    for alert in new_alerts:
        typer.echo(alert.message)
    typer.echo(f"{len(new_alerts)} new notification(s)")


@alerts_app.command()
def read(
    ctx: typer.Context,
    alert_id: Optional[str] = typer.Argument(None),
    all_: bool = typer.Option(False, "--all", help="Mark every notification as read."),
) -> None:
    center = _workspace(ctx).notifications
    if all_:
        center.mark_all_as_read()
    elif alert_id:
        center.mark_as_read(alert_id)
    else:
        _fail("Give a notification id or --all")
    typer.echo(f"{center.unread_count()} unread")


@alerts_app.command()
def remove(ctx: typer.Context, alert_id: str = typer.Argument(...)) -> None:
    _workspace(ctx).notifications.remove(alert_id)


@alerts_app.command()
def clear(ctx: typer.Context) -> None:
    _workspace(ctx).notifications.clear()
    typer.echo("Notifications cleared")


@app.command()
def watch(
    ctx: typer.Context,
    interval: float = typer.Option(NOTIFICATION_INTERVAL_SEC, "--interval", help="Seconds between scans."),
) -> None:
    """Scan for overdue repairs now and then periodically, with desktop notifications."""
    monitor = _workspace(ctx).monitor(interval=interval)
    monitor.start()
    typer.echo("Watching for overdue repairs (Ctrl+C to stop)")
    try:
        while monitor.running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()


# -------- Backups --------

@backups_app.command("list")
def list_backups(ctx: typer.Context) -> None:
    ws = _workspace(ctx)
    settings = ws.backup_settings()
    last = settings.last_backup_at.isoformat(timespec="seconds") if settings.last_backup_at else "never"
    typer.echo(
        f"Automatic backups: {'on' if settings.enabled else 'off'}, {settings.frequency.value}, "
        f"keep {settings.max_backups}, last {last}"
    )
    for filename in ws.catalog.list():
        typer.echo(filename)


@backups_app.command()
def restore(ctx: typer.Context, filename: str = typer.Argument(...)) -> None:
    """Replace all repairs with a stored snapshot."""
    try:
        records = _workspace(ctx).restore(filename)
    except RepairDeskError as exc:
        _fail(f"Restore failed: {exc}")
    typer.echo(f"Restored {len(records)} repairs from {filename}")


@backups_app.command("configure")
def configure_backups(
    ctx: typer.Context,
    enabled: Optional[bool] = typer.Option(None, "--enable/--disable"),
    frequency: Optional[BackupFrequency] = typer.Option(None, "--frequency"),
    max_backups: Optional[int] = typer.Option(None, "--max-backups", min=1),
) -> None:
    ws = _workspace(ctx)
    settings = ws.backup_settings()
    changes = {}
    if enabled is not None:
        changes["enabled"] = enabled
    if frequency is not None:
        changes["frequency"] = frequency
    if max_backups is not None:
        changes["max_backups"] = max_backups
    try:
        ws.save_backup_settings(replace(settings, **changes))
    except RepairDeskError as exc:
        _fail(f"Could not save settings: {exc}")
    typer.echo("Backup settings saved")


# -------- Printer --------

@printer_app.command("show")
def show_printer(ctx: typer.Context) -> None:
    settings = _workspace(ctx).printer_settings()
    for name, value in vars(settings).items():
        typer.echo(f"{name + ':':<16}{value}")


@printer_app.command("set")
def set_printer(ctx: typer.Context, assignments: List[str] = typer.Argument(..., help="FIELD=VALUE pairs.")) -> None:
    ws = _workspace(ctx)
    settings = ws.printer_settings()
    known = {f.name for f in fields(PrinterSettings)}
    changes: Dict[str, object] = {}
    try:
        for assignment in assignments:
            key, sep, value = assignment.partition("=")
            if not sep or key not in known:
                raise ValueError(f"Unknown printer setting: {assignment}")
            current = getattr(settings, key)
            if isinstance(current, bool):
                changes[key] = _parse_bool(value)
            elif isinstance(current, int):
                changes[key] = int(value)
            else:
                changes[key] = value.replace("\\n", "\n")
    except ValueError as exc:
        _fail(str(exc))
    try:
        ws.save_printer_settings(replace(settings, **changes))
    except RepairDeskError as exc:
        _fail(f"Could not save settings: {exc}")
    typer.echo("Printer settings saved")


@printer_app.command("reset")
def reset_printer(ctx: typer.Context) -> None:
    try:
        _workspace(ctx).save_printer_settings(PrinterSettings())
    except RepairDeskError as exc:
        _fail(f"Could not save settings: {exc}")
    typer.echo("Printer settings reset")
