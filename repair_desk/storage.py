"""
Design (storage.py)
- Purpose: Local key-value persistence (one JSON document per key) plus the
           JSON shape of every persisted entity (repairs, alerts, settings).
- Inputs: Data directory (from get_data_dir()), keys, domain objects for save.
- Outputs: Domain objects on load; None on save.
- Side effects: Reads/writes files in the data directory.
  On load failure returns defaults (logged); on save failure raises StorageError
  and callers on implicit paths log and continue.
- Thread-safety: Call with the owning store's lock held (RepairStore, NotificationCenter).
"""

import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional

from .config import (
    APP_DIR_NAME,
    BACKUP_SETTINGS_KEY,
    DATA_DIR_ENV,
    NOTIFICATIONS_KEY,
    PRINTER_SETTINGS_KEY,
    REPAIRS_KEY,
)
from .exceptions import InvalidImportError, StorageError
from .models import (
    AlertType,
    BackupFrequency,
    BackupSettings,
    Client,
    NotificationAlert,
    PrinterSettings,
    RepairRecord,
    RepairStatus,
)
from .utils import backup_filename

logger = logging.getLogger(__name__)


def get_data_dir() -> Path:
    """
    Resolve the data directory. $REPAIR_DESK_DATA_DIR wins; on Windows prefer the
    app data dir so data survives reinstalls; otherwise ~/.repair-desk.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override)
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / APP_DIR_NAME
    return Path.home() / ".repair-desk"


class LocalStorage:
    """
    Design (LocalStorage)
    - Purpose: String-valued key-value store backed by a directory, one file per key.
    - State:
        base_dir: directory holding <key>.json files (created on first write)
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError:
            logger.warning("Could not read %s", path, exc_info=True)
            return None

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(value, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Could not write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not remove {path}: {exc}") from exc

    def keys(self) -> List[str]:
        if not self.base_dir.is_dir():
            return []
        return sorted(p.name[: -len(".json")] for p in self.base_dir.glob("*.json"))

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable document %r", key)
            return default

    def set_json(self, key: str, value: Any, indent: Optional[int] = None) -> None:
        self.set_item(key, json.dumps(value, indent=indent, ensure_ascii=False))


# -------- Repairs --------

def _parse_date(value: Any) -> Optional[date]:
    """Accepts 'YYYY-MM-DD' or a full ISO timestamp; None/'' -> None."""
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a date string, got {type(value).__name__}")
    return date.fromisoformat(value[:10])


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a timestamp string, got {type(value).__name__}")
    # Drop a trailing "Z" so ISO strings written by browsers parse everywhere
    parsed = datetime.fromisoformat(value[:-1] if value.endswith("Z") else value)
    return parsed.replace(tzinfo=None)


def record_to_dict(record: RepairRecord) -> dict:
    client = record.client
    return {
        "id": record.id,
        "date": record.created_date.isoformat(),
        "repairNumber": record.sequence_number,
        "receivedBy": record.received_by,
        "warranty": record.warranty,
        "code": record.code,
        "article": record.article,
        "brand": record.brand,
        "model": record.model,
        "serialImei": record.serial_imei,
        "provider": record.provider,
        "requestBudget": record.request_budget,
        "content": record.content,
        "problem": record.problem,
        "deliveryDate": record.delivery_date.isoformat() if record.delivery_date else None,
        "client": {
            "name": client.name,
            "surname": client.surname,
            "phone": client.phone,
            "ticketNumber": client.ticket_number,
            "email": client.email,
            "address": client.address,
        },
        "status": record.status.value,
    }


def record_from_dict(item: Any) -> RepairRecord:
    """
    Build a RepairRecord from its JSON shape.
    Raises ValueError/TypeError/KeyError on a missing id, date or repair number,
    an unknown status, or non-object values.
    """
    if not isinstance(item, dict):
        raise TypeError("repair must be a JSON object")
    client = item.get("client") or {}
    if not isinstance(client, dict):
        raise TypeError("client must be a JSON object")
    record_id = item["id"]
    number = item["repairNumber"]
    if not record_id or not number:
        raise ValueError("repair id and repairNumber are required")
    created = _parse_date(item["date"])
    if created is None:
        raise ValueError("repair date is required")
    return RepairRecord(
        id=str(record_id),
        sequence_number=str(number),
        created_date=created,
        status=RepairStatus(item.get("status", RepairStatus.PENDING.value)),
        received_by=str(item.get("receivedBy", "")),
        warranty=bool(item.get("warranty", False)),
        code=str(item.get("code", "")),
        article=str(item.get("article", "")),
        brand=str(item.get("brand", "")),
        model=str(item.get("model", "")),
        serial_imei=str(item.get("serialImei", "")),
        provider=str(item.get("provider", "")),
        request_budget=bool(item.get("requestBudget", False)),
        content=str(item.get("content", "")),
        problem=str(item.get("problem", "")),
        delivery_date=_parse_date(item.get("deliveryDate")),
        client=Client(
            name=str(client.get("name", "")),
            surname=str(client.get("surname", "")),
            phone=str(client.get("phone", "")),
            ticket_number=str(client.get("ticketNumber", "")),
            email=str(client.get("email", "")),
            address=str(client.get("address", "")),
        ),
    )


def dump_records(records: Iterable[RepairRecord], indent: Optional[int] = None) -> str:
    return json.dumps([record_to_dict(r) for r in records], indent=indent, ensure_ascii=False)


def parse_records(text: str) -> List[RepairRecord]:
    """
    Parse an exported/imported JSON document into repairs.
    All-or-nothing: any malformed item rejects the whole payload.
    Raises InvalidImportError.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise InvalidImportError(f"Not a JSON document: {exc}") from exc
    if not isinstance(data, list):
        raise InvalidImportError("Expected a JSON array of repairs")
    records: List[RepairRecord] = []
    for index, item in enumerate(data):
        try:
            records.append(record_from_dict(item))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidImportError(f"Repair #{index + 1} is invalid: {exc}") from exc
    return records


def load_records(storage: LocalStorage) -> List[RepairRecord]:
    """
    Load persisted repairs. Returns empty list on a missing or unreadable document;
    malformed entries are skipped.
    """
    data = storage.get_json(REPAIRS_KEY, default=[])
    if not isinstance(data, list):
        logger.warning("Ignoring %r: not a list", REPAIRS_KEY)
        return []
    records: List[RepairRecord] = []
    for item in data:
        try:
            records.append(record_from_dict(item))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed repair entry: %r", item)
    return records


def save_records(storage: LocalStorage, records: Iterable[RepairRecord]) -> None:
    """Overwrite the persisted repair list. Raises StorageError."""
    storage.set_item(REPAIRS_KEY, dump_records(records))


def export_records(records: Iterable[RepairRecord], directory: Path, today: date) -> Path:
    """
    Write repair-system-backup-<ISO-date>.json into directory and return its path.
    Raises StorageError.
    """
    path = Path(directory) / backup_filename(today)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_records(records, indent=2), encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Could not export to {path}: {exc}") from exc
    return path


# -------- Notification alerts --------

def alert_to_dict(alert: NotificationAlert) -> dict:
    return {
        "id": alert.id,
        "repairId": alert.record_id,
        "repairNumber": alert.record_sequence_number,
        "message": alert.message,
        "type": alert.alert_type.value,
        "createdAt": alert.created_at.isoformat(),
        "read": alert.read,
    }


def load_alerts(storage: LocalStorage) -> List[NotificationAlert]:
    data = storage.get_json(NOTIFICATIONS_KEY, default=[])
    if not isinstance(data, list):
        return []
    alerts: List[NotificationAlert] = []
    for item in data:
        try:
            alerts.append(
                NotificationAlert(
                    id=str(item["id"]),
                    record_id=str(item["repairId"]),
                    record_sequence_number=str(item.get("repairNumber", "")),
                    alert_type=AlertType(item["type"]),
                    message=str(item.get("message", "")),
                    created_at=_parse_datetime(item["createdAt"]),
                    read=bool(item.get("read", False)),
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed alert entry: %r", item)
    return alerts


def save_alerts(storage: LocalStorage, alerts: Iterable[NotificationAlert]) -> None:
    storage.set_json(NOTIFICATIONS_KEY, [alert_to_dict(a) for a in alerts])


# -------- Settings --------

def load_backup_settings(storage: LocalStorage) -> BackupSettings:
    data = storage.get_json(BACKUP_SETTINGS_KEY, default=None)
    if not isinstance(data, dict):
        return BackupSettings()
    defaults = BackupSettings()
    try:
        return BackupSettings(
            enabled=bool(data.get("enabled", defaults.enabled)),
            frequency=BackupFrequency(data.get("frequency", defaults.frequency.value)),
            last_backup_at=_parse_datetime(data.get("lastBackup")),
            max_backups=int(data.get("maxBackups", defaults.max_backups)),
        )
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid backup settings: %r", data)
        return defaults


def save_backup_settings(storage: LocalStorage, settings: BackupSettings) -> None:
    storage.set_json(
        BACKUP_SETTINGS_KEY,
        {
            "enabled": settings.enabled,
            "frequency": settings.frequency.value,
            "lastBackup": settings.last_backup_at.isoformat() if settings.last_backup_at else None,
            "maxBackups": settings.max_backups,
        },
    )


_PRINTER_KEYS = {
    "paper_width": "paperWidth",
    "paper_height": "paperHeight",
    "margin_top": "marginTop",
    "margin_bottom": "marginBottom",
    "margin_left": "marginLeft",
    "margin_right": "marginRight",
    "font_size": "fontSize",
    "show_logo": "showLogo",
    "show_footer": "showFooter",
    "custom_header": "customHeader",
    "custom_footer": "customFooter",
}


def load_printer_settings(storage: LocalStorage) -> PrinterSettings:
    data = storage.get_json(PRINTER_SETTINGS_KEY, default=None)
    if not isinstance(data, dict):
        return PrinterSettings()
    values = {attr: data[key] for attr, key in _PRINTER_KEYS.items() if key in data}
    try:
        return PrinterSettings(**values)
    except TypeError:
        logger.warning("Ignoring invalid printer settings: %r", data)
        return PrinterSettings()


def save_printer_settings(storage: LocalStorage, settings: PrinterSettings) -> None:
    values = asdict(settings)
    storage.set_json(PRINTER_SETTINGS_KEY, {key: values[attr] for attr, key in _PRINTER_KEYS.items()})
