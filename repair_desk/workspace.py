"""
Design (workspace.py)
- Purpose: Wire storage, repair store, notifications and backups for one data directory,
           and expose the user-initiated settings actions (export, import, restore, settings).
- Inputs: Data directory (defaults to get_data_dir()), optional Clock.
- Outputs: Workspace instance.
- Side effects: Reads persisted documents on open. Explicit actions raise StorageError /
                InvalidImportError so the caller can report them.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .backup import BackupCatalog, BackupScheduler
from .effects import CommitEffects
from .exceptions import InvalidImportError
from .models import BackupSettings, PrinterSettings, RepairRecord
from .monitor import NotificationMonitor
from .notifications import NotificationCenter
from .repository import RepairStore
from .storage import (
    LocalStorage,
    export_records,
    get_data_dir,
    load_backup_settings,
    load_printer_settings,
    load_records,
    parse_records,
    save_backup_settings,
    save_printer_settings,
)
from .utils import Clock, SystemClock

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    storage: LocalStorage
    store: RepairStore
    notifications: NotificationCenter
    catalog: BackupCatalog
    scheduler: BackupScheduler
    clock: Clock

    # -------- Export / import --------

    def export(self, directory: Path) -> Path:
        path = export_records(self.store.records(), directory, self.clock.now().date())
        logger.info("Exported %d repairs to %s", len(self.store.records()), path)
        return path

    def import_file(self, path: Path) -> List[RepairRecord]:
        """
        Replace all repairs with the content of an exported file.
        Nothing changes unless the whole document parses.
        Raises InvalidImportError (also for an unreadable file).
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidImportError(f"Could not read {path}: {exc}") from exc
        records = parse_records(text)
        self.store.replace_all(records)
        logger.info("Imported %d repairs from %s", len(records), path)
        return records

    def restore(self, filename: str) -> List[RepairRecord]:
        records = self.catalog.restore(filename)
        if records is None:
            raise InvalidImportError(f"No backup named {filename}")
        self.store.replace_all(records)
        logger.info("Restored %d repairs from %s", len(records), filename)
        return records

    # -------- Settings --------

    def backup_settings(self) -> BackupSettings:
        return load_backup_settings(self.storage)

    def save_backup_settings(self, settings: BackupSettings) -> None:
        save_backup_settings(self.storage, settings)

    def printer_settings(self) -> PrinterSettings:
        return load_printer_settings(self.storage)

    def save_printer_settings(self, settings: PrinterSettings) -> None:
        save_printer_settings(self.storage, settings)

    def monitor(self, **kwargs) -> NotificationMonitor:
        return NotificationMonitor(self.store, self.notifications, clock=self.clock, **kwargs)


def open_workspace(data_dir: Optional[Path] = None, clock: Optional[Clock] = None) -> Workspace:
    storage = LocalStorage(data_dir or get_data_dir())
    clock = clock or SystemClock()
    catalog = BackupCatalog(storage)
    scheduler = BackupScheduler(catalog, clock)
    store = RepairStore(
        load_records(storage),
        on_commit=CommitEffects(storage, scheduler),
        clock=clock,
    )
    logger.debug("Opened workspace at %s (%d repairs)", storage.base_dir, len(store.records()))
    return Workspace(
        storage=storage,
        store=store,
        notifications=NotificationCenter.from_storage(storage),
        catalog=catalog,
        scheduler=scheduler,
        clock=clock,
    )
