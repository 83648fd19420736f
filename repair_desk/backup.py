"""
Design (backup.py)
- Purpose: Periodic snapshots of the full repair list into local storage.
- Components:
    is_due(settings, now): eligibility by frequency (daily / weekly / calendar month).
    BackupCatalog: snapshot payloads under "backup-<filename>" plus the
                   most-recent-first list of filenames.
    BackupScheduler: run on every committed mutation; snapshots when due and prunes.
- Side effects: Writes/removes storage documents.
- Failure model: Scheduled backups are best effort; errors are logged, never raised.
                 Catalog methods called directly (restore, delete) do raise.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from .config import BACKUP_CATALOG_KEY, BACKUP_PAYLOAD_PREFIX
from .models import BackupFrequency, BackupSettings, RepairRecord
from .storage import LocalStorage, dump_records, parse_records
from .utils import Clock, SystemClock, backup_filename

logger = logging.getLogger(__name__)


def is_due(settings: BackupSettings, now: datetime) -> bool:
    """True when no backup was ever taken or a full period elapsed since the last one."""
    last = settings.last_backup_at
    if last is None:
        return True
    if settings.frequency is BackupFrequency.DAILY:
        return now - last >= timedelta(days=1)
    if settings.frequency is BackupFrequency.WEEKLY:
        return now - last >= timedelta(weeks=1)
    if settings.frequency is BackupFrequency.MONTHLY:
        return now >= last + relativedelta(months=1)
    return False


class BackupCatalog:
    """
    Design (BackupCatalog)
    - State (in storage):
        "repair-system-backups": JSON list of filenames, most recent first
        "backup-<filename>": serialized repair list
    """

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def _payload_key(self, filename: str) -> str:
        return f"{BACKUP_PAYLOAD_PREFIX}{filename}"

    def list(self) -> List[str]:
        names = self.storage.get_json(BACKUP_CATALOG_KEY, default=[])
        if not isinstance(names, list):
            return []
        # Filenames embed an ISO date, so reverse lexical order is newest first
        unique = dict.fromkeys(n for n in names if isinstance(n, str))
        return sorted(unique, reverse=True)

    def save(self, filename: str, records: Iterable[RepairRecord]) -> None:
        self.storage.set_item(self._payload_key(filename), dump_records(records))
        names = [filename] + [n for n in self.list() if n != filename]
        self.storage.set_json(BACKUP_CATALOG_KEY, names)

    def delete(self, filename: str) -> None:
        names = [n for n in self.list() if n != filename]
        self.storage.set_json(BACKUP_CATALOG_KEY, names)
        self.storage.remove_item(self._payload_key(filename))

    def prune(self, max_backups: int) -> List[str]:
        """Delete the oldest snapshots beyond max_backups; returns the removed filenames."""
        excess = self.list()[max_backups:]
        for filename in excess:
            self.delete(filename)
        return excess

    def restore(self, filename: str) -> Optional[List[RepairRecord]]:
        """
        Return the repairs stored in a snapshot, or None when it does not exist.
        Raises InvalidImportError if the payload is corrupt.
        """
        raw = self.storage.get_item(self._payload_key(filename))
        if raw is None:
            return None
        return parse_records(raw)


class BackupScheduler:
    """
    Design (BackupScheduler)
    - Inputs: catalog, clock (injected so eligibility is testable).
    - run(records, settings) -> settings: returns settings with last_backup_at advanced
      when a snapshot was written, otherwise the same settings object.
    """

    def __init__(self, catalog: BackupCatalog, clock: Optional[Clock] = None) -> None:
        self.catalog = catalog
        self.clock = clock or SystemClock()

    def run(self, records: Iterable[RepairRecord], settings: BackupSettings) -> BackupSettings:
        if not settings.enabled:
            return settings
        now = self.clock.now()
        if not is_due(settings, now):
            return settings

        filename = backup_filename(now.date())
        try:
            self.catalog.save(filename, records)
        except Exception:
            logger.exception("Backup %s failed", filename)
            return settings
        updated = replace(settings, last_backup_at=now)
        logger.info("Backup completed successfully: %s", filename)

        try:
            removed = self.catalog.prune(settings.max_backups)
        except Exception:
            logger.exception("Error cleaning old backups")
        else:
            if removed:
                logger.info("Removed old backups: %s", ", ".join(removed))
        return updated
