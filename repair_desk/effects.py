"""
Design (effects.py)
- Purpose: Side effects run after every committed repair mutation, kept out of the reducer.
- Order: 1) mirror the full repair list to storage (overwrite),
         2) run the backup scheduler with the stored backup settings,
         3) persist the settings if the scheduler advanced last_backup_at.
- Failure model: Implicit path; storage errors are logged and never reach the caller.
"""

import logging
from typing import Sequence

from .backup import BackupScheduler
from .exceptions import StorageError
from .models import RepairRecord
from .storage import LocalStorage, load_backup_settings, save_backup_settings, save_records

logger = logging.getLogger(__name__)


class CommitEffects:
    def __init__(self, storage: LocalStorage, scheduler: BackupScheduler) -> None:
        self.storage = storage
        self.scheduler = scheduler

    def __call__(self, records: Sequence[RepairRecord]) -> None:
        try:
            save_records(self.storage, records)
        except StorageError:
            logger.exception("Could not persist repairs")

        settings = load_backup_settings(self.storage)
        updated = self.scheduler.run(records, settings)
        if updated is not settings:
            try:
                save_backup_settings(self.storage, updated)
            except StorageError:
                logger.exception("Could not persist backup settings")
