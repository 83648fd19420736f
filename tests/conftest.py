"""Shared fixtures: a controllable clock, a storage directory and record builders."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable

import pytest

from repair_desk.models import Client, RepairRecord, RepairStatus
from repair_desk.storage import LocalStorage
from repair_desk.workspace import Workspace, open_workspace


class FixedClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 10, 19, 9, 30))


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir: Path) -> LocalStorage:
    return LocalStorage(data_dir)


@pytest.fixture
def workspace(data_dir: Path, clock: FixedClock) -> Workspace:
    return open_workspace(data_dir, clock=clock)


@pytest.fixture
def make_record(clock: FixedClock) -> Callable[..., RepairRecord]:
    """Build a RepairRecord created `age_days` before the clock's today."""

    def build(
        record_id: str = "r1",
        number: str = "REP001",
        age_days: int = 0,
        status: RepairStatus = RepairStatus.PENDING,
        **fields: object,
    ) -> RepairRecord:
        fields.setdefault("article", "Laptop")
        fields.setdefault("client", Client(name="Jane", surname="Smith", phone="555-123-4567"))
        created: date = clock.now().date() - timedelta(days=age_days)
        return RepairRecord(id=record_id, sequence_number=number, created_date=created, status=status, **fields)

    return build
