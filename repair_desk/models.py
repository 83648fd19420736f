"""
Design (models.py)
- Purpose: Define simple, typed data structures for domain entities (repairs, alerts, settings).
- Inputs: Field values (str, bool, date, datetime).
- Outputs: Dataclass instances.
- Side effects: None.
- Thread-safety: Records, alerts and settings are frozen; changes go through dataclasses.replace.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .config import DEFAULT_BACKUP_ENABLED, DEFAULT_BACKUP_FREQUENCY, DEFAULT_MAX_BACKUPS


class RepairStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUPPLIER_DELIVERED = "supplier_delivered"
    COMPLETED = "completed"


class AlertType(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"


class BackupFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Client:
    """
    Design (Client)
    - Purpose: Customer details embedded in a repair; has no identity of its own.
    """
    name: str = ""
    surname: str = ""
    phone: str = ""
    ticket_number: str = ""
    email: str = ""
    address: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


@dataclass(frozen=True)
class RepairForm:
    """
    Design (RepairForm)
    - Purpose: Caller-supplied fields for a new repair (everything except
      id, repair number, creation date and status).
    """
    received_by: str = ""
    warranty: bool = False
    code: str = ""
    article: str = ""
    brand: str = ""
    model: str = ""
    serial_imei: str = ""
    provider: str = ""
    request_budget: bool = False
    content: str = ""
    problem: str = ""
    delivery_date: Optional[date] = None
    client: Client = field(default_factory=Client)


@dataclass(frozen=True)
class RepairRecord:
    """
    Design (RepairRecord)
    - Purpose: A single repair ticket.
    - Fields:
        id: opaque unique identifier, immutable.
        sequence_number: display number ("REP001"), immutable.
        created_date: calendar date the repair was received, immutable.
        status: lifecycle state (RepairStatus).
        delivery_date: set when the device is handed back to the client.
        client: embedded Client.
    """
    id: str
    sequence_number: str
    created_date: date
    status: RepairStatus = RepairStatus.PENDING
    received_by: str = ""
    warranty: bool = False
    code: str = ""
    article: str = ""
    brand: str = ""
    model: str = ""
    serial_imei: str = ""
    provider: str = ""
    request_budget: bool = False
    content: str = ""
    problem: str = ""
    delivery_date: Optional[date] = None
    client: Client = field(default_factory=Client)


# Fields that update() may never touch
IMMUTABLE_FIELDS = frozenset({"id", "sequence_number", "created_date"})


@dataclass(frozen=True)
class NotificationAlert:
    """
    Design (NotificationAlert)
    - Purpose: An overdue-repair reminder shown in the notification list.
    - Invariant: at most one alert per (record_id, alert_type) exists at a time.
    """
    id: str
    record_id: str
    record_sequence_number: str
    alert_type: AlertType
    message: str
    created_at: datetime
    read: bool = False


@dataclass(frozen=True)
class BackupSettings:
    enabled: bool = DEFAULT_BACKUP_ENABLED
    frequency: BackupFrequency = BackupFrequency(DEFAULT_BACKUP_FREQUENCY)
    last_backup_at: Optional[datetime] = None
    max_backups: int = DEFAULT_MAX_BACKUPS

    def __post_init__(self) -> None:
        if self.max_backups < 1:
            raise ValueError("max_backups must be a positive integer")
        # Frozen: coerce "daily" and friends through the enum
        object.__setattr__(self, "frequency", BackupFrequency(self.frequency))


@dataclass(frozen=True)
class PrinterSettings:
    """Receipt preferences; sizes in millimetres, font size in points."""
    paper_width: int = 80
    paper_height: int = 297
    margin_top: int = 10
    margin_bottom: int = 10
    margin_left: int = 5
    margin_right: int = 5
    font_size: int = 12
    show_logo: bool = True
    show_footer: bool = True
    custom_header: str = ""
    custom_footer: str = ""
