"""
Design (config.py)
- Purpose: Centralize constants and configuration.
- Inputs: None.
- Outputs: Constants (thresholds, intervals, storage keys, defaults, receipt layout).
- Side effects: None.
- Thread-safety: N/A (read-only constants).
"""

# Ticket numbering: "REP" + zero-padded ordinal
REPAIR_NUMBER_PREFIX = "REP"
REPAIR_NUMBER_DIGITS = 3

# Notification policy (age in whole days since the record was created)
PENDING_ALERT_DAYS = 3
IN_PROGRESS_ALERT_DAYS = 8
NOTIFICATION_INTERVAL_SEC = 60 * 60
NOTIFICATION_TITLE = "Repair Desk"
NOTIFICATION_TIMEOUT_SEC = 5

# Persistence: one JSON document per key inside the data directory
DATA_DIR_ENV = "REPAIR_DESK_DATA_DIR"
APP_DIR_NAME = "Repair Desk"
REPAIRS_KEY = "repairs"
BACKUP_CATALOG_KEY = "repair-system-backups"
BACKUP_SETTINGS_KEY = "backup-settings"
BACKUP_PAYLOAD_PREFIX = "backup-"
PRINTER_SETTINGS_KEY = "printerSettings"
NOTIFICATIONS_KEY = "notification-storage"

# Backups and exports share the same filename pattern
BACKUP_FILENAME_TEMPLATE = "repair-system-backup-{date}.json"
DEFAULT_BACKUP_ENABLED = False
DEFAULT_BACKUP_FREQUENCY = "weekly"
DEFAULT_MAX_BACKUPS = 5

# Receipt layout (fixed-width thermal paper)
TICKET_WIDTH = 32
TICKET_DATE_FORMAT = "%d/%m/%Y"
SHOP_HEADER = [
    "Sonimag",
    "Av. Meritxell, 97",
    "Andorra La Vella",
    "Phone: (376) 860 039",
]
SHOP_FOOTER = [
    "Thank you for your trust!",
    "Repair time: 15-90 days",
    "Warranty: 90 days",
]
PAPER_FEED_LINES = 3

# Listing
RECENT_REPAIRS_LIMIT = 5
