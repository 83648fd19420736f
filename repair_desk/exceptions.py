"""
Design (exceptions.py)
- Purpose: Error types raised at the storage and import boundaries.
- Side effects: None.
"""


class RepairDeskError(Exception):
    """Base class for errors surfaced to the user."""


class StorageError(RepairDeskError):
    """A document could not be written to, or removed from, local storage."""


class InvalidImportError(RepairDeskError):
    """An imported payload is not a valid list of repair records."""
