from __future__ import annotations

# receiptbook/errors.py


class ReceiptbookError(Exception):
    """Base class for errors raised by the storage and service layers."""


class ValidationError(ReceiptbookError, ValueError):
    """A required field is missing or invalid. Raised before any write."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(ReceiptbookError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConstraintError(ReceiptbookError):
    """Unique / foreign-key / NOT NULL violation reported by the engine."""


class UnsupportedPlatformError(ReceiptbookError):
    def __init__(self, message: str = "Persistent local storage is not supported on this platform"):
        super().__init__(message)


class StorageIOError(ReceiptbookError):
    """Disk or engine failure. Fatal to the current operation, never retried."""
