"""Exception hierarchy for Sentinel operations.

Every failure a caller can recover from is a ``SentinelError``. The
``category`` attribute is what the session reports in its notifications.
"""

from __future__ import annotations


class SentinelError(Exception):
    category = "error"


class RejectedInput(SentinelError):
    """An identity draft or tag assignment failed validation."""

    category = "rejected_input"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field: str | None = field


class NotFound(SentinelError):
    """No identity with the given id exists in the store."""

    category = "not_found"

    def __init__(self, record_id: str) -> None:
        super().__init__(f"No identity with id '{record_id}'")
        self.record_id = record_id


class CorruptBackup(SentinelError):
    """Backup text could not be parsed or matched no known envelope version."""

    category = "corrupt_backup"


class ConfirmationRequired(SentinelError):
    """A destructive operation was attempted without the caller's confirmation."""

    category = "confirmation_required"


class SlotStateError(SentinelError):
    """A vault slot operation is not valid in the slot's current state."""

    category = "slot_state"
