"""
Sentinel — local TOTP identity store with recovery-code vaults.

Public API:
    open_session()          → SentinelSession on the configured files
    RecordStore             → identity collection with write-through persistence
    VaultSlotEngine         → per-slot recovery-code state machine
    BackupCodec             → versioned .nexus export/import
"""

from __future__ import annotations

__version__ = "0.1.0"

from sentinel.backup import BackupCodec
from sentinel.errors import (
    ConfirmationRequired,
    CorruptBackup,
    NotFound,
    RejectedInput,
    SentinelError,
    SlotStateError,
)
from sentinel.models import EMPTY_SLOT, VAULT_SIZE, Identity, IdentityDraft
from sentinel.session import SentinelSession, open_session
from sentinel.store import RecordStore
from sentinel.tags import TAG_OPTIONS
from sentinel.vault import SlotState, VaultSlotEngine

__all__ = [
    "EMPTY_SLOT",
    "TAG_OPTIONS",
    "VAULT_SIZE",
    "BackupCodec",
    "ConfirmationRequired",
    "CorruptBackup",
    "Identity",
    "IdentityDraft",
    "NotFound",
    "RecordStore",
    "RejectedInput",
    "SentinelError",
    "SentinelSession",
    "SlotState",
    "SlotStateError",
    "VaultSlotEngine",
    "open_session",
]
