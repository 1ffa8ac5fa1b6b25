"""
Backup Codec — global export/import of identities plus the observer dataset.

File format (UTF-8 JSON, ``.nexus`` extension):

  version 2   {"version": 2, "identities": [...], "observerData": [...]}
  version 1   [...]   (bare identity list, no observer data)

Early version 2 files used ``sentinel`` / ``observer`` as the key names;
those are accepted as aliases on import.

Decoding is an explicit tagged variant: try the version 2 envelope, fall
back to the version 1 list, else fail closed with CorruptBackup. Imported
identities are sanitized (see Identity.from_raw), never rejected.

Usage:
    codec = BackupCodec(store, observer)
    path = codec.export_to(Path("~/backups").expanduser())
    codec.import_text(path.read_text(), confirmed=True)
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from sentinel.errors import ConfirmationRequired, CorruptBackup
from sentinel.models import Identity
from sentinel.observer import ObserverService
from sentinel.store import RecordStore

logger = logging.getLogger(__name__)

BACKUP_VERSION = 2
BACKUP_SUFFIX = ".nexus"

_IDENTITY_KEYS = ("identities", "sentinel")


class EnvelopeV2(BaseModel):
    """Version 2 envelope. Requires an identities (or legacy sentinel) key."""

    model_config = ConfigDict(extra="allow")

    version: Any = None
    identities: list[Any] | None = Field(
        default=None, validation_alias=AliasChoices("identities", "sentinel")
    )
    observer_data: Any = Field(
        default=None, validation_alias=AliasChoices("observerData", "observer")
    )

    @model_validator(mode="before")
    @classmethod
    def _has_identities(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not any(k in data for k in _IDENTITY_KEYS):
            raise ValueError("not a version 2 envelope")
        return data


_LEGACY_LIST = TypeAdapter(list[Any])


@dataclass
class DecodedBackup:
    version: int
    identities: list[Identity] = field(default_factory=list)
    observer_data: list[dict[str, Any]] = field(default_factory=list)


def decode(text: str | bytes) -> DecodedBackup:
    """Parse and decode backup text. Raises CorruptBackup."""
    try:
        raw = json.loads(text)
    except ValueError as e:
        raise CorruptBackup(f"Corrupt Nexus File: {e}") from e
    return decode_payload(raw)


def decode_payload(raw: Any) -> DecodedBackup:
    """Decode already-parsed backup data into sanitized identities."""
    try:
        envelope = EnvelopeV2.model_validate(raw)
    except ValidationError as e:
        logger.debug("Not a version 2 envelope: %s", e.error_count())
    else:
        return DecodedBackup(
            version=BACKUP_VERSION,
            identities=_sanitize(envelope.identities or []),
            observer_data=_observer_records(envelope.observer_data),
        )

    try:
        items = _LEGACY_LIST.validate_python(raw)
    except ValidationError as e:
        raise CorruptBackup("Corrupt Nexus File: unrecognized backup format") from e
    return DecodedBackup(version=1, identities=_sanitize(items))


def _observer_records(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        if value is not None:
            logger.warning("Ignoring observer data of type %s", type(value).__name__)
        return []
    return [o for o in value if isinstance(o, dict)]


def _sanitize(items: list[Any]) -> list[Identity]:
    out: list[Identity] = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping backup entry %d: not an object", position)
            continue
        out.append(Identity.from_raw(item))
    return out


def backup_filename(now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f"nexus_global_backup_{millis}{BACKUP_SUFFIX}"


def write_backup_file(path: Path, text: str) -> None:
    """Default file-write collaborator."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class BackupCodec:
    """Exports the whole system and restores it wholesale from a backup."""

    def __init__(
        self,
        store: RecordStore,
        observer: ObserverService,
        *,
        writer: Callable[[Path, str], None] = write_backup_file,
    ) -> None:
        self.store = store
        self.observer = observer
        self.writer = writer

    # ── Export ───────────────────────────────────────────────────────

    def export_payload(self) -> dict[str, Any]:
        return {
            "version": BACKUP_VERSION,
            "identities": [r.to_dict() for r in self.store.records],
            "observerData": self.observer.evidence(),
        }

    def export_text(self) -> str:
        return json.dumps(self.export_payload(), indent=2, ensure_ascii=False)

    def export_to(self, directory: Path | str, *, filename: str | None = None) -> Path:
        """Serialize and hand the text to the writer. Returns the target path."""
        path = Path(directory) / (filename or backup_filename())
        self.writer(path, self.export_text())
        logger.info("Global backup exported to %s (%d identities)", path, len(self.store))
        return path

    # ── Import ───────────────────────────────────────────────────────

    def import_text(self, text: str | bytes, *, confirmed: bool) -> DecodedBackup:
        """Decode ``text`` and replace the store with it.

        Corrupt input raises before anything changes. ``confirmed`` must be
        True — the caller is responsible for asking the user.
        """
        decoded = decode(text)
        if not confirmed:
            raise ConfirmationRequired("Import overwrites all identities and observer data")

        self.store.replace_all(decoded.identities)
        if decoded.observer_data:
            try:
                self.observer.restore(decoded.observer_data)
            except Exception as e:
                logger.error("Observer restore failed: %s", e)
        logger.info(
            "Imported version %d backup: %d identities, %d observer records",
            decoded.version,
            len(decoded.identities),
            len(decoded.observer_data),
        )
        return decoded

    def import_file(self, path: Path | str, *, confirmed: bool) -> DecodedBackup:
        return self.import_text(Path(path).read_bytes(), confirmed=confirmed)
