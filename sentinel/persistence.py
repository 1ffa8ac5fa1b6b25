"""
Identity persistence — JSON file backend.

The store hands over the whole collection on every mutation; this module
just writes it out. Loading applies the same defaulting as a backup import,
so files written by older versions (no vault, no tags) come back usable.
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from sentinel.models import Identity

logger = logging.getLogger(__name__)


class Persistence(Protocol):
    def load(self) -> list[Identity]: ...

    def save(self, records: Sequence[Identity]) -> None: ...


class JsonFilePersistence:
    """Stores the identity collection as a JSON array (chmod 600)."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> list[Identity]:
        """Read the collection. Missing file → empty; unreadable file → empty + error log."""
        if not self.path.exists():
            return []
        try:
            parsed = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Identity store corrupted at %s: %s", self.path, e)
            return []
        if not isinstance(parsed, list):
            logger.error("Identity store at %s is not a list, ignoring", self.path)
            return []
        records = [Identity.from_raw(item) for item in parsed if isinstance(item, dict)]
        logger.debug("Loaded %d identities from %s", len(records), self.path)
        return records

    def save(self, records: Sequence[Identity]) -> None:
        """Atomically replace the file with the full collection."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".identities-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.chmod(tmp, stat.S_IRUSR | stat.S_IWUSR)  # 600
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


class MemoryPersistence:
    """Keeps the last saved collection in memory; used by tests and dry runs."""

    def __init__(self, records: Sequence[Identity] = ()) -> None:
        self.saved: list[Identity] = [r.model_copy(deep=True) for r in records]
        self.save_count = 0

    def load(self) -> list[Identity]:
        return [r.model_copy(deep=True) for r in self.saved]

    def save(self, records: Sequence[Identity]) -> None:
        self.saved = [r.model_copy(deep=True) for r in records]
        self.save_count += 1
