"""Observer dataset — externally owned records bundled into global backups.

Sentinel never edits these records. It reads the current dataset for export
and hands an imported dataset to ``restore``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class ObserverService(Protocol):
    def evidence(self) -> list[dict[str, Any]]: ...

    def restore(self, records: Sequence[dict[str, Any]]) -> None: ...


class JsonObserverStore:
    """Observer dataset kept as a JSON array on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def evidence(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Observer fetch failed (%s): %s", self.path, e)
            return []
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    def restore(self, records: Sequence[dict[str, Any]]) -> None:
        """Replace the dataset with ``records``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(list(records), indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Observer: %d records restored", len(records))


class MemoryObserver:
    """In-memory observer dataset."""

    def __init__(self, records: Sequence[dict[str, Any]] = ()) -> None:
        self.records: list[dict[str, Any]] = list(records)
        self.restore_calls = 0

    def evidence(self) -> list[dict[str, Any]]:
        return list(self.records)

    def restore(self, records: Sequence[dict[str, Any]]) -> None:
        self.records = list(records)
        self.restore_calls += 1
