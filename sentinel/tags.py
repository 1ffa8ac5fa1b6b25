"""
Tag classifier — fixed classification vocabulary, toggles and filtering.

Tags are assigned from TAG_OPTIONS only. Records imported from a backup may
carry other strings; those are kept and still filterable, they just cannot
be assigned here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from sentinel.errors import RejectedInput

if TYPE_CHECKING:
    from sentinel.models import Identity

logger = logging.getLogger(__name__)

TAG_OPTIONS: tuple[str, ...] = ("MAIN", "ALT", "FARM", "TRADE")

DEFAULT_TAG = "DEFAULT"


def check_assignable(tag: str) -> None:
    """Raise RejectedInput unless ``tag`` belongs to the vocabulary."""
    if tag not in TAG_OPTIONS:
        raise RejectedInput(
            f"Unknown tag '{tag}' (expected one of {', '.join(TAG_OPTIONS)})",
            field="tags",
        )


def toggle(tags: Sequence[str], tag: str) -> list[str]:
    """Return a new tag list with ``tag`` removed if present, appended otherwise."""
    check_assignable(tag)
    if tag in tags:
        return [t for t in tags if t != tag]
    return [*tags, tag]


def dedupe(tags: Iterable[str]) -> list[str]:
    """Drop repeated tags, keeping first occurrences in order."""
    seen: set[str] = set()
    out: list[str] = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out


def primary_tag(record: Identity) -> str:
    """First assigned tag, used for accent colouring; DEFAULT when untagged."""
    return record.tags[0] if record.tags else DEFAULT_TAG


def visible(records: Iterable[Identity], tag_filter: str | None) -> list[Identity]:
    """Records passing the filter, in their original order. ``None`` shows all."""
    if tag_filter is None:
        return list(records)
    return [r for r in records if tag_filter in r.tags]


class TagClassifier:
    """Holds the single global tag filter."""

    def __init__(self) -> None:
        self._filter: str | None = None

    @property
    def filter(self) -> str | None:
        return self._filter

    def set_filter(self, tag: str | None) -> None:
        """Replace the active filter; ``None`` means show all."""
        logger.debug("Tag filter: %s -> %s", self._filter, tag)
        self._filter = tag

    def visible(self, records: Iterable[Identity]) -> list[Identity]:
        return visible(records, self._filter)
