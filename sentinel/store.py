"""
Record Store — sole owner of the identity collection.

Single-writer discipline: callers never get the live records, only copies.
Every successful mutation is written through to the persistence backend
as the full collection; there is no delta protocol.

Usage:
    from sentinel.store import RecordStore
    from sentinel.persistence import JsonFilePersistence

    store = RecordStore(JsonFilePersistence("identities.json"))
    store.load()
    record = store.add(IdentityDraft(name="GitHub", secret="JBSWY3DPEHPK3PXP"))
    store.update(record.id, lambda r: setattr(r, "note", "work account"))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from pydantic import ValidationError

from sentinel.errors import NotFound, RejectedInput
from sentinel.models import Identity, IdentityDraft, empty_vault, new_id
from sentinel.persistence import Persistence
from sentinel.validation import normalize_secret, validate_draft

logger = logging.getLogger(__name__)

Mutator = Callable[[Identity], None]


class RecordStore:
    """Ordered, id-unique collection of identities with write-through sync."""

    def __init__(self, persistence: Persistence) -> None:
        self._persistence = persistence
        self._records: list[Identity] = []

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def records(self) -> tuple[Identity, ...]:
        """Snapshot of the collection in insertion order."""
        return tuple(r.model_copy(deep=True) for r in self._records)

    def get(self, record_id: str) -> Identity:
        return self._find(record_id).model_copy(deep=True)

    def __contains__(self, record_id: object) -> bool:
        return any(r.id == record_id for r in self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Identity]:
        return iter(self.records)

    def ids(self) -> list[str]:
        return [r.id for r in self._records]

    # ── Mutations ────────────────────────────────────────────────────

    def load(self) -> int:
        """Replace in-memory state with what the backend holds. No write-back."""
        self._records = _unique(self._persistence.load())
        logger.info("Record store loaded %d identities", len(self._records))
        return len(self._records)

    def add(self, draft: IdentityDraft) -> Identity:
        """Validate a draft and append it as a new identity."""
        valid, reason = validate_draft(draft.name, draft.secret)
        if not valid:
            if reason == "name":
                raise RejectedInput("Identity name is required", field="name")
            if not draft.secret:
                raise RejectedInput("Secret is required", field="secret")
            raise RejectedInput("Invalid Secret (Base32 Required)", field="secret")

        existing = set(self.ids())
        record_id = new_id()
        while record_id in existing:
            record_id = new_id()

        record = Identity(
            id=record_id,
            name=draft.name,
            secret=normalize_secret(draft.secret),
            vault=empty_vault(),
            note=draft.note,
            hidden_description=draft.hidden_description,
            tags=list(draft.tags),
        )
        self._records.append(record)
        self._sync()
        logger.info("Identity added: %s (%s)", record.id, record.name)
        return record.model_copy(deep=True)

    def remove(self, record_id: str) -> bool:
        """Remove an identity. Idempotent: returns False if it was not present."""
        before = len(self._records)
        self._records = [r for r in self._records if r.id != record_id]
        removed = len(self._records) != before
        self._sync()
        if removed:
            logger.info("Identity removed: %s", record_id)
        return removed

    def update(self, record_id: str, mutator: Mutator) -> Identity:
        """Apply ``mutator`` to a copy of the record and swap it in.

        The copy is revalidated before it replaces the original, so a mutator
        that raises or breaks an invariant (vault size) leaves the store as is.
        """
        index = self._index(record_id)
        candidate = self._records[index].model_copy(deep=True)
        try:
            mutator(candidate)
            updated = Identity.model_validate(candidate.to_dict())
        except ValidationError as e:
            raise RejectedInput(f"Update rejected for {record_id}: {e}") from e
        if updated.id != record_id:
            raise RejectedInput("Identity id is immutable", field="id")

        self._records[index] = updated
        self._sync()
        return updated.model_copy(deep=True)

    def replace_all(self, records: Iterable[Identity]) -> int:
        """Wholesale substitution (backup import). Persists immediately."""
        self._records = _unique(r.model_copy(deep=True) for r in records)
        self._sync()
        logger.info("Record store replaced with %d identities", len(self._records))
        return len(self._records)

    # ── Internals ────────────────────────────────────────────────────

    def _index(self, record_id: str) -> int:
        for i, r in enumerate(self._records):
            if r.id == record_id:
                return i
        raise NotFound(record_id)

    def _find(self, record_id: str) -> Identity:
        return self._records[self._index(record_id)]

    def _sync(self) -> None:
        """Hand the full collection to the backend. Failures are logged, not raised."""
        try:
            self._persistence.save(self.records)
        except Exception as e:
            logger.error("Persistence sync failed (%d identities): %s", len(self._records), e)


def _unique(records: Iterable[Identity]) -> list[Identity]:
    """Keep collection-wide id uniqueness: later duplicates get fresh ids."""
    seen: set[str] = set()
    out: list[Identity] = []
    for record in records:
        if record.id in seen:
            fresh = new_id()
            logger.warning("Duplicate identity id %s reassigned to %s", record.id, fresh)
            record = record.model_copy(update={"id": fresh})
        seen.add(record.id)
        out.append(record)
    return out
