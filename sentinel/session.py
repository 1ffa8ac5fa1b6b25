"""
Sentinel session — the boundary between a user interface and the core.

Owns the selection, the creation draft, the tag filter and the
hidden-description reveal flag. Every operation here reports its outcome as
a ``notify`` event on the bus; failures are also re-raised so the caller can
branch on them.

Usage:
    from sentinel.session import open_session

    session = open_session()
    record = session.add_identity(IdentityDraft(name="GitHub", secret="JBSWY3DPEHPK3PXP"))
    session.select(record.id)
    session.vault.edit(0)
    session.commit_slot(0, "abcd-1234")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from sentinel import events
from sentinel.backup import BackupCodec, DecodedBackup
from sentinel.config import Config, get_config
from sentinel.errors import ConfirmationRequired, SentinelError
from sentinel.events import EventBus
from sentinel.models import Identity, IdentityDraft
from sentinel.observer import JsonObserverStore, ObserverService
from sentinel.persistence import JsonFilePersistence, Persistence
from sentinel.store import RecordStore
from sentinel.tags import TagClassifier, toggle
from sentinel.ticker import CodeTicker
from sentinel.totp import CodeGenerator, TotpGenerator
from sentinel.vault import VaultSlotEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SentinelSession:
    """Wires store, vault engine, tags, backup codec and ticker together."""

    def __init__(
        self,
        persistence: Persistence,
        observer: ObserverService,
        *,
        generator: CodeGenerator | None = None,
        bus: EventBus | None = None,
        config: Config | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        cfg = config or get_config()
        self.config = cfg
        self.bus = bus or EventBus()
        self.store = RecordStore(persistence)
        engine_kwargs = {"clock": clock} if clock is not None else {}
        self.vault = VaultSlotEngine(
            self.store, bus=self.bus, paste_window=cfg.timing.paste_window, **engine_kwargs
        )
        self.tags = TagClassifier()
        self.codec = BackupCodec(self.store, observer)
        self.ticker = CodeTicker(
            self.store,
            generator or TotpGenerator(period=cfg.timing.totp_period),
            bus=self.bus,
            interval=cfg.timing.tick_seconds,
        )
        self.draft = IdentityDraft()
        self.reveal_hidden = False

    # ── Helpers ──────────────────────────────────────────────────────

    @contextmanager
    def _reporting(self) -> Iterator[None]:
        """Turn a SentinelError into a reminder notification, then re-raise."""
        try:
            yield
        except SentinelError as e:
            self.bus.notify(str(e), events.REMINDER, category=e.category)
            raise

    def _guard(self, fn: Callable[[], T]) -> T:
        with self._reporting():
            return fn()

    # ── Selection & browsing ─────────────────────────────────────────

    @property
    def selected_id(self) -> str | None:
        return self.vault.selected_id

    def selected(self) -> Identity | None:
        return self.store.get(self.selected_id) if self.selected_id else None

    def select(self, record_id: str | None) -> None:
        """Change the selection; transient slot and reveal state is dropped."""
        if record_id is not None:
            self._guard(lambda: self.store.get(record_id))
        previous = self.vault.selected_id
        self.vault.select(record_id)
        self.reveal_hidden = False
        if previous != record_id:
            self.bus.publish(
                "selection.changed", {"previous": previous, "current": record_id}, source="session"
            )

    def set_filter(self, tag: str | None) -> None:
        self.tags.set_filter(tag)

    def visible(self) -> list[Identity]:
        return self.tags.visible(self.store.records)

    # ── Identity lifecycle ───────────────────────────────────────────

    def load(self) -> int:
        return self.store.load()

    def toggle_draft_tag(self, tag: str) -> list[str]:
        return self._guard(lambda: self.draft.toggle_tag(tag))

    def add_identity(self, draft: IdentityDraft | None = None) -> Identity:
        """Create an identity from ``draft`` (default: the session's own draft)."""
        source = draft or self.draft
        record = self._guard(lambda: self.store.add(source))
        if draft is None:
            self.draft.clear()
        self.bus.notify("Channel Established", events.SUCCESS, category="added")
        return record

    def delete_identity(self, record_id: str, *, confirmed: bool) -> bool:
        """Remove an identity; the user must already have confirmed."""
        with self._reporting():
            if not confirmed:
                raise ConfirmationRequired("Deleting an identity requires confirmation")
            removed = self.store.remove(record_id)
        if self.selected_id == record_id:
            self.select(None)
        self.bus.notify("Channel Terminated", events.REMINDER, category="removed")
        return removed

    def toggle_tag(self, record_id: str, tag: str) -> Identity:
        def _toggle(record: Identity) -> None:
            record.tags = toggle(record.tags, tag)

        return self._guard(lambda: self.store.update(record_id, _toggle))

    def update_note(self, record_id: str, note: str) -> Identity:
        return self._guard(lambda: self.store.update(record_id, lambda r: setattr(r, "note", note)))

    def update_hidden_description(self, record_id: str, text: str) -> Identity:
        return self._guard(
            lambda: self.store.update(record_id, lambda r: setattr(r, "hidden_description", text))
        )

    def toggle_hidden_reveal(self) -> bool:
        self.reveal_hidden = not self.reveal_hidden
        return self.reveal_hidden

    def hidden_text(self, mask: str) -> str:
        """Hidden description of the selection, masked unless revealed."""
        record = self.selected()
        if record is None or not record.hidden_description:
            return ""
        return record.hidden_description if self.reveal_hidden else mask

    def copy_hidden(self, record_id: str) -> str | None:
        """Hidden description to put on the clipboard; None when it is blank."""
        text = self._guard(lambda: self.store.get(record_id)).hidden_description
        if not text:
            return None
        self.bus.notify("Hidden Description Secured to Clipboard", events.SUCCESS, category="copy")
        return text

    # ── Vault ────────────────────────────────────────────────────────

    def commit_slot(self, index: int, text: str) -> Identity:
        record = self._guard(lambda: self.vault.commit(index, text))
        if text.strip():
            self.bus.notify("Vault Slot Updated", events.SUCCESS, category="vault")
        return record

    def paste_slot(self, index: int, text: str) -> list[int]:
        written = self._guard(lambda: self.vault.paste(index, text))
        if written:
            self.bus.notify(f"{len(written)} Codes Securely Pasted", events.SUCCESS, category="vault")
        return written

    def copy_slot(self, index: int) -> str | None:
        """Code to put on the clipboard; None (and no notification) for an empty slot."""
        code = self._guard(lambda: self.vault.copyable(index))
        if code is not None:
            self.bus.notify("Secure Code Copied", events.SUCCESS, category="copy")
        return code

    # ── Backup ───────────────────────────────────────────────────────

    def export_backup(self, directory: Path | str | None = None) -> Path:
        path = self.codec.export_to(directory or self.config.backup_dir)
        self.bus.notify("Global System Exported (.nexus)", events.SUCCESS, category="export")
        return path

    def import_backup(self, text: str | bytes, *, confirmed: bool) -> DecodedBackup:
        """Replace everything with a backup. Corrupt input changes nothing."""
        decoded = self._guard(lambda: self.codec.import_text(text, confirmed=confirmed))
        self.select(None)
        if decoded.observer_data:
            self.bus.notify(
                f"Observer: {len(decoded.observer_data)} records restored",
                events.INFO,
                category="import",
            )
        self.bus.notify("System Link Re-established", events.SUCCESS, category="import")
        return decoded

    # ── Codes ────────────────────────────────────────────────────────

    async def refresh_codes(self) -> dict[str, str]:
        return await self.ticker.tick()


def open_session(config: Config | None = None, *, bus: EventBus | None = None) -> SentinelSession:
    """Build a session on the configured JSON files and load the store."""
    cfg = config or get_config()
    session = SentinelSession(
        JsonFilePersistence(cfg.store_file),
        JsonObserverStore(cfg.observer_file),
        bus=bus,
        config=cfg,
    )
    session.load()
    return session
