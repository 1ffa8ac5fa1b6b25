"""
Vault Slot Engine — recovery-code slots of the selected identity.

Each identity has VAULT_SIZE slots. The interaction state of a slot is kept
here, apart from the data, keyed by (record_id, slot_index):

    IDLE_EMPTY     slot holds EMPTY_SLOT
    IDLE_MASKED    slot holds a code, shown masked
    IDLE_REVEALED  slot holds a code, shown in clear (at most one slot)
    EDITING        slot has an open input
    JUST_PASTED    slot was filled by a paste less than paste_window ago

Only the selected identity has transient state. Changing the selection
drops all of it and cancels the pending paste-highlight timer.

The paste highlight is a deadline on a monotonic clock, so it expires even
with no event loop running. When a loop is running, a cancelable
``call_later`` handle also publishes ``vault.paste_expired`` at the deadline.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Callable
from enum import StrEnum

from sentinel.errors import SlotStateError
from sentinel.events import EventBus
from sentinel.models import EMPTY_SLOT, VAULT_SIZE, Identity
from sentinel.store import RecordStore

logger = logging.getLogger(__name__)

PASTE_WINDOW_SECONDS = 1.5

# Runs of newline, comma or space separate pasted codes
_PASTE_DELIMITERS = re.compile(r"[\n, ]+")


class SlotState(StrEnum):
    IDLE_EMPTY = "idle_empty"
    IDLE_MASKED = "idle_masked"
    IDLE_REVEALED = "idle_revealed"
    EDITING = "editing"
    JUST_PASTED = "just_pasted"


def tokenize_paste(text: str) -> list[str]:
    """Split clipboard text into codes; blanks are dropped."""
    tokens = (t.strip() for t in _PASTE_DELIMITERS.split(text))
    return [t for t in tokens if t]


def distribute(vault: list[str], start: int, tokens: list[str]) -> list[int]:
    """Write tokens into consecutive slots from ``start``, in place.

    Tokens that would land past the last slot are dropped. Returns the
    indices written.
    """
    written: list[int] = []
    for offset, token in enumerate(tokens):
        index = start + offset
        if index >= VAULT_SIZE:
            break
        vault[index] = token
        written.append(index)
    return written


class VaultSlotEngine:
    """Per-slot state machine for the currently selected identity."""

    def __init__(
        self,
        store: RecordStore,
        *,
        bus: EventBus | None = None,
        paste_window: float = PASTE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.bus = bus or EventBus()
        self.paste_window = paste_window
        self._clock = clock

        self.selected_id: str | None = None
        self.editing: int | None = None
        self.revealed: int | None = None
        self._pasted: frozenset[int] = frozenset()
        self._pasted_until: float = 0.0
        self._timer: asyncio.TimerHandle | None = None

    # ── Selection ────────────────────────────────────────────────────

    def select(self, record_id: str | None) -> None:
        """Switch the selected identity and reset every transient slot state."""
        self._cancel_timer()
        self.selected_id = record_id
        self.editing = None
        self.revealed = None
        self._pasted = frozenset()
        self._pasted_until = 0.0

    # ── State queries ────────────────────────────────────────────────

    @property
    def just_pasted(self) -> frozenset[int]:
        if self._pasted and self._clock() >= self._pasted_until:
            self._pasted = frozenset()
        return self._pasted

    def record(self) -> Identity:
        if self.selected_id is None:
            raise SlotStateError("No identity selected")
        return self.store.get(self.selected_id)

    def state(self, index: int) -> SlotState:
        _check_index(index)
        if self.selected_id is None:
            return SlotState.IDLE_EMPTY
        code = self.record().vault[index]
        if self.editing == index:
            return SlotState.EDITING
        if index in self.just_pasted:
            return SlotState.JUST_PASTED
        if code == EMPTY_SLOT:
            return SlotState.IDLE_EMPTY
        if self.revealed == index:
            return SlotState.IDLE_REVEALED
        return SlotState.IDLE_MASKED

    def states(self) -> list[SlotState]:
        return [self.state(i) for i in range(VAULT_SIZE)]

    def copyable(self, index: int) -> str | None:
        """Code in the slot, or None for an empty slot."""
        _check_index(index)
        code = self.record().vault[index]
        return None if code == EMPTY_SLOT else code

    # ── Transitions ──────────────────────────────────────────────────

    def click(self, index: int) -> SlotState:
        """Empty slot → editing; filled slot → toggle reveal. No-op without a selection."""
        _check_index(index)
        if self.selected_id is None or self.editing == index:
            return self.state(index)
        if self.record().vault[index] == EMPTY_SLOT:
            self.editing = index
            self.revealed = None
        else:
            self.revealed = None if self.revealed == index else index
        return self.state(index)

    def edit(self, index: int) -> SlotState:
        """Open the input on a slot regardless of its content."""
        _check_index(index)
        if self.selected_id is None:
            raise SlotStateError("No identity selected")
        self.editing = index
        self.revealed = None
        self._pasted = self._pasted - {index}
        return SlotState.EDITING

    def commit(self, index: int, text: str) -> Identity:
        """Save the edited slot. Blank input stores EMPTY_SLOT."""
        record_id = self._require_editing(index)
        value = text.strip() or EMPTY_SLOT

        def _set(record: Identity) -> None:
            record.vault[index] = value

        updated = self.store.update(record_id, _set)
        self.editing = None
        self._pasted = self._pasted - {index}
        self.bus.publish(
            "vault.slot_committed",
            {"record_id": record_id, "index": index, "empty": value == EMPTY_SLOT},
            source="vault",
        )
        return updated

    def paste(self, index: int, text: str) -> list[int]:
        """Spread pasted codes over slots from ``index`` on; one persist for the batch.

        With nothing to paste the slot stays in editing and nothing is saved.
        """
        record_id = self._require_editing(index)
        tokens = tokenize_paste(text)
        if not tokens:
            return []

        written: list[int] = []

        def _fill(record: Identity) -> None:
            written[:] = distribute(record.vault, index, tokens)

        self.store.update(record_id, _fill)
        dropped = len(tokens) - len(written)
        if dropped:
            logger.debug("Paste at slot %d dropped %d overflow tokens", index, dropped)

        self.editing = None
        self._mark_pasted(written)
        self.bus.publish(
            "vault.pasted",
            {"record_id": record_id, "indices": list(written), "dropped": dropped},
            source="vault",
        )
        return written

    # ── Internals ────────────────────────────────────────────────────

    def _require_editing(self, index: int) -> str:
        """Selected record id; raises unless ``index`` is the slot being edited."""
        _check_index(index)
        if self.selected_id is None:
            raise SlotStateError("No identity selected")
        if self.editing != index:
            raise SlotStateError(f"Slot {index + 1} is not being edited")
        return self.selected_id

    def _mark_pasted(self, indices: list[int]) -> None:
        self._cancel_timer()
        self._pasted = frozenset(indices)
        self._pasted_until = self._clock() + self.paste_window
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self.paste_window, self._expire, self.selected_id)

    def _expire(self, record_id: str | None) -> None:
        self._timer = None
        if record_id != self.selected_id:
            return
        self._pasted = frozenset()
        self.bus.publish("vault.paste_expired", {"record_id": record_id}, source="vault")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def _check_index(index: int) -> None:
    if not 0 <= index < VAULT_SIZE:
        raise IndexError(f"Slot index {index} out of range 0..{VAULT_SIZE - 1}")
