"""Test fixtures for the Sentinel core: in-memory collaborators and a fake clock."""

from __future__ import annotations

import pytest

from sentinel.config import Config, TimingConfig
from sentinel.events import ALL_EVENTS, EventBus
from sentinel.models import IdentityDraft
from sentinel.observer import MemoryObserver
from sentinel.persistence import MemoryPersistence
from sentinel.session import SentinelSession
from sentinel.store import RecordStore
from sentinel.vault import VaultSlotEngine

SECRET = "JBSWY3DPEHPK3PXP"


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def observer() -> MemoryObserver:
    return MemoryObserver()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def captured(bus: EventBus) -> list[dict]:
    """Every event published on ``bus``."""
    events: list[dict] = []
    bus.subscribe(ALL_EVENTS, events.append)
    return events


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(persistence: MemoryPersistence) -> RecordStore:
    return RecordStore(persistence)


@pytest.fixture
def record(store: RecordStore):
    """One identity in the store."""
    return store.add(IdentityDraft(name="GitHub", secret=SECRET))


@pytest.fixture
def engine(store: RecordStore, bus: EventBus, clock: FakeClock) -> VaultSlotEngine:
    return VaultSlotEngine(store, bus=bus, paste_window=1.5, clock=clock)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        home=tmp_path,
        store_file=tmp_path / "identities.json",
        observer_file=tmp_path / "observer.json",
        backup_dir=tmp_path / "backups",
        timing=TimingConfig(tick_seconds=1.0, paste_window=1.5, totp_period=30),
    )


@pytest.fixture
def session(persistence, observer, bus, config, clock) -> SentinelSession:
    return SentinelSession(persistence, observer, bus=bus, config=config, clock=clock)


@pytest.fixture
def notices(captured: list[dict]):
    """Callable returning the notification payloads published so far."""

    def _notices() -> list[dict]:
        return [e["payload"] for e in captured if e["type"] == "notify"]

    return _notices
