"""Tests for sentinel.ticker — batched, concurrent code refresh."""

import asyncio

import pytest

from sentinel.models import IdentityDraft
from sentinel.ticker import JOB_ID, CodeTicker


class FakeGenerator:
    """Returns '<secret>:<round>' and records call order; can be held on a gate."""

    def __init__(self, remaining: int = 17) -> None:
        self._remaining = remaining
        self.started: list[str] = []
        self.gate: asyncio.Event | None = None
        self.round = 0

    async def generate(self, secret: str) -> str:
        self.started.append(secret)
        gate = self.gate
        if gate is not None:
            await gate.wait()
        return f"{secret}:{self.round}"

    def remaining(self) -> int:
        return self._remaining


@pytest.fixture
def two_records(store):
    a = store.add(IdentityDraft(name="a", secret="AAAA"))
    b = store.add(IdentityDraft(name="b", secret="BBBB"))
    return a, b


def _updates(captured):
    return [e for e in captured if e["type"] == "codes.updated"]


class TestTick:
    @pytest.mark.asyncio
    async def test_batch_published_once(self, store, bus, captured, two_records):
        ticker = CodeTicker(store, FakeGenerator(), bus=bus)
        codes = await ticker.tick()
        a, b = two_records
        assert codes == {a.id: "AAAA:0", b.id: "BBBB:0"}
        assert ticker.codes == codes
        assert ticker.remaining == 17
        updates = _updates(captured)
        assert len(updates) == 1
        assert updates[0]["payload"]["codes"] == codes
        assert updates[0]["payload"]["remaining"] == 17

    @pytest.mark.asyncio
    async def test_empty_store(self, store, bus):
        ticker = CodeTicker(store, FakeGenerator(), bus=bus)
        assert await ticker.tick() == {}

    @pytest.mark.asyncio
    async def test_generation_runs_concurrently(self, store, bus, two_records):
        gen = FakeGenerator()
        gen.gate = asyncio.Event()
        ticker = CodeTicker(store, gen, bus=bus)

        task = asyncio.create_task(ticker.tick())
        await asyncio.sleep(0.01)
        # Both generations started before either finished
        assert gen.started == ["AAAA", "BBBB"]
        assert ticker.codes == {}

        gen.gate.set()
        await task
        assert len(ticker.codes) == 2

    @pytest.mark.asyncio
    async def test_partial_batch_never_visible(self, store, bus, captured, two_records):
        gen = FakeGenerator()
        ticker = CodeTicker(store, gen, bus=bus)
        await ticker.tick()

        gen.round = 1
        gen.gate = asyncio.Event()
        task = asyncio.create_task(ticker.tick())
        await asyncio.sleep(0.01)
        assert set(ticker.codes.values()) == {"AAAA:0", "BBBB:0"}

        gen.gate.set()
        await task
        assert set(ticker.codes.values()) == {"AAAA:1", "BBBB:1"}

    @pytest.mark.asyncio
    async def test_stale_tick_discarded(self, store, bus, captured, two_records):
        gen = FakeGenerator()
        slow_gate = asyncio.Event()
        gen.gate = slow_gate
        ticker = CodeTicker(store, gen, bus=bus)

        slow = asyncio.create_task(ticker.tick())
        await asyncio.sleep(0.01)

        gen.gate = None
        gen.round = 1
        fresh = await ticker.tick()

        gen.round = 2
        slow_gate.set()
        await slow

        assert ticker.codes == fresh
        assert set(fresh.values()) == {"AAAA:1", "BBBB:1"}
        assert len(_updates(captured)) == 1

    @pytest.mark.asyncio
    async def test_new_record_picked_up_next_tick(self, store, bus, two_records):
        ticker = CodeTicker(store, FakeGenerator(), bus=bus)
        await ticker.tick()
        c = store.add(IdentityDraft(name="c", secret="CCCC"))
        codes = await ticker.tick()
        assert codes[c.id] == "CCCC:0"


class TestScheduling:
    @pytest.mark.asyncio
    async def test_start_registers_interval_job(self, store, bus, two_records):
        ticker = CodeTicker(store, FakeGenerator(), bus=bus, interval=1.0)
        ticker.start()
        try:
            assert ticker.running
            job = ticker.scheduler.get_job(JOB_ID)
            assert job is not None
            assert job.trigger.interval.total_seconds() == 1.0
        finally:
            ticker.stop()
        assert not ticker.running

    @pytest.mark.asyncio
    async def test_first_tick_fires_immediately(self, store, bus, captured, two_records):
        ticker = CodeTicker(store, FakeGenerator(), bus=bus, interval=1.0)
        ticker.start()
        try:
            for _ in range(50):
                if _updates(captured):
                    break
                await asyncio.sleep(0.02)
        finally:
            ticker.stop()
        assert _updates(captured)

    def test_stop_without_start(self, store):
        CodeTicker(store, FakeGenerator()).stop()
