"""
Code Ticker — APScheduler interval job that refreshes every identity's code.

Each tick generates all codes concurrently and applies them as one batch:
``codes`` is swapped in a single assignment and a single ``codes.updated``
event is published. A tick that completes after a newer tick has already
been applied is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from sentinel.events import EventBus
from sentinel.store import RecordStore
from sentinel.totp import CodeGenerator

logger = logging.getLogger(__name__)

JOB_ID = "sentinel:codes"


class CodeTicker:
    """Periodic batch code generation for the record store."""

    def __init__(
        self,
        store: RecordStore,
        generator: CodeGenerator,
        *,
        bus: EventBus | None = None,
        interval: float = 1.0,
    ) -> None:
        self.store = store
        self.generator = generator
        self.bus = bus or EventBus()
        self.interval = interval
        self.scheduler: AsyncIOScheduler | None = None

        self.codes: dict[str, str] = {}
        self.remaining: int = 0
        self._issued = 0
        self._applied = 0

    async def tick(self) -> dict[str, str]:
        """Generate and publish one batch of codes."""
        self._issued += 1
        seq = self._issued
        records = self.store.records
        remaining = self.generator.remaining()

        results = await asyncio.gather(*(self.generator.generate(r.secret) for r in records))
        batch = {r.id: code for r, code in zip(records, results, strict=True)}

        if seq < self._applied:
            logger.debug("Discarding stale tick %d (already applied %d)", seq, self._applied)
            return self.codes

        self._applied = seq
        self.codes = batch
        self.remaining = remaining
        self.bus.publish(
            "codes.updated",
            {"codes": dict(batch), "remaining": remaining, "tick": seq},
            source="ticker",
        )
        return batch

    def start(self) -> None:
        """Schedule the tick on the running event loop, firing immediately."""
        if self.scheduler is not None:
            return
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval),
            id=JOB_ID,
            name="codes:tick",
            max_instances=2,
            coalesce=True,
            misfire_grace_time=1,
            next_run_time=datetime.now(UTC),
        )
        self.scheduler.start()
        logger.info("Code ticker started (every %.1fs)", self.interval)

    def stop(self) -> None:
        """Shut down the scheduler."""
        if self.scheduler is None:
            return
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Code ticker stopped")
        self.scheduler = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running
