"""Engine runner: startup recovery and the periodic refresh loop.

Startup:
1. Backfill dates missed since the last generation marker (overdue)
2. Generate today's instances (pending)
3. Promote stale pending instances to overdue

While running, a background task ticks every REFRESH_INTERVAL_SECONDS,
or early when a change event arrives: it generates today's instances
(covering a day rollover while the process stays up), runs the overdue
sweep and recomputes today's badge counts.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import structlog

from app.config import get_settings
from core.events import ChangeEvent, EventBus, get_event_bus
from core.utils import local_now, utc_now
from services.instance_generator import GenerationError, GenerationResult, InstanceGenerator
from services.lifecycle_service import LifecycleService
from services.pending_counts import PendingCountAggregator, PendingCounts

logger = structlog.get_logger(__name__)


class EngineRunner:
    """Drives generation and reclassification outside request handling.

    Singleton, use get_engine_runner().
    """

    def __init__(
        self,
        session_factory=None,
        clock: Callable[[], datetime] = local_now,
        event_bus: Optional[EventBus] = None,
        interval: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self.clock = clock
        self.event_bus = event_bus or get_event_bus()
        self.interval = interval if interval is not None else get_settings().refresh_interval

        self.latest_counts: Optional[PendingCounts] = None
        self.last_recovery: Optional[GenerationResult] = None
        self.last_errors: List[GenerationError] = []
        self.last_tick_at: Optional[datetime] = None

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def session_factory(self):
        if self._session_factory is None:
            from db.database import AsyncSessionLocal

            self._session_factory = AsyncSessionLocal
        return self._session_factory

    @property
    def is_running(self) -> bool:
        return self._running

    async def recover(self) -> GenerationResult:
        """Run startup recovery. Failures are logged, never raised."""
        result = GenerationResult()
        try:
            async with self.session_factory() as session:
                generator = InstanceGenerator(session, clock=self.clock, event_bus=self.event_bus)
                result = await generator.generate_missed()
                result.merge(await generator.generate_date(self.clock().date()))

                lifecycle = LifecycleService(session, clock=self.clock, event_bus=self.event_bus)
                await lifecycle.reclassify_overdue()
        except Exception as e:
            logger.error("Startup recovery failed", error=str(e), exc_info=True)
            result.errors.append(GenerationError("*", self.clock().date(), str(e)))

        self.last_recovery = result
        self.last_errors = list(result.errors)
        logger.info(
            "Startup recovery finished",
            generated=result.generated,
            missed_dates=[d.isoformat() for d in result.missed_dates],
            errors=len(result.errors),
        )
        return result

    async def tick(self) -> PendingCounts:
        """Generate today, reclassify, and refresh today's counts."""
        async with self.session_factory() as session:
            generator = InstanceGenerator(session, clock=self.clock, event_bus=self.event_bus)
            generated = await generator.generate_date(self.clock().date())
            if generated.errors:
                self.last_errors = list(generated.errors)

            aggregator = PendingCountAggregator(session, clock=self.clock, event_bus=self.event_bus)
            counts = await aggregator.counts_for(self.clock().date())

        self.latest_counts = counts
        self.last_tick_at = utc_now()
        return counts

    # ─── Background loop ───────────────────────────────────

    async def start(self) -> None:
        """Start the periodic refresh task."""
        if self._running:
            return
        self._running = True
        self._wake = asyncio.Event()
        self._unsubscribe = self.event_bus.subscribe(self._on_change)
        self._task = asyncio.create_task(self._loop())
        logger.info("Engine refresh loop started", interval=self.interval)

    async def stop(self) -> None:
        """Stop the periodic refresh task."""
        self._running = False
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Engine refresh loop stopped")

    def _on_change(self, event: ChangeEvent) -> None:
        if self._wake is not None:
            self._wake.set()

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.tick()
            except Exception as e:
                logger.error("Engine tick failed", error=str(e))

            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            self._wake.clear()

    def status(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "interval_seconds": self.interval,
            "last_tick_at": self.last_tick_at.isoformat() if self.last_tick_at else None,
            "counts": self.latest_counts.to_dict() if self.latest_counts else None,
            "last_recovery": self.last_recovery.to_dict() if self.last_recovery else None,
            "last_errors": [e.to_dict() for e in self.last_errors],
        }


_engine_runner: Optional[EngineRunner] = None


def get_engine_runner() -> EngineRunner:
    """Get or create the process-wide engine runner."""
    global _engine_runner
    if _engine_runner is None:
        _engine_runner = EngineRunner()
    return _engine_runner
