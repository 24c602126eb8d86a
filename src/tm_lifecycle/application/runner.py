# src/tm_lifecycle/application/runner.py
"""In-process sweep runner.

Runs timeout, maturity and matching sweeps every SWEEP_INTERVAL_SECONDS on
the event loop. Several workers may each run one; the sweeps are idempotent
and matching is serialised by the global matching lock.
"""
import asyncio
import contextlib
import logging
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.tm_common.database import async_session_factory
from src.tm_lifecycle.application.scheduler import LifecycleScheduler
from src.tm_lifecycle.application.service import get_lifecycle_scheduler

logger = logging.getLogger(__name__)


class SweepRunner:
    def __init__(
        self,
        interval_seconds: float | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        scheduler_factory: Callable[[], LifecycleScheduler] = get_lifecycle_scheduler,
    ) -> None:
        self.interval_seconds = float(interval_seconds or settings.SWEEP_INTERVAL_SECONDS)
        self._session_factory = session_factory or async_session_factory
        self._scheduler_factory = scheduler_factory
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name="tm-sweep-runner")
        logger.info("sweep runner started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("sweep runner stopped")

    async def run_once(self) -> None:
        scheduler = self._scheduler_factory()
        for name, sweep in (
            ("timeout", scheduler.run_timeout_sweep),
            ("maturity", scheduler.run_maturity_sweep),
            ("matching", scheduler.run_matching_sweep),
        ):
            async with self._session_factory() as db:
                try:
                    await sweep(db)
                except Exception:
                    await db.rollback()
                    logger.exception("%s sweep run failed", name)

    async def _loop(self) -> None:
        while not self._stop.is_set():
            await self.run_once()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
