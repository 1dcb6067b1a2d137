"""Debounced report generation for the ingestion server."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from changecov.report.assembler import AnalysisReport

logger = structlog.get_logger()


@dataclass
class ReportScheduler:
    """
    Rate-limited report generation.

    Design:
    - At most one generation per ``interval_sec``
    - A request inside the cooldown window schedules a single deferred run
      at the end of the window; further requests reuse it
    - A request while a generation is still running schedules one follow-up
      run that starts when the current one ends
    - ``run_now`` and ``flush`` bypass the cooldown
    - Generation runs on a single worker thread so the event loop keeps
      accepting uploads
    """

    generate: Callable[[], AnalysisReport]
    interval_sec: float = 10.0
    clock: Callable[[], float] = time.monotonic

    _executor: ThreadPoolExecutor | None = field(default=None, init=False)
    _run_lock: asyncio.Lock | None = field(default=None, init=False)
    _last_run: float | None = field(default=None, init=False)
    _deferred_task: asyncio.Task[None] | None = field(default=None, init=False)
    _immediate_task: asyncio.Task[AnalysisReport | None] | None = field(default=None, init=False)
    _dirty: bool = field(default=False, init=False)
    _stopping: bool = field(default=False, init=False)
    _runs: int = field(default=0, init=False)
    _last_error: str | None = field(default=None, init=False)

    @property
    def runs(self) -> int:
        return self._runs

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def has_pending(self) -> bool:
        return self._deferred_task is not None and not self._deferred_task.done()

    def start(self) -> None:
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="changecov-report")
        self._stopping = False
        logger.info("report_scheduler_started", interval_sec=self.interval_sec)

    def _lock(self) -> asyncio.Lock:
        if self._run_lock is None:
            self._run_lock = asyncio.Lock()
        return self._run_lock

    def request(self) -> None:
        """Ask for a report; runs now or at the end of the cooldown window."""
        if self._stopping:
            return
        self._dirty = True
        loop = asyncio.get_running_loop()

        elapsed = None if self._last_run is None else self.clock() - self._last_run
        if elapsed is None or elapsed >= self.interval_sec:
            if self._immediate_task is None or self._immediate_task.done():
                self._immediate_task = loop.create_task(self._run())
                return
            # a generation is still running; follow up as soon as it ends
            delay = 0.0
        else:
            delay = self.interval_sec - elapsed

        if not self.has_pending:
            self._deferred_task = loop.create_task(self._deferred(delay))
            logger.debug("report_deferred", delay_sec=round(delay, 3))

    async def _deferred(self, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self._lock():
            # Past this point the run is no longer cancellable by run_now/flush
            self._deferred_task = None
            await self._generate()

    async def _run(self) -> AnalysisReport | None:
        async with self._lock():
            return await self._generate()

    async def _generate(self) -> AnalysisReport | None:
        self._dirty = False
        self._last_run = self.clock()
        loop = asyncio.get_running_loop()
        try:
            report = await loop.run_in_executor(self._executor, self.generate)
        except Exception as e:
            self._last_error = str(e)
            logger.exception("report_generation_failed", error=str(e))
            return None
        self._runs += 1
        self._last_error = None
        return report

    async def run_now(self) -> AnalysisReport | None:
        """Generate immediately, replacing any deferred run."""
        self._cancel_deferred()
        return await self._run()

    def _cancel_deferred(self) -> None:
        task, self._deferred_task = self._deferred_task, None
        if task is not None and not task.done():
            task.cancel()

    async def flush(self) -> AnalysisReport | None:
        """Run once more if samples arrived since the last run, then stop accepting."""
        self._stopping = True
        self._cancel_deferred()
        if self._immediate_task is not None and not self._immediate_task.done():
            await asyncio.wait([self._immediate_task])
        if not self._dirty:
            return None
        logger.info("report_flush")
        return await self._run()

    async def stop(self) -> None:
        self._stopping = True
        self._cancel_deferred()
        if self._immediate_task is not None and not self._immediate_task.done():
            self._immediate_task.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        logger.info("report_scheduler_stopped", runs=self._runs)
