"""In-memory registry of scheduled monitoring jobs."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Dict, List, Optional

from monitoring.models import JobTiming, Monitoring

TickCallback = Callable[[Monitoring], Awaitable[None]]


class ScheduledJob:
    """A monitoring paired with the task that runs its recurring ticks.

    The loop waits ``timing.delay`` seconds, then alternates between one tick
    and ``timing.period`` seconds of sleep. Ticks acquire a slot from the
    shared worker semaphore, so at most ``worker_pool_size`` ticks run at once
    across all jobs. Ticks of a single job never overlap.
    """

    def __init__(
        self,
        monitoring: Monitoring,
        timing: JobTiming,
        tick: TickCallback,
        slots: asyncio.Semaphore,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.monitoring = monitoring
        self.timing = timing
        self._tick = tick
        self._slots = slots
        self._logger = logger or logging.getLogger("JobRegistry")
        self._cancel_requested = False
        self._in_tick = False
        self.ticks = 0
        self.task: Optional[asyncio.Task] = None

    @property
    def record_id(self) -> int:
        return self.monitoring.record_id

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    @property
    def in_tick(self) -> bool:
        return self._in_tick

    def start(self) -> "ScheduledJob":
        self.task = asyncio.create_task(self._run(), name=f"monitoring-{self.record_id}")
        return self

    def cancel(self) -> None:
        """Request cancellation without waiting for the task.

        Safe to call from inside this job's own tick: an in-flight tick runs to
        completion and the loop exits afterwards. An idle job is cancelled
        immediately.
        """

        self._cancel_requested = True
        if self.task is None or self.task.done():
            return

        loop = self.task.get_loop()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._cancel_if_idle()
        else:
            loop.call_soon_threadsafe(self._cancel_if_idle)

    def _cancel_if_idle(self) -> None:
        if self.task is None or self.task.done() or self._in_tick:
            return
        if self.task is asyncio.current_task():
            return
        self.task.cancel()

    async def _run(self) -> None:
        await asyncio.sleep(self.timing.delay)
        while not self._cancel_requested:
            async with self._slots:
                if self._cancel_requested:
                    break
                self._in_tick = True
                try:
                    await self._tick(self.monitoring)
                except Exception:
                    self._logger.exception(
                        "Unhandled error in monitoring [#%s] tick", self.record_id
                    )
                finally:
                    self._in_tick = False
                    self.ticks += 1
            if self._cancel_requested:
                break
            await asyncio.sleep(self.timing.period)


class JobRegistry:
    """Thread-safe map of monitoring id to :class:`ScheduledJob`.

    Insertion is check-and-insert and removal is remove-and-return, both under
    one lock, so a discovery insert and a deactivation removal for the same id
    cannot leave a cancelled job registered or schedule a record twice.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._jobs: Dict[int, ScheduledJob] = {}

    def register(
        self, record_id: int, factory: Callable[[], ScheduledJob]
    ) -> Optional[ScheduledJob]:
        """Create and store a job unless ``record_id`` is already registered.

        ``factory`` runs under the registry lock and must not block.
        Returns the new job, or ``None`` when the id was already present.
        """

        with self._lock:
            if record_id in self._jobs:
                return None
            job = factory()
            self._jobs[record_id] = job
            return job

    def remove(self, record_id: int) -> Optional[ScheduledJob]:
        with self._lock:
            return self._jobs.pop(record_id, None)

    def snapshot(self) -> List[ScheduledJob]:
        with self._lock:
            return list(self._jobs.values())

    def ids(self) -> List[int]:
        with self._lock:
            return list(self._jobs)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
