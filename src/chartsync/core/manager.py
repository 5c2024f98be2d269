"""Job manager that runs module collection cycles on their interval."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from .module import Module

logger = logging.getLogger(__name__)

Sink = Callable[["Job", dict[str, int]], None]


@dataclass
class Job:
    """A module instance scheduled every *update_every* seconds."""

    module: Module
    update_every: float
    next_run: float = 0.0
    consecutive_failures: int = 0
    failure_threshold: int = 3

    @property
    def name(self) -> str:
        return f"{self.module.name}[{self.module.job_name}]"

    @property
    def healthy(self) -> bool:
        return self.consecutive_failures < self.failure_threshold


class JobManager:
    """Runs collection cycles of several jobs and hands snapshots to sinks.

    All jobs share one background thread, so a job never starts a cycle
    before its previous cycle returned. Instantiate it with initialized
    jobs, register sinks via :meth:`add_sink`, then call :meth:`start` /
    :meth:`stop`.
    """

    def __init__(self, jobs: list[Job], *, clock: Callable[[], float] = time.monotonic) -> None:
        self._jobs = list(jobs)
        self._sinks: list[Sink] = []
        self._clock = clock
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    def add_sink(self, sink: Sink) -> None:
        """Register a callback to receive (job, snapshot) after each successful cycle."""
        self._sinks.append(sink)

    def run_job(self, job: Job) -> dict[str, int] | None:
        """Run one cycle of *job* and track its health."""
        try:
            mx = job.module.collect()
        except Exception:
            logger.exception("Job %s: collection cycle raised", job.name)
            mx = None

        if not mx:
            job.consecutive_failures += 1
            if job.consecutive_failures == job.failure_threshold:
                logger.warning("Job %s: %d consecutive empty cycles, unhealthy", job.name, job.consecutive_failures)
            return None

        if not job.healthy:
            logger.info("Job %s: recovered after %d empty cycles", job.name, job.consecutive_failures)
        job.consecutive_failures = 0
        for sink in self._sinks:
            try:
                sink(job, mx)
            except Exception:
                logger.exception("Sink failed")
        return mx

    def tick(self, now: float) -> float:
        """Run every due job once; return the time the next job is due."""
        for job in self._jobs:
            if now >= job.next_run:
                self.run_job(job)
                job.next_run = now + job.update_every
        return min((job.next_run for job in self._jobs), default=now + 1.0)

    def _run(self) -> None:
        """Background thread loop."""
        while not self._stop_event.is_set():
            due = self.tick(self._clock())
            self._stop_event.wait(max(0.05, due - self._clock()))

    def start(self) -> None:
        """Start collecting in the background."""
        if not self._jobs:
            logger.warning("JobManager has no jobs to run")
            return
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info("JobManager started (%d jobs)", len(self._jobs))

    def stop(self) -> None:
        """Stop background collection and clean up modules."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        for job in self._jobs:
            try:
                job.module.cleanup()
            except Exception:
                logger.exception("Job %s: cleanup failed", job.name)
        logger.info("JobManager stopped")
