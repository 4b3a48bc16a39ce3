"""
In-process load runner.

Executes a :class:`~workload.scenarios.ScenarioDefinition` with a pool
of ``RunConfig.concurrency`` worker threads.  Each worker owns its own
``requests.Session`` and loops iterations (request, check, pacing) until
the deadline derived from ``RunConfig.duration`` passes.  Results are
aggregated into a :class:`RunSummary` guarded by a lock; nothing else is
shared between workers.

When the deadline passes, in-flight requests are allowed to finish and
are still recorded; pacing sleeps are cut short.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import Counter
from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any

import requests

from workload.models import FailureKind, IterationResult, RunConfig
from workload.scenarios import ScenarioDefinition, run_iteration

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


@dataclass
class RunSummary:
    """Aggregate outcome of a run; safe to update from worker threads."""

    scenario: str
    check_name: str
    concurrency: int
    duration: str
    started_at: float = 0.0
    finished_at: float = 0.0
    iterations: int = 0
    checks_passed: int = 0
    checks_failed: int = 0
    # Transport or status failures, as opposed to check mismatches.
    request_failures: int = 0
    failures: Counter = field(default_factory=Counter)
    _latencies_ms: list[float] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, result: IterationResult) -> None:
        with self._lock:
            self.iterations += 1
            self._latencies_ms.append(result.elapsed_ms)
            if result.check_passed:
                self.checks_passed += 1
            else:
                self.checks_failed += 1
            if result.request_failed:
                self.request_failures += 1
            if result.failure is not None:
                self.failures[result.failure.value] += 1

    @property
    def failed_iterations(self) -> int:
        return sum(self.failures.values())

    @property
    def error_rate_percent(self) -> float:
        if self.iterations == 0:
            return 0.0
        return self.request_failures / self.iterations * 100.0

    @property
    def check_failure_percent(self) -> float:
        total = self.checks_passed + self.checks_failed
        if total == 0:
            return 0.0
        return self.checks_failed / total * 100.0

    @property
    def duration_s(self) -> float:
        return max(self.finished_at - self.started_at, 0.0)

    @property
    def requests_per_second(self) -> float:
        if self.duration_s == 0:
            return 0.0
        return self.iterations / self.duration_s

    def percentile(self, pct: float) -> float:
        """Nearest-rank latency percentile in milliseconds (0.0 when empty)."""
        with self._lock:
            latencies = sorted(self._latencies_ms)
        if not latencies:
            return 0.0
        rank = math.ceil(pct / 100.0 * len(latencies)) - 1
        return latencies[min(max(rank, 0), len(latencies) - 1)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario": self.scenario,
            "check": self.check_name,
            "concurrency": self.concurrency,
            "duration": self.duration,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "elapsed_s": round(self.duration_s, 3),
            "iterations": self.iterations,
            "failed_iterations": self.failed_iterations,
            "request_failures": self.request_failures,
            "checks_passed": self.checks_passed,
            "checks_failed": self.checks_failed,
            "failures": dict(self.failures),
            "error_rate_percent": round(self.error_rate_percent, 3),
            "check_failure_percent": round(self.check_failure_percent, 3),
            "requests_per_second": round(self.requests_per_second, 3),
            "p50_ms": round(self.percentile(50), 3),
            "p95_ms": round(self.percentile(95), 3),
            "p99_ms": round(self.percentile(99), 3),
        }


class LoadRunner:
    """Run one scenario with a fixed-size worker pool until a deadline."""

    def __init__(
        self,
        run_config: RunConfig,
        definition: ScenarioDefinition,
        host: str,
        session_factory: SessionFactory = requests.Session,
    ) -> None:
        self._run_config = run_config.validate()
        self._definition = definition
        self._host = host
        self._session_factory = session_factory
        self._stop_event = threading.Event()
        self._started = False

    def run(self) -> RunSummary:
        """
        Execute the run and return its summary.

        Request failures are recorded, not raised.  Any other exception
        from a worker stops the remaining workers and propagates.
        A runner executes once; calling this again raises RuntimeError.
        """
        if self._started:
            raise RuntimeError("LoadRunner.run() may only be called once; create a new runner")
        self._started = True

        config = self._run_config
        summary = RunSummary(
            scenario=self._definition.name,
            check_name=self._definition.check_name,
            concurrency=config.concurrency,
            duration=config.duration,
        )

        logger.info(
            "Starting scenario %s: %d VUs for %s against %s (pacing=%s)",
            self._definition.name,
            config.concurrency,
            config.duration,
            self._definition.url(self._host),
            self._definition.pacing_seconds,
        )

        summary.started_at = time.time()
        deadline = time.monotonic() + config.duration_seconds

        with ThreadPoolExecutor(
            max_workers=config.concurrency, thread_name_prefix="vu"
        ) as pool:
            futures = [
                pool.submit(self._worker, deadline, summary)
                for _ in range(config.concurrency)
            ]
            try:
                done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            finally:
                self._stop_event.set()
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error

        summary.finished_at = time.time()

        logger.info(
            "Finished scenario %s: %d iterations, checks %d passed / %d failed",
            self._definition.name,
            summary.iterations,
            summary.checks_passed,
            summary.checks_failed,
        )
        return summary

    def stop(self) -> None:
        """Ask workers to exit after their current request."""
        self._stop_event.set()

    def _worker(self, deadline: float, summary: RunSummary) -> None:
        session = self._session_factory()
        pacing = self._definition.pacing_seconds
        try:
            while not self._stop_event.is_set() and time.monotonic() < deadline:
                result = run_iteration(
                    self._definition,
                    session,
                    self._host,
                    self._run_config.request_timeout,
                )
                summary.record(result)

                if pacing:
                    remaining = deadline - time.monotonic()
                    if pacing >= remaining:
                        # Think time outlasts the run; no further iteration fits.
                        self._stop_event.wait(timeout=max(remaining, 0))
                        break
                    self._stop_event.wait(timeout=pacing)
        finally:
            session.close()


def run_workload(
    definition: ScenarioDefinition,
    host: str,
    run_config: RunConfig,
    session_factory: SessionFactory = requests.Session,
) -> RunSummary:
    """Validate *run_config*, run *definition* once, and return the summary."""
    runner = LoadRunner(run_config, definition, host, session_factory=session_factory)
    return runner.run()
