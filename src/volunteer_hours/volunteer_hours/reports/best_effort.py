"""Best-effort fan-out for independent report metrics.

Each unit runs on its own worker with its own deadline. A unit that raises
or overruns yields a result carrying the error instead of a value; it never
affects the other units.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricUnit:
    name: str
    compute: Callable[[], Any]


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_best_effort(units: Sequence[MetricUnit], *, timeout: float) -> dict[str, MetricResult]:
    if not units:
        return {}

    executor = ThreadPoolExecutor(max_workers=len(units), thread_name_prefix="report-metric")
    try:
        started = time.monotonic()
        futures = [(unit, executor.submit(unit.compute)) for unit in units]

        results: dict[str, MetricResult] = {}
        for unit, future in futures:
            remaining = max(0.0, started + timeout - time.monotonic())
            try:
                results[unit.name] = MetricResult(unit.name, value=future.result(timeout=remaining))
            except FutureTimeoutError:
                future.cancel()
                logger.warning("Report metric %s timed out after %.2fs", unit.name, timeout)
                results[unit.name] = MetricResult(unit.name, error=TimeoutError(f"{unit.name} timed out"))
            except Exception as e:
                logger.warning("Report metric %s failed: %s", unit.name, e, exc_info=True)
                results[unit.name] = MetricResult(unit.name, error=e)
        return results
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
