"""Timing of the stages of a deployment run."""

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
import logging
from time import perf_counter

__all__ = [
    "StageTiming",
    "stage_scope",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageTiming:
    """Elapsed time of one pipeline stage."""

    name: str
    elapsed: float
    """Seconds spent in the stage."""

    failed: bool = False

    def __str__(self) -> str:
        status = " (failed)" if self.failed else ""
        return f"{self.name}: {self.elapsed:0.2f}s{status}"


@contextmanager
def stage_scope(name: str, timings: list[StageTiming]) -> Generator[None, None, None]:
    """Log a stage and append its timing to `timings` when it exits.

    A stage that raises is still recorded, marked as failed.
    """
    start = perf_counter()
    _LOGGER.debug("Stage %s started", name)
    failed = True
    try:
        yield
        failed = False
    finally:
        timing = StageTiming(name, perf_counter() - start, failed)
        timings.append(timing)
        _LOGGER.debug("Stage %s", timing)
