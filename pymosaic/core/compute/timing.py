"""
Execution timing for backends.

Every backend records how long its fit took, split into named sections,
and stores the breakdown in Result.timing.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating section timer.

    Usage:
        timer = Timer()
        timer.start()

        with timer.section('local_fits'):
            ...

        timer.stop()
        timer.result()
        # {'total_seconds': 0.004, 'local_fits': 0.003}

    Pass sync=callable (e.g. torch.cuda.synchronize) when timing
    asynchronous GPU work; it is called before every clock read.
    """

    def __init__(self, sync=None):
        self._sync = sync
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None

    def _now(self) -> float:
        if self._sync is not None:
            self._sync()
        return time.perf_counter()

    def start(self) -> None:
        """Start the overall timer."""
        self._start_time = self._now()

    def stop(self) -> None:
        """Stop the overall timer."""
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = self._now() - self._start_time

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """Time a named section; repeated sections accumulate."""
        start = self._now()
        try:
            yield
        finally:
            elapsed = self._now() - start
            self._sections[name] = self._sections.get(name, 0.0) + elapsed

    def result(self) -> dict[str, float]:
        """
        Timing breakdown with 'total_seconds' plus every section.

        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        return {'total_seconds': self._total, **self._sections}
