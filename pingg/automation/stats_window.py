"""
Rolling statistics window for latency samples.

Keeps the most recent `max_size` samples in arrival order and running
Avg/Max/Min aggregates, each updated in O(1) per sample.

Two modes:
- compat (default): the classic pingg statistics, kept bit-for-bit.
  Aggregates only start updating once more than two samples are held, the
  mean is weighted by the current history size (which stops growing once
  the window is full), and a Min of exactly 0.0 means "unset".
- corrected (compat=False): every sample counts, the mean is a true running
  mean over all contributed samples, and Min has a real "unset" state.
"""

from collections import deque
from dataclasses import dataclass

from loguru import logger


class EmptyWindowError(RuntimeError):
    """Raised when a snapshot is requested before any sample was recorded."""


@dataclass(frozen=True)
class WindowSnapshot:
    """Read-only view handed to the display."""

    series: list[list[float]]
    avg: float
    max: float
    min: float
    size: int

    def stats_line(self) -> str:
        return f"Avg: {self.avg:.2f}ms Max: {self.max:.2f}ms Min: {self.min:.2f}ms"


class RollingWindow:
    """Fixed-capacity sample history with running aggregates."""

    def __init__(self, max_size: int, compat: bool = True):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self.max_size = max_size
        self.compat = compat
        self.curr_size = 0
        self.avg = 0.0
        self.max = 0.0
        self._min: float | None = 0.0 if compat else None
        self._contributed = 0
        self._samples: deque[float] = deque()

        logger.debug(f"RollingWindow created: max_size={max_size}, compat={compat}")

    @property
    def min(self) -> float:
        return 0.0 if self._min is None else self._min

    @property
    def data(self) -> list[list[float]]:
        """History wrapped as a single-series collection for a line chart."""
        return [list(self._samples)]

    def add(self, sample: float) -> None:
        """Record one sample: update aggregates, then the history."""
        if self.compat:
            self._update_compat(sample)
        else:
            self._update_corrected(sample)
        self._append(sample)

    def seed(self, sample: float) -> None:
        """Append to the history without touching the aggregates."""
        self._append(sample)

    def snapshot(self) -> WindowSnapshot:
        if self.curr_size == 0:
            raise EmptyWindowError("No data to render")
        return WindowSnapshot(
            series=self.data,
            avg=self.avg,
            max=self.max,
            min=self.min,
            size=self.curr_size,
        )

    def _update_compat(self, sample: float) -> None:
        # Warm-up: the first three calls feed the history only
        if self.curr_size <= 2:
            return

        self.avg = (self.avg * self.curr_size + sample) / (self.curr_size + 1)
        self.max = max(self.max, sample)
        # 0.0 doubles as "unset"; a real 0.0 sample resets the floor
        if self._min == 0:
            self._min = sample
        else:
            self._min = min(self._min, sample)

    def _update_corrected(self, sample: float) -> None:
        n = self._contributed
        self.avg = (self.avg * n + sample) / (n + 1)
        self.max = sample if n == 0 else max(self.max, sample)
        self._min = sample if self._min is None else min(self._min, sample)
        self._contributed = n + 1

    def _append(self, sample: float) -> None:
        if self.curr_size < self.max_size:
            self._samples.append(sample)
            self.curr_size += 1
        else:
            self._samples.popleft()
            self._samples.append(sample)
