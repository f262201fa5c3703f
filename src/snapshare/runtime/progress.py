"""Transfer progress and remaining-time estimation."""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Optional

# Weight of the newest throughput sample in the running estimate
NEW_SAMPLE_WEIGHT = 0.7
PRIOR_WEIGHT = 0.3
# Fractions at or below this are too early to estimate from
MIN_ESTIMATE_FRACTION = 0.01

CALCULATING = "Calculating..."
COMPLETE = "Complete!"


def format_remaining(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        return f"{seconds // 60} min {seconds % 60} sec"
    return f"{seconds // 3600} hr {(seconds % 3600) // 60} min"


def format_file_size(num_bytes: int) -> str:
    """Human label in decimal KB/MB units."""
    if num_bytes < 1000 * 1000:
        return f"{num_bytes / 1000:.0f} KB"
    return f"{num_bytes / (1000 * 1000):.1f} MB"


def _clamp(fraction: float) -> float:
    if fraction is None or math.isnan(fraction):
        return 0.0
    return max(0.0, min(1.0, float(fraction)))


class ProgressEstimator:
    """Smoothed throughput and remaining-time estimate for one transfer.

    ``update`` takes the cumulative completed fraction. Each call is treated
    independently, so duplicate or out-of-order fractions only produce another
    bounded sample. A lock serializes updates; callers that render the state
    should still deliver updates through their UI context.
    """

    def __init__(
        self,
        total_bytes: int,
        file_size: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.total_bytes = max(0, int(total_bytes))
        self.file_size = file_size or format_file_size(self.total_bytes)
        self._clock = clock
        self.started_at = clock()
        self.progress = 0.0
        self.speed = 0.0  # bytes per second
        self.remaining_seconds: Optional[int] = None
        self.estimated_time_remaining = CALCULATING
        self._lock = threading.Lock()

    @property
    def percent(self) -> int:
        return int(self.progress * 100)

    @property
    def is_complete(self) -> bool:
        return self.progress >= 1.0

    def update(self, fraction: float) -> None:
        value = _clamp(fraction)
        with self._lock:
            if value > MIN_ESTIMATE_FRACTION:
                self._estimate(value)
            self.progress = value

    def _estimate(self, value: float) -> None:
        elapsed = self._clock() - self.started_at
        if elapsed <= 0:
            return
        transferred = self.total_bytes * value
        instant = transferred / elapsed
        if self.speed == 0:
            self.speed = instant
        else:
            self.speed = instant * NEW_SAMPLE_WEIGHT + self.speed * PRIOR_WEIGHT
        if self.speed > 0:
            remaining_bytes = self.total_bytes - transferred
            self.remaining_seconds = max(0, int(remaining_bytes / self.speed))
            self.estimated_time_remaining = format_remaining(self.remaining_seconds)
        elif value >= 1.0:
            # Zero-byte transfers never build up speed
            self.remaining_seconds = 0
            self.estimated_time_remaining = format_remaining(0)

    def mark_complete(self) -> None:
        with self._lock:
            self.progress = 1.0
            self.remaining_seconds = 0
            self.estimated_time_remaining = COMPLETE
