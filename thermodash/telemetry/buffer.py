"""
Telemetry buffer - live chart window plus the session's export log
"""

from collections import deque

from thermodash.core.config import settings
from thermodash.telemetry.models import ExportRow, Sample


class TelemetryBuffer:
    """
    Fixed-capacity display window over recorded samples, and an unbounded
    export log of every sample recorded since the last clear().

    The window drops exactly one oldest sample per push past capacity. Neither
    sequence is ever emptied implicitly.
    """

    def __init__(self, capacity: int | None = None):
        capacity = settings.window_capacity if capacity is None else capacity
        if capacity < 1:
            raise ValueError(f"Window capacity must be positive, got {capacity}")
        self._window: deque[Sample] = deque(maxlen=capacity)
        self._log: list[Sample] = []

    @property
    def capacity(self) -> int:
        return self._window.maxlen

    @property
    def window_size(self) -> int:
        return len(self._window)

    def __len__(self) -> int:
        return len(self._log)

    def push(self, sample: Sample) -> None:
        self._log.append(sample)
        self._window.append(sample)

    def clear(self) -> None:
        self._window.clear()
        self._log.clear()

    def snapshot(self) -> tuple[Sample, ...]:
        """Display window, oldest first."""
        return tuple(self._window)

    def samples(self) -> tuple[Sample, ...]:
        """Whole export log, oldest first."""
        return tuple(self._log)

    def export_series(self) -> list[ExportRow]:
        """Export log as (ISO timestamp, temperature, threshold) rows."""
        return [
            ExportRow(s.timestamp.isoformat(), s.temperature, s.threshold)
            for s in self._log
        ]
