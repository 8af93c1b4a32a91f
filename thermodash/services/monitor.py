"""
Temperature Monitor - wires session, buffer and alert controller together

session frame -> Sample (threshold stamped at arrival) -> buffer (if recording)
              -> alert controller -> MonitorEvent for the presentation layer
"""

import logging
import math

from thermodash.core.config import settings
from thermodash.core.events import EventEmitter
from thermodash.telemetry.alert import AlertController
from thermodash.telemetry.buffer import TelemetryBuffer
from thermodash.telemetry.models import (
    MonitorEvent,
    MonitorEventKind,
    Sample,
    SessionEvent,
    SessionEventKind,
)
from thermodash.telemetry.session import TransportSession

logger = logging.getLogger(__name__)


class TemperatureMonitor:
    """Owns the recording flag and the current threshold."""

    def __init__(
        self,
        session: TransportSession,
        buffer: TelemetryBuffer,
        alert: AlertController,
        threshold: float | None = None,
    ):
        self.session = session
        self.buffer = buffer
        self.alert = alert
        self.events = EventEmitter("monitor")
        self._threshold = settings.default_threshold if threshold is None else threshold
        self._recording = False
        session.events.subscribe(self._on_session_event)

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def recording(self) -> bool:
        return self._recording

    async def set_threshold(self, value: float) -> float:
        """Applies to samples ingested from now on. Raises ValueError on NaN/inf."""
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Threshold must be a finite number, got {value}")
        self._threshold = value
        logger.info(f"⚙️ Threshold set to {value:.1f}°C")
        await self.events.emit(MonitorEvent(MonitorEventKind.THRESHOLD, value=value))
        return value

    async def set_recording(self, active: bool) -> bool:
        if active == self._recording:
            return self._recording
        self._recording = active
        logger.info(f"⏺️ Recording {'started' if active else 'stopped'}")
        await self.events.emit(MonitorEvent(MonitorEventKind.RECORDING, value=active))
        return self._recording

    async def toggle_recording(self) -> bool:
        return await self.set_recording(not self._recording)

    async def clear(self) -> None:
        """Explicit user reset of chart and export log."""
        self.buffer.clear()
        logger.info("🧹 Chart and export log cleared")
        await self.events.emit(MonitorEvent(MonitorEventKind.CLEARED))

    async def _on_session_event(self, event: SessionEvent) -> None:
        if event.kind is SessionEventKind.TELEMETRY:
            await self._ingest(event)
        elif event.kind is SessionEventKind.DISCONNECTED:
            await self.alert.on_connection_state(event.state)

    async def _ingest(self, event: SessionEvent) -> None:
        # Frames that belong to a closed connection are stale
        if not self.session.is_connected:
            logger.debug("Dropping reading that arrived after disconnect")
            return

        reading = event.reading
        await self.events.emit(MonitorEvent(MonitorEventKind.READING, reading=reading))

        sample = Sample(
            timestamp=reading.received_at,
            temperature=reading.temperature,
            threshold=self._threshold,
        )
        recording = self._recording
        if recording:
            self.buffer.push(sample)

        await self.alert.on_sample(sample, recording)

        if recording:
            await self.events.emit(MonitorEvent(MonitorEventKind.SAMPLE, sample=sample))
