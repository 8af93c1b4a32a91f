"""
Alert controller - threshold crossing state machine driving the audible alarm

    SILENT   --(temperature >= threshold)-->  ALARMING   start repeating tone, one warning
    ALARMING --(temperature <  threshold)-->  SILENT     stop tone
    ALARMING --(connection lost)--------->  SILENT     stop tone

Samples only count while recording is active.
"""

import asyncio
import logging

from thermodash.core.config import settings
from thermodash.core.events import EventEmitter
from thermodash.telemetry.models import AlertEvent, AlertState, ConnectionState, Sample

logger = logging.getLogger(__name__)


class RepeatingTone:
    """
    Cancellable repeating tone burst.

    The buzzer is any object with ``async beep(frequency, duration)``. The first
    burst plays on start(), then one burst every ``interval`` seconds until
    stop(). Each burst is shorter than the interval so tone and silence alternate.
    """

    def __init__(
        self,
        buzzer,
        interval: float | None = None,
        duration: float | None = None,
        frequency: int | None = None,
    ):
        self.interval = settings.alarm_interval if interval is None else interval
        self.duration = settings.alarm_tone_duration if duration is None else duration
        self.frequency = settings.alarm_frequency if frequency is None else frequency
        if not 0 < self.duration < self.interval:
            raise ValueError(
                f"Tone duration ({self.duration}s) must be positive and shorter "
                f"than the repeat interval ({self.interval}s)"
            )
        self._buzzer = buzzer
        self._task: asyncio.Task | None = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            return
        loop = asyncio.get_running_loop()
        self._generation += 1
        self._task = loop.create_task(self._run(self._generation))

    def stop(self) -> None:
        # Invalidate first so a wake-up that slips past cancel() does nothing
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, generation: int) -> None:
        failing = False
        while generation == self._generation:
            try:
                await self._buzzer.beep(self.frequency, self.duration)
                failing = False
            except Exception as e:
                # Log once per failure streak, not once per second
                if not failing:
                    logger.warning(f"⚠️ Buzzer error: {e}")
                failing = True
            await asyncio.sleep(self.interval)


class AlertController:
    """Two-state alarm machine. Owns the repeating tone."""

    def __init__(self, tone: RepeatingTone):
        self.events = EventEmitter("alert")
        self._tone = tone
        self._state = AlertState.SILENT

    @property
    def state(self) -> AlertState:
        return self._state

    @property
    def is_alarming(self) -> bool:
        return self._state is AlertState.ALARMING

    @property
    def tone_active(self) -> bool:
        return self._tone.active

    async def on_sample(self, sample: Sample, recording_active: bool) -> AlertState:
        if not recording_active:
            return self._state

        if self._state is AlertState.SILENT and sample.temperature >= sample.threshold:
            self._state = AlertState.ALARMING
            self._start_tone()
            logger.warning(
                f"🚨 Temperature threshold reached: {sample.temperature:.1f}°C >= {sample.threshold:.1f}°C"
            )
            await self.events.emit(AlertEvent(AlertState.ALARMING, "threshold reached", sample))

        elif self._state is AlertState.ALARMING and sample.temperature < sample.threshold:
            await self._silence("below threshold", sample)

        return self._state

    async def on_connection_state(self, state: ConnectionState) -> None:
        """Any departure from CONNECTED silences the alarm."""
        if state is not ConnectionState.CONNECTED and self.is_alarming:
            await self._silence("connection lost")

    async def _silence(self, reason: str, sample: Sample | None = None) -> None:
        self._state = AlertState.SILENT
        self._stop_tone()
        logger.info(f"🔕 Alarm silenced ({reason})")
        await self.events.emit(AlertEvent(AlertState.SILENT, reason, sample))

    def _start_tone(self) -> None:
        try:
            self._tone.start()
        except Exception as e:
            logger.error(f"❌ Could not start alarm tone: {e}")

    def _stop_tone(self) -> None:
        try:
            self._tone.stop()
        except Exception as e:
            logger.error(f"❌ Could not stop alarm tone: {e}")
