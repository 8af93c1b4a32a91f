"""
Tests for the temperature monitor (session -> buffer -> alert wiring).
"""

from types import SimpleNamespace

import pytest

from thermodash.services.monitor import TemperatureMonitor
from thermodash.telemetry.alert import AlertController, RepeatingTone
from thermodash.telemetry.buffer import TelemetryBuffer
from thermodash.telemetry.models import AlertState, ConnectionState, MonitorEventKind
from thermodash.telemetry.session import TransportSession


@pytest.fixture
async def rig(connector, buzzer):
    """Connected monitor with a 5-sample window."""
    session = TransportSession(connector=connector)
    alert = AlertController(RepeatingTone(buzzer, interval=0.05, duration=0.01))
    monitor = TemperatureMonitor(session, TelemetryBuffer(capacity=5), alert, threshold=100.0)
    events = []
    monitor.events.subscribe(events.append)

    await session.connect("192.168.1.200")
    yield SimpleNamespace(
        session=session, alert=alert, monitor=monitor, buffer=monitor.buffer,
        socket=connector.socket, events=events,
    )
    await session.disconnect()


async def feed(rig, settle, *temps):
    for temp in temps:
        rig.socket.feed(f'{{"temperature": {temp}}}')
    await settle()


class TestRecording:
    """Tests for the recording gate."""

    async def test_not_recording_keeps_buffer_empty(self, rig, settle):
        await feed(rig, settle, 150, 151, 152)

        assert len(rig.buffer) == 0
        assert rig.alert.state is AlertState.SILENT

    async def test_readings_reported_while_not_recording(self, rig, settle):
        """Test that the live value updates even when nothing is recorded."""
        await feed(rig, settle, 21.5)

        readings = [e for e in rig.events if e.kind is MonitorEventKind.READING]
        assert [e.reading.temperature for e in readings] == [21.5]
        assert not [e for e in rig.events if e.kind is MonitorEventKind.SAMPLE]

    async def test_recording_fills_buffer(self, rig, settle):
        await rig.monitor.set_recording(True)
        await feed(rig, settle, *range(20, 28))

        assert len(rig.buffer) == 8
        assert [s.temperature for s in rig.buffer.snapshot()] == [23, 24, 25, 26, 27]

    async def test_toggle_recording(self, rig):
        assert await rig.monitor.toggle_recording() is True
        assert await rig.monitor.toggle_recording() is False

    async def test_clear(self, rig, settle):
        await rig.monitor.set_recording(True)
        await feed(rig, settle, 25, 26)

        await rig.monitor.clear()

        assert len(rig.buffer) == 0
        assert rig.events[-1].kind is MonitorEventKind.CLEARED


class TestThreshold:
    """Tests for threshold stamping."""

    async def test_threshold_captured_at_arrival(self, rig, settle):
        """Test that changing the threshold never rewrites recorded samples."""
        await rig.monitor.set_recording(True)
        await rig.monitor.set_threshold(50)
        await feed(rig, settle, 40)
        await rig.monitor.set_threshold(30)
        await feed(rig, settle, 40)

        assert [s.threshold for s in rig.buffer.samples()] == [50.0, 30.0]

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "abc"])
    async def test_rejects_invalid_threshold(self, rig, value):
        with pytest.raises(ValueError):
            await rig.monitor.set_threshold(value)

        assert rig.monitor.threshold == 100.0


class TestAlarmFlow:
    """End-to-end alarm behaviour through the session."""

    async def test_alarm_lifecycle(self, rig, settle):
        await rig.monitor.set_recording(True)
        states = []
        for temp in (99, 101, 100.5, 98):
            await feed(rig, settle, temp)
            states.append(rig.alert.state)

        assert states == [
            AlertState.SILENT, AlertState.ALARMING, AlertState.ALARMING, AlertState.SILENT,
        ]

    async def test_connection_loss_silences_but_keeps_data(self, rig, settle):
        await rig.monitor.set_recording(True)
        await feed(rig, settle, 150)
        assert rig.alert.is_alarming

        rig.socket.drop()
        await settle(0.1)

        assert rig.session.state is ConnectionState.DISCONNECTED
        assert rig.alert.state is AlertState.SILENT
        assert not rig.alert.tone_active
        assert len(rig.buffer) == 1

    async def test_malformed_frame_changes_nothing(self, rig, settle):
        await rig.monitor.set_recording(True)
        rig.socket.feed("garbage")
        rig.socket.feed('{"temperature": "hot"}')
        await settle()

        assert len(rig.buffer) == 0
        assert rig.alert.state is AlertState.SILENT
        assert rig.session.is_connected
