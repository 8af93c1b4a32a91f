"""
Tests for device command handling (thermo_sensor.py).

These tests verify that the device correctly parses and executes
commands received over its WebSocket.
"""

import asyncio
import json
import sys
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
from fastapi.testclient import TestClient

from conftest import FakeBrowser
from device.thermo_sensor import (
    DEFAULT_CONFIG,
    Recorder,
    ThermocoupleSensor,
    ThermoDevice,
    create_app,
    handle_command,
    load_config,
)


@pytest.fixture
def recorder():
    return Recorder(max_len=5)


class TestCommands:
    """Tests for plaintext command replies."""

    def test_test_command(self, recorder):
        assert handle_command("test", recorder) == {"status": "ok"}

    def test_command_whitespace_is_ignored(self, recorder):
        assert handle_command("  test\n", recorder) == {"status": "ok"}

    def test_start_and_end_record(self, recorder):
        assert handle_command("start_record", recorder) == {"recording": "started"}
        assert recorder.active

        assert handle_command("end_record", recorder) == {"recording": "stopped"}
        assert not recorder.active

    def test_get_record(self, recorder):
        handle_command("start_record", recorder)
        recorder.add(25.5)
        recorder.add(26.0)

        assert handle_command("get_record", recorder) == {"data": [25.5, 26.0]}

    @pytest.mark.parametrize("text", ["", "TEST", "reboot", '{"command": "test"}'])
    def test_unknown_command(self, recorder, text):
        assert handle_command(text, recorder) == {"error": "unknown command"}


class TestRecorder:
    """Tests for the device-side recording buffer."""

    def test_ignores_readings_when_inactive(self, recorder):
        recorder.add(25.0)
        assert list(recorder.data) == []

    def test_start_clears_previous_recording(self, recorder):
        recorder.start()
        recorder.add(25.0)
        recorder.stop()

        recorder.start()

        assert list(recorder.data) == []

    def test_keeps_most_recent_readings(self, recorder):
        recorder.start()
        for t in range(8):
            recorder.add(float(t))

        assert list(recorder.data) == [3.0, 4.0, 5.0, 6.0, 7.0]


class TestSensor:
    """Tests for the thermocouple reader."""

    def test_read_before_init(self):
        assert ThermocoupleSensor(demo_mode=True).read() is None

    def test_demo_readings_stay_in_range(self):
        sensor = ThermocoupleSensor(demo_mode=True)
        assert sensor.init()

        readings = [sensor.read() for _ in range(500)]

        assert all(15.0 <= r <= 150.0 for r in readings)

    def test_missing_hardware_library(self):
        with patch.dict(sys.modules, {"board": None}):
            assert ThermocoupleSensor(demo_mode=False).init() is False

    def test_out_of_range_reading_rejected(self):
        sensor = ThermocoupleSensor()
        sensor.initialized = True
        sensor.max31855 = MagicMock()
        type(sensor.max31855).temperature = PropertyMock(return_value=2000.0)

        assert sensor.read() is None

    def test_hardware_fault_rejected(self):
        sensor = ThermocoupleSensor()
        sensor.initialized = True
        sensor.max31855 = MagicMock()
        type(sensor.max31855).temperature = PropertyMock(side_effect=RuntimeError("thermocouple not connected"))

        assert sensor.read() is None

    def test_valid_reading_rounded(self):
        sensor = ThermocoupleSensor()
        sensor.initialized = True
        sensor.max31855 = MagicMock()
        type(sensor.max31855).temperature = PropertyMock(return_value=26.4567)

        assert sensor.read() == 26.46


class TestConfig:
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DEMO_MODE", "true")
        monkeypatch.setenv("SAMPLE_INTERVAL", "0.5")
        monkeypatch.setenv("DEVICE_PORT", "8080")

        config = load_config()

        assert config["demo_mode"] is True
        assert config["sample_interval"] == 0.5
        assert config["port"] == 8080


class TestDeviceSocket:
    """Tests for the device WebSocket endpoint."""

    def test_command_round_trip(self):
        app = create_app({**DEFAULT_CONFIG, "demo_mode": True}, start_sampler=False)

        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_text("test")
                assert ws.receive_json() == {"status": "ok"}

                ws.send_text("start_record")
                assert ws.receive_json() == {"recording": "started"}

                ws.send_text("bogus")
                assert ws.receive_json() == {"error": "unknown command"}

    def test_binary_frame_gets_error_reply(self):
        """Test that a binary frame is answered and the client stays connected."""
        app = create_app({**DEFAULT_CONFIG, "demo_mode": True}, start_sampler=False)

        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_bytes(b"test")
                assert ws.receive_json() == {"error": "unknown command"}

                ws.send_text("test")
                assert ws.receive_json() == {"status": "ok"}

    async def test_sample_loop_broadcasts_readings(self):
        config = {**DEFAULT_CONFIG, "demo_mode": True, "sample_interval": 0.01}
        sensor = ThermocoupleSensor(demo_mode=True)
        sensor.init()
        device = ThermoDevice(config, sensor)
        client = FakeBrowser()
        device.clients.add(client)
        device.recorder.start()

        task = asyncio.create_task(device.sample_loop())
        await asyncio.sleep(0.05)
        task.cancel()

        assert client.messages
        assert all(isinstance(m["temperature"], float) for m in client.messages)
        assert len(device.recorder.data) == len(client.messages)

    async def test_broadcast_drops_dead_clients(self):
        device = ThermoDevice(dict(DEFAULT_CONFIG), ThermocoupleSensor(demo_mode=True))
        dead = MagicMock()
        dead.send_text.side_effect = RuntimeError("gone")
        device.clients.add(dead)

        await device.broadcast({"temperature": 25.0})

        assert device.clients == set()
