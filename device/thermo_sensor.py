#!/usr/bin/env python3
"""
Thermo Monitor - Device Script

Runs on the sensor board (Raspberry Pi / any Linux SBC with SPI).

This script:
1. Samples a MAX31855 thermocouple amplifier once per second
2. Pushes {"temperature": <float>} to every client connected to ws://<ip>/ws
3. Answers plaintext commands on the same socket:
     test          -> {"status": "ok"}
     start_record  -> {"recording": "started"}   (clears the device buffer)
     end_record    -> {"recording": "stopped"}
     get_record    -> {"data": [...]}
     anything else -> {"error": "unknown command"}

Set DEMO_MODE=true to run without hardware (simulated readings).
"""

import asyncio
import json
import os
import random
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

# ==================== CONFIGURATION ====================

INSTALL_DIR = Path(__file__).parent
CONFIG_FILE = INSTALL_DIR / "config.json"

# Default config (overridden by config.json, then environment)
DEFAULT_CONFIG = {
    "port": 80,
    "sample_interval": 1.0,  # seconds
    "demo_mode": False,
    "max_recorded": 1000,  # readings kept by start_record
    "cs_pin": "D5",  # chip select of the MAX31855
}


def load_config() -> dict:
    """Load configuration from file."""
    config = DEFAULT_CONFIG.copy()

    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE) as f:
                file_config = json.load(f)
                config.update(file_config)
        except Exception as e:
            print(f"Warning: Could not load config: {e}")

    # Environment overrides
    config["port"] = int(os.getenv("DEVICE_PORT", str(config["port"])))
    config["sample_interval"] = float(os.getenv("SAMPLE_INTERVAL", str(config["sample_interval"])))
    config["demo_mode"] = os.getenv("DEMO_MODE", str(config["demo_mode"])).lower() in ("1", "true", "yes")
    config["cs_pin"] = os.getenv("CS_PIN", config["cs_pin"])

    return config


# ==================== THERMOCOUPLE ====================

class ThermocoupleSensor:
    """MAX31855 K-type thermocouple amplifier via SPI."""

    # MAX31855 K-type measurement range
    MIN_TEMP = -200.0
    MAX_TEMP = 1350.0

    def __init__(self, demo_mode: bool = False, cs_pin: str = "D5"):
        self.demo_mode = demo_mode
        self.cs_pin = cs_pin
        self.max31855 = None
        self.initialized = False
        self._demo_temp = 25.0

    def init(self) -> bool:
        """Initialize the amplifier (or the simulator in demo mode)."""
        if self.demo_mode:
            self.initialized = True
            print("Thermocouple: demo mode (simulated readings)")
            return True

        try:
            import board
            import digitalio
            import adafruit_max31855

            spi = board.SPI()
            cs = digitalio.DigitalInOut(getattr(board, self.cs_pin))
            self.max31855 = adafruit_max31855.MAX31855(spi, cs)

            self.initialized = True
            print(f"MAX31855 initialized (CS={self.cs_pin})")
            return True

        except ImportError as e:
            print(f"MAX31855 library not installed: {e}")
            print("Install with: pip install adafruit-circuitpython-max31855")
            return False
        except Exception as e:
            print(f"MAX31855 init error: {e}")
            return False

    def read(self) -> float | None:
        """Read temperature in Celsius, None when the reading is unusable."""
        if not self.initialized:
            return None

        if self.demo_mode:
            # Slow random walk, slightly upward like a heating plate
            self._demo_temp += random.uniform(-0.4, 0.6)
            self._demo_temp = min(max(self._demo_temp, 15.0), 150.0)
            return round(self._demo_temp, 2)

        try:
            temperature = self.max31855.temperature
        except Exception as e:
            # Open thermocouple / short to GND or VCC raise here
            print(f"MAX31855 read error: {e}")
            return None

        if not (self.MIN_TEMP <= temperature <= self.MAX_TEMP):
            print(f"Invalid reading: T={temperature}")
            return None

        return round(temperature, 2)


# ==================== RECORDER ====================

class Recorder:
    """In-memory buffer filled between start_record and end_record."""

    def __init__(self, max_len: int = 1000):
        self.active = False
        self.data: deque[float] = deque(maxlen=max_len)

    def start(self):
        self.data.clear()
        self.active = True

    def stop(self):
        self.active = False

    def add(self, temperature: float):
        if self.active:
            self.data.append(temperature)


def handle_command(text: str, recorder: Recorder) -> dict:
    """Execute one plaintext command and build the reply."""
    cmd = text.strip()

    if cmd == "test":
        return {"status": "ok"}

    elif cmd == "start_record":
        recorder.start()
        return {"recording": "started"}

    elif cmd == "end_record":
        recorder.stop()
        return {"recording": "stopped"}

    elif cmd == "get_record":
        return {"data": list(recorder.data)}

    return {"error": "unknown command"}


# ==================== DEVICE ====================

class ThermoDevice:
    """Sampling loop plus the WebSocket clients it broadcasts to."""

    def __init__(self, config: dict, sensor: ThermocoupleSensor):
        self.config = config
        self.sensor = sensor
        self.recorder = Recorder(config["max_recorded"])
        self.clients: set[WebSocket] = set()

    async def broadcast(self, payload: dict):
        message = json.dumps(payload)
        dead = []
        for ws in list(self.clients):
            try:
                await ws.send_text(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.clients.discard(ws)

    async def sample_loop(self):
        """Read once per interval and push to every client. No backpressure."""
        interval = self.config["sample_interval"]
        while True:
            temperature = self.sensor.read()
            if temperature is not None:
                self.recorder.add(temperature)
                await self.broadcast({"temperature": temperature})
            await asyncio.sleep(interval)

    async def handle_client(self, ws: WebSocket):
        await ws.accept()
        self.clients.add(ws)
        print(f"[{datetime.now():%H:%M:%S}] Client connected ({len(self.clients)} total)")

        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    break

                text = message.get("text")
                if text is None:
                    # Commands are text frames only
                    reply = {"error": "unknown command"}
                    print("Binary frame ignored")
                else:
                    reply = handle_command(text, self.recorder)
                    print(f"Command {text.strip()!r} -> {reply}")
                await ws.send_text(json.dumps(reply))
        except WebSocketDisconnect:
            pass
        finally:
            self.clients.discard(ws)
            print(f"[{datetime.now():%H:%M:%S}] Client disconnected ({len(self.clients)} total)")


def create_app(config: dict | None = None, start_sampler: bool = True) -> FastAPI:
    config = config or load_config()
    sensor = ThermocoupleSensor(config["demo_mode"], config["cs_pin"])
    device = ThermoDevice(config, sensor)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if start_sampler:
            if not sensor.init():
                raise RuntimeError("Failed to initialize thermocouple")
            task = asyncio.create_task(device.sample_loop())
            print(f"Sampling every {config['sample_interval']}s")
        try:
            yield
        finally:
            if task is not None:
                task.cancel()

    app = FastAPI(title="Thermo Monitor Device", lifespan=lifespan)
    app.state.device = device

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket):
        await device.handle_client(ws)

    return app


if __name__ == "__main__":
    import uvicorn

    config = load_config()
    print("Thermo Monitor Device Starting...")
    print(f"Port: {config['port']} | Demo mode: {config['demo_mode']}")
    uvicorn.run(create_app(config), host="0.0.0.0", port=config["port"])
