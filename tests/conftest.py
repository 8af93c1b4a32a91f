"""
Pytest configuration and fixtures for Thermo Dashboard tests.
"""

import asyncio
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path for imports (thermodash/ and device/)
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

T0 = datetime(2025, 10, 27, 12, 0, 0, tzinfo=timezone.utc)

_CLOSE = object()


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[str] = []
        self.closed = False

    def feed(self, message):
        self.incoming.put_nowait(message)

    def drop(self, error: Exception | None = None):
        """Peer goes away: clean close, or the given error from the read."""
        self.incoming.put_nowait(error if error is not None else _CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, data):
        if self.closed:
            raise OSError("socket closed")
        self.sent.append(data)

    async def close(self):
        if not self.closed:
            self.closed = True
            self.incoming.put_nowait(_CLOSE)


class FakeConnector:
    """Socket factory: records URLs, hands out a new FakeSocket per call."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []
        self.gate: asyncio.Event | None = None

    @property
    def socket(self) -> FakeSocket:
        return self.sockets[-1]

    async def __call__(self, url: str):
        self.urls.append(url)
        sock = FakeSocket()
        self.sockets.append(sock)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return sock


class FakeBuzzer:
    """Records tone bursts; fails every burst when fail=True."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.beeps: list[tuple[int, float]] = []

    async def beep(self, frequency: int, duration: float):
        if self.fail:
            raise OSError("audio device unavailable")
        self.beeps.append((frequency, duration))


class FakeBrowser:
    """Dashboard WebSocket stand-in for the ClientHub."""

    def __init__(self):
        self.messages: list[dict] = []

    async def send_text(self, text: str):
        self.messages.append(json.loads(text))

    def of_type(self, kind: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == kind]


@pytest.fixture
def make_sample():
    """Factory for Sample objects one second apart."""
    from thermodash.telemetry.models import Sample

    def factory(temperature: float, threshold: float = 100.0, seconds: int = 0) -> Sample:
        return Sample(T0 + timedelta(seconds=seconds), float(temperature), float(threshold))

    return factory


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def buzzer():
    return FakeBuzzer()


@pytest.fixture
def browser():
    return FakeBrowser()


@pytest.fixture
def settle():
    """Let background tasks (socket reader) catch up."""

    async def wait(seconds: float = 0.02):
        await asyncio.sleep(seconds)

    return wait


@pytest.fixture
def sample_temperature_frame():
    """Sample telemetry frame as sent by the device."""
    return '{"temperature": 26.5}'
