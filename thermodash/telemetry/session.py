"""
Transport session - owns the WebSocket connection to the device

State per connection attempt only moves forward:
    CONNECTING -> CONNECTED -> DISCONNECTED
    CONNECTING -> DISCONNECTED
Reconnecting is always a manual connect() call.
"""

import asyncio
import functools
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from thermodash.core.config import settings
from thermodash.core.events import EventEmitter
from thermodash.telemetry.models import (
    ConnectionState,
    DeviceReply,
    DisconnectReason,
    SessionEvent,
    SessionEventKind,
)
from thermodash.telemetry.protocol import Command, MalformedFrame, decode_frame, device_url

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]


def default_connector(timeout: float | None = None) -> Connector:
    """websockets.connect with the configured open timeout."""
    return functools.partial(
        websockets.connect,
        open_timeout=timeout if timeout is not None else settings.connect_timeout,
    )


class TransportSession:
    """Single WebSocket connection to the device and its event stream."""

    def __init__(
        self,
        connector: Connector | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.events = EventEmitter("session")
        self._connector = connector or default_connector()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._state = ConnectionState.DISCONNECTED
        self._ws = None
        self._reader: asyncio.Task | None = None
        self._address: str | None = None
        # Bumped on every connect/disconnect; callbacks from older attempts are ignored
        self._attempt = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    async def connect(self, address: str) -> bool:
        """
        Open ws://<address>/ws.

        Returns False when an attempt is already in flight or connected, or
        when the connection could not be opened.
        """
        if self._state is not ConnectionState.DISCONNECTED:
            logger.warning(f"⚠️ connect({address}) ignored: session is {self._state.value}")
            return False

        try:
            url = device_url(address)
        except ValueError as e:
            logger.error(f"❌ Invalid device address {address!r}: {e}")
            return False

        # State flips before any network activity
        self._attempt += 1
        attempt = self._attempt
        self._address = address
        self._state = ConnectionState.CONNECTING
        await self._emit(SessionEventKind.STATE)
        if attempt != self._attempt:
            return False

        logger.info(f"📡 Connecting to {url}")
        # websockets raises ValueError for an address that is not a valid URI
        try:
            ws = await self._connector(url)
        except (OSError, ValueError, asyncio.TimeoutError, WebSocketException) as e:
            logger.error(f"❌ WebSocket connection to {url} failed: {e}")
            if attempt == self._attempt:
                await self._mark_disconnected(DisconnectReason.ERROR)
            return False

        if attempt != self._attempt:
            # disconnect() ran while the handshake was in flight
            logger.info(f"⏹️ Dropping late connection to {url}")
            await self._close_quietly(ws)
            return False

        self._ws = ws
        self._state = ConnectionState.CONNECTED
        logger.info(f"✅ Connected to device at {url}")
        await self._emit(SessionEventKind.CONNECTED)
        await self._emit(SessionEventKind.STATE)

        if attempt == self._attempt:
            self._reader = asyncio.create_task(self._read_loop(ws, attempt))
        return self.is_connected

    async def disconnect(self) -> None:
        """Close the active socket, if any. Idempotent."""
        if self._state is ConnectionState.DISCONNECTED:
            return

        ws, reader = self._ws, self._reader
        self._ws = None
        self._reader = None
        self._attempt += 1

        await self._mark_disconnected(DisconnectReason.USER)

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
        if ws is not None:
            await self._close_quietly(ws)

    async def send_command(self, command: Command) -> bool:
        """Send a plaintext command frame; False when not connected or the send failed."""
        if not self.is_connected or self._ws is None:
            logger.warning(f"⚠️ Cannot send {command.value}: not connected")
            return False

        try:
            await self._ws.send(command.value)
        except (ConnectionClosed, OSError) as e:
            logger.error(f"❌ Failed to send {command.value}: {e}")
            return False

        logger.info(f"📤 Command sent: {command.value}")
        return True

    async def _read_loop(self, ws, attempt: int) -> None:
        reason = DisconnectReason.CLOSED
        try:
            async for message in ws:
                if attempt != self._attempt:
                    break
                # Awaited to completion: one frame at a time, in arrival order
                await self._handle_frame(message)
        except ConnectionClosed as e:
            logger.warning(f"⚠️ Connection dropped: {e}")
            reason = DisconnectReason.ERROR
        except OSError as e:
            logger.error(f"❌ Socket error: {e}")
            reason = DisconnectReason.ERROR
        finally:
            if attempt == self._attempt:
                self._ws = None
                self._reader = None
                await self._mark_disconnected(reason)

    async def _handle_frame(self, message: str | bytes) -> None:
        try:
            frame = decode_frame(message, received_at=self._clock())
        except MalformedFrame as e:
            raw = message if isinstance(message, str) else repr(message)
            logger.warning(f"⚠️ Invalid data from device: {raw!r} ({e})")
            await self._emit(SessionEventKind.MALFORMED, raw=raw)
            return

        if isinstance(frame, DeviceReply):
            logger.info(f"📩 Device reply: {frame.kind}={frame.value!r}")
            await self._emit(SessionEventKind.REPLY, reply=frame)
        else:
            await self._emit(SessionEventKind.TELEMETRY, reading=frame)

    async def _mark_disconnected(self, reason: DisconnectReason) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            return
        self._state = ConnectionState.DISCONNECTED
        logger.info(f"🔌 Disconnected ({reason.value})")
        await self._emit(SessionEventKind.DISCONNECTED, reason=reason)
        await self._emit(SessionEventKind.STATE, reason=reason)

    async def _emit(self, kind: SessionEventKind, **fields) -> None:
        await self.events.emit(SessionEvent(kind=kind, state=self._state, **fields))

    @staticmethod
    async def _close_quietly(ws) -> None:
        try:
            await ws.close()
        except (ConnectionClosed, OSError) as e:
            logger.debug(f"Close failed: {e}")
