"""
Browser client hub - every open dashboard tab and the push channel to it
"""

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ClientHub:
    """Set of connected dashboard WebSockets. Dead clients are dropped on send."""

    def __init__(self):
        self._clients: set[WebSocket] = set()

    def __len__(self) -> int:
        return len(self._clients)

    def add(self, ws: WebSocket) -> None:
        self._clients.add(ws)
        logger.info(f"🖥️ Dashboard client connected ({len(self._clients)} open)")

    def discard(self, ws: WebSocket) -> None:
        if ws in self._clients:
            self._clients.discard(ws)
            logger.info(f"🖥️ Dashboard client left ({len(self._clients)} open)")

    async def send(self, ws: WebSocket, payload: dict[str, Any]) -> bool:
        try:
            await ws.send_text(json.dumps(payload, ensure_ascii=False))
        except Exception as e:
            # Starlette raises several types for a gone peer
            logger.debug(f"Send to dashboard client failed: {e}")
            return False
        return True

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Send to every client; returns how many received it."""
        dead: list[WebSocket] = []
        delivered = 0
        for ws in list(self._clients):
            if await self.send(ws, payload):
                delivered += 1
            else:
                dead.append(ws)

        for ws in dead:
            self.discard(ws)

        return delivered


class HubBuzzer:
    """Alarm buzzer that plays tone bursts in every open dashboard (WebAudio)."""

    def __init__(self, hub: ClientHub):
        self.hub = hub

    async def beep(self, frequency: int, duration: float) -> None:
        delivered = await self.hub.broadcast(
            {"type": "tone", "frequency": frequency, "duration": duration}
        )
        if not delivered:
            raise RuntimeError("no dashboard open to play the alarm")
