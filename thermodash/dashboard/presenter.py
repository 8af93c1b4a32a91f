"""
Dashboard presenter - turns core events into view messages for the browser
and runs the user actions coming back from it.

Only this layer talks to the UI surface (through the ClientHub). Actions
return an ActionResult instead of raising, so the HTTP layer can show a
notification without anything being half-applied.
"""

import logging
from dataclasses import dataclass
from typing import Any

from thermodash.core.config import settings
from thermodash.dashboard.hub import ClientHub
from thermodash.services.export import export_filename, render_csv
from thermodash.services.monitor import TemperatureMonitor
from thermodash.services.records import ChemicalPayload, ChemicalStore
from thermodash.telemetry.models import (
    AlertEvent,
    AlertState,
    ConnectionState,
    DisconnectReason,
    MonitorEvent,
    MonitorEventKind,
    SessionEvent,
    SessionEventKind,
)
from thermodash.telemetry.protocol import Command

logger = logging.getLogger(__name__)

STATUS_VIEW = {
    ConnectionState.CONNECTING: {
        "indicator": "status-connecting", "text": "Connecting...",
        "button": "Connecting...", "disabled": True,
    },
    ConnectionState.CONNECTED: {
        "indicator": "status-connected", "text": "Connected",
        "button": "Disconnect", "disabled": False,
    },
    ConnectionState.DISCONNECTED: {
        "indicator": "status-disconnected", "text": "Disconnected",
        "button": "Test Connection", "disabled": False,
    },
}

DISCONNECT_TOASTS = {
    DisconnectReason.USER: ("Disconnected from ESP32", "info"),
    DisconnectReason.CLOSED: ("🔌 Connection closed", "warning"),
    DisconnectReason.ERROR: ("⚠️ WebSocket connection failed", "error"),
}


@dataclass
class ActionResult:
    ok: bool
    message: str = ""
    level: str = "info"  # success | error | warning | info
    data: Any = None


def format_temperature(value: float) -> str:
    return f"{value:.1f}°C"


class DashboardPresenter:
    """View model of the dashboard page."""

    def __init__(
        self,
        monitor: TemperatureMonitor,
        hub: ClientHub,
        store: ChemicalStore,
        title: str | None = None,
        default_address: str | None = None,
    ):
        self.monitor = monitor
        self.session = monitor.session
        self.hub = hub
        self.store = store
        self.title = title or settings.app_title
        self.default_address = default_address or settings.device_address
        self._last_temperature: float | None = None

        self.session.events.subscribe(self._on_session_event)
        monitor.events.subscribe(self._on_monitor_event)
        monitor.alert.events.subscribe(self._on_alert_event)

    async def start(self) -> None:
        result = await self.store.init(self._on_records_changed)
        if not result.is_ok:
            logger.error(f"❌ Chemical table unavailable: {result.error}")

    async def shutdown(self) -> None:
        await self.session.disconnect()

    # ==================== VIEWS ====================

    def status_view(self) -> dict:
        return {"type": "status", "state": self.session.state.value, **STATUS_VIEW[self.session.state]}

    def chart_view(self) -> dict:
        window = self.monitor.buffer.snapshot()
        return {
            "type": "chart",
            "labels": [s.timestamp.astimezone().strftime("%H:%M:%S") for s in window],
            "temperature": [s.temperature for s in window],
            "threshold": [s.threshold for s in window],
        }

    def threshold_view(self) -> dict:
        value = self.monitor.threshold
        return {"type": "threshold", "value": value, "display": format_temperature(value)}

    def recording_view(self) -> dict:
        active = self.monitor.recording
        return {
            "type": "recording",
            "active": active,
            "button": "Stop Recording" if active else "Start Recording",
        }

    def reading_view(self) -> dict:
        temp = self._last_temperature
        return {
            "type": "reading",
            "value": temp,
            "display": format_temperature(temp) if temp is not None else "--",
        }

    def alert_view(self) -> dict:
        return {"type": "alert", "state": self.monitor.alert.state.value}

    def state_view(self) -> dict:
        """Everything a freshly opened dashboard needs."""
        return {
            "type": "snapshot",
            "title": self.title,
            "address": self.session.address or self.default_address,
            "status": self.status_view(),
            "chart": self.chart_view(),
            "threshold": self.threshold_view(),
            "recording": self.recording_view(),
            "reading": self.reading_view(),
            "alert": self.alert_view(),
            "recorded": len(self.monitor.buffer),
            "chemicals": self.store.records,
        }

    async def notify(self, message: str, level: str = "info") -> None:
        await self.hub.broadcast({"type": "toast", "message": message, "level": level})

    # ==================== EVENTS ====================

    async def _on_session_event(self, event: SessionEvent) -> None:
        if event.kind is SessionEventKind.STATE:
            await self.hub.broadcast(self.status_view())
        elif event.kind is SessionEventKind.CONNECTED:
            await self.notify("✅ Connected to ESP32!", "success")
        elif event.kind is SessionEventKind.DISCONNECTED:
            message, level = DISCONNECT_TOASTS[event.reason or DisconnectReason.CLOSED]
            await self.notify(message, level)
        elif event.kind is SessionEventKind.REPLY:
            await self.notify(self._describe_reply(event.reply.kind, event.reply.value), "info")

    @staticmethod
    def _describe_reply(kind: str, value: Any) -> str:
        if kind == "data" and isinstance(value, list):
            return f"Device buffer holds {len(value)} readings"
        if kind == "error":
            return f"Device error: {value}"
        return f"Device {kind}: {value}"

    async def _on_monitor_event(self, event: MonitorEvent) -> None:
        if event.kind is MonitorEventKind.READING:
            self._last_temperature = event.reading.temperature
            await self.hub.broadcast(self.reading_view())
        elif event.kind in (MonitorEventKind.SAMPLE, MonitorEventKind.CLEARED):
            await self.hub.broadcast(self.chart_view())
        elif event.kind is MonitorEventKind.THRESHOLD:
            await self.hub.broadcast(self.threshold_view())
        elif event.kind is MonitorEventKind.RECORDING:
            await self.hub.broadcast(self.recording_view())

    async def _on_alert_event(self, event: AlertEvent) -> None:
        await self.hub.broadcast(self.alert_view())
        if event.state is AlertState.ALARMING:
            await self.notify("⚠️ Temperature threshold reached!", "error")

    async def _on_records_changed(self, records: list[dict]) -> None:
        await self.hub.broadcast({"type": "chemicals", "records": records})

    # ==================== ACTIONS ====================

    async def set_threshold(self, raw: Any) -> ActionResult:
        try:
            value = await self.monitor.set_threshold(float(raw))
        except (TypeError, ValueError):
            return ActionResult(False, "Please enter a valid threshold temperature", "error")
        return ActionResult(True, f"Threshold set to {format_temperature(value)}", "success", value)

    async def toggle_recording(self) -> ActionResult:
        active = await self.monitor.toggle_recording()
        return ActionResult(True, "Recording started" if active else "Recording stopped", "info", active)

    async def clear(self) -> ActionResult:
        await self.monitor.clear()
        return ActionResult(True, "Chart cleared", "info")

    async def save(self) -> ActionResult:
        count = len(self.monitor.buffer)
        if not count:
            return ActionResult(False, "No data to save. Start recording first.", "warning")
        return ActionResult(True, f"Saved {count} temperature readings", "success", count)

    def export(self) -> ActionResult:
        """CSV of the export log as data=(filename, text)."""
        rows = self.monitor.buffer.export_series()
        if not rows:
            return ActionResult(False, "No data to export. Start recording first.", "warning")
        return ActionResult(True, "Data exported successfully", "success", (export_filename(), render_csv(rows)))

    async def connect(self, address: str | None = None) -> ActionResult:
        if self.session.state is not ConnectionState.DISCONNECTED:
            return ActionResult(False, f"Already {self.session.state.value}", "warning")

        ok = await self.session.connect(address or self.default_address)
        if not ok:
            return ActionResult(False, "Failed to connect to ESP32", "error")
        return ActionResult(True, "Connected", "success")

    async def disconnect(self) -> ActionResult:
        await self.session.disconnect()
        return ActionResult(True, "Disconnected", "info")

    async def toggle_connection(self, address: str | None = None) -> ActionResult:
        if self.session.state is ConnectionState.CONNECTED:
            return await self.disconnect()
        return await self.connect(address)

    async def send_command(self, name: str) -> ActionResult:
        try:
            command = Command(name)
        except ValueError:
            allowed = ", ".join(c.value for c in Command)
            return ActionResult(False, f"Unknown command {name!r} (allowed: {allowed})", "error")

        if not await self.session.send_command(command):
            return ActionResult(False, "Not connected to ESP32", "warning")
        return ActionResult(True, f"Sent {command.value}", "info")

    async def save_chemical(self, payload: ChemicalPayload, backend_id: int | None = None) -> ActionResult:
        if backend_id is None:
            result = await self.store.create(payload)
            success = "Chemical added successfully"
        else:
            result = await self.store.update(backend_id, payload)
            success = "Chemical updated successfully"

        if not result.is_ok:
            return ActionResult(False, result.error or "Failed to save chemical", "error")
        return ActionResult(True, success, "success", result.record)

    async def delete_chemical(self, backend_id: int) -> ActionResult:
        result = await self.store.delete(backend_id)
        if not result.is_ok:
            return ActionResult(False, result.error or "Failed to delete chemical", "error")
        return ActionResult(True, "Chemical deleted successfully", "success", result.record)
