"""
Telemetry domain types - readings, samples and the events the live components emit
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, NamedTuple


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class AlertState(str, Enum):
    SILENT = "silent"
    ALARMING = "alarming"


class DisconnectReason(str, Enum):
    USER = "user"  # disconnect() called
    CLOSED = "closed"  # peer closed the socket
    ERROR = "error"  # connect failure or network error


class SessionEventKind(str, Enum):
    STATE = "state"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    TELEMETRY = "telemetry"
    REPLY = "reply"
    MALFORMED = "malformed"


class MonitorEventKind(str, Enum):
    READING = "reading"  # any telemetry frame, recorded or not
    SAMPLE = "sample"  # a sample went into the buffer
    CLEARED = "cleared"
    THRESHOLD = "threshold"
    RECORDING = "recording"


@dataclass(frozen=True)
class Reading:
    """Temperature frame as received, before a threshold is attached."""

    received_at: datetime
    temperature: float


@dataclass(frozen=True)
class Sample:
    """One ingested reading paired with the threshold in effect at arrival time."""

    timestamp: datetime
    temperature: float
    threshold: float

    @property
    def above_threshold(self) -> bool:
        return self.temperature >= self.threshold


class ExportRow(NamedTuple):
    time: str  # ISO-8601
    temperature: float
    threshold: float


@dataclass(frozen=True)
class DeviceReply:
    """Non-telemetry frame sent by the device in answer to a command."""

    kind: str  # "status" | "recording" | "data" | "error"
    value: Any


@dataclass(frozen=True)
class SessionEvent:
    kind: SessionEventKind
    state: ConnectionState
    reading: Reading | None = None
    reply: DeviceReply | None = None
    reason: DisconnectReason | None = None
    raw: str | None = None


@dataclass(frozen=True)
class AlertEvent:
    state: AlertState
    reason: str
    sample: Sample | None = None


@dataclass(frozen=True)
class MonitorEvent:
    kind: MonitorEventKind
    sample: Sample | None = None
    reading: Reading | None = None
    value: Any = None
