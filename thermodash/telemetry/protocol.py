"""
Device wire protocol

Device -> dashboard, one JSON object per text frame:
    {"temperature": 26.5}              periodic reading, once per second
    {"status": "ok"}                   reply to "test"
    {"recording": "started"|"stopped"} reply to "start_record" / "end_record"
    {"data": [26.1, 26.3, ...]}        reply to "get_record"
    {"error": "unknown command"}       reply to anything else

Dashboard -> device: plaintext command frames (see Command).
"""

import json
import math
from datetime import datetime, timezone
from enum import Enum

from thermodash.telemetry.models import DeviceReply, Reading

WS_PATH = "/ws"
REPLY_KEYS = ("status", "recording", "data", "error")


class Command(str, Enum):
    TEST = "test"
    START_RECORD = "start_record"
    END_RECORD = "end_record"
    GET_RECORD = "get_record"


class MalformedFrame(ValueError):
    """Frame that is neither a temperature reading nor a known reply."""


def device_url(address: str) -> str:
    """ws://<address>/ws for a bare host or host:port."""
    address = address.strip()
    if not address:
        raise ValueError("Device address is empty")
    if address.startswith(("ws://", "wss://")):
        address = address.split("://", 1)[1]
    return f"ws://{address.rstrip('/')}{WS_PATH}"


def _is_number(value) -> bool:
    # bool is an int subclass but never a reading
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def decode_frame(message: str | bytes, received_at: datetime | None = None) -> Reading | DeviceReply:
    """
    Decode one inbound frame.

    Returns a Reading for temperature frames and a DeviceReply for command
    replies. Raises MalformedFrame for everything else.
    """
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedFrame(f"Binary frame is not UTF-8: {e}") from e

    try:
        payload = json.loads(message)
    except json.JSONDecodeError as e:
        raise MalformedFrame(f"Invalid JSON: {e.msg}") from e
    except RecursionError as e:
        raise MalformedFrame("JSON nested too deeply") from e

    if not isinstance(payload, dict):
        raise MalformedFrame("Frame is not a JSON object")

    if "temperature" in payload:
        temperature = payload["temperature"]
        if not _is_number(temperature):
            raise MalformedFrame(f"Non-numeric temperature: {temperature!r}")
        return Reading(
            received_at=received_at or datetime.now(timezone.utc),
            temperature=float(temperature),
        )

    for key in REPLY_KEYS:
        if key in payload:
            return DeviceReply(kind=key, value=payload[key])

    raise MalformedFrame("Frame has no temperature field")
