"""
Tests for the event emitter and settings helpers.
"""

from thermodash.core.config import Settings
from thermodash.core.events import EventEmitter


class TestEventEmitter:
    async def test_handlers_run_in_order(self):
        emitter = EventEmitter("test")
        calls = []

        async def second(event):
            calls.append(("async", event))

        emitter.subscribe(lambda event: calls.append(("sync", event)))
        emitter.subscribe(second)

        await emitter.emit(1)

        assert calls == [("sync", 1), ("async", 1)]

    async def test_failing_handler_does_not_stop_others(self):
        emitter = EventEmitter("test")
        calls = []

        def broken(event):
            raise RuntimeError("boom")

        emitter.subscribe(broken)
        emitter.subscribe(calls.append)

        await emitter.emit("reading")

        assert calls == ["reading"]

    async def test_unsubscribe(self):
        emitter = EventEmitter("test")
        calls = []
        unsubscribe = emitter.subscribe(calls.append)

        unsubscribe()
        unsubscribe()
        await emitter.emit("reading")

        assert calls == []


class TestSettings:
    def test_default_port_omitted(self):
        assert Settings(device_ip="192.168.1.200", device_port=80).device_address == "192.168.1.200"

    def test_custom_port(self):
        assert Settings(device_ip="192.168.1.200", device_port=8080).device_address == "192.168.1.200:8080"
