"""
Tests for the telemetry buffer (chart window + export log).
"""

import pytest

from thermodash.telemetry.buffer import TelemetryBuffer


class TestSlidingWindow:
    """Tests for the fixed-capacity display window."""

    def test_default_capacity_is_twenty(self):
        """Test that the chart keeps 20 samples unless configured otherwise."""
        assert TelemetryBuffer().capacity == 20

    def test_window_holds_last_twenty_in_arrival_order(self, make_sample):
        """Test that after N > 20 pushes the window is exactly the last 20."""
        buffer = TelemetryBuffer(capacity=20)
        samples = [make_sample(20 + i * 0.5, seconds=i) for i in range(35)]

        for count, sample in enumerate(samples, start=1):
            buffer.push(sample)
            assert buffer.window_size == min(count, 20)

        assert buffer.snapshot() == tuple(samples[-20:])

    def test_each_push_past_capacity_evicts_one(self, make_sample):
        """Test that a full window drops only its oldest sample."""
        buffer = TelemetryBuffer(capacity=3)
        a, b, c, d = (make_sample(t, seconds=t) for t in range(4))
        for s in (a, b, c):
            buffer.push(s)

        buffer.push(d)

        assert buffer.snapshot() == (b, c, d)

    def test_snapshot_does_not_change_later(self, make_sample):
        """Test that a snapshot is a copy, not a live view."""
        buffer = TelemetryBuffer(capacity=2)
        buffer.push(make_sample(1))
        snapshot = buffer.snapshot()

        buffer.push(make_sample(2, seconds=1))
        buffer.push(make_sample(3, seconds=2))

        assert [s.temperature for s in snapshot] == [1.0]

    @pytest.mark.parametrize("capacity", [0, -5])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            TelemetryBuffer(capacity=capacity)


class TestExportLog:
    """Tests for the unbounded export log."""

    def test_export_log_counts_every_push(self, make_sample):
        """Test that the export log is not limited by the window."""
        buffer = TelemetryBuffer(capacity=5)

        for i in range(50):
            buffer.push(make_sample(i, seconds=i))
            assert len(buffer) == i + 1

        assert len(buffer.export_series()) == 50
        assert buffer.window_size == 5

    def test_export_rows_are_iso_timestamped(self, make_sample):
        """Test row layout: (ISO time, temperature, threshold)."""
        buffer = TelemetryBuffer()
        sample = make_sample(26.456, threshold=80.0)
        buffer.push(sample)

        (row,) = buffer.export_series()

        assert row.time == sample.timestamp.isoformat()
        assert row.temperature == 26.456
        assert row.threshold == 80.0

    def test_clear_empties_window_and_log(self, make_sample):
        """Test that clear() resets both sequences."""
        buffer = TelemetryBuffer(capacity=3)
        for i in range(10):
            buffer.push(make_sample(i, seconds=i))

        buffer.clear()

        assert buffer.snapshot() == ()
        assert buffer.export_series() == []
        assert len(buffer) == 0

    def test_empty_export_series(self):
        """Test that an empty log yields no rows."""
        assert TelemetryBuffer().export_series() == []
