"""
Tests for CSV export.
"""

from datetime import date

from thermodash.services.export import CSV_HEADERS, export_filename, render_csv
from thermodash.telemetry.buffer import TelemetryBuffer


class TestRenderCsv:
    def test_header_and_rows(self, make_sample):
        buffer = TelemetryBuffer()
        buffer.push(make_sample(26.456, threshold=100, seconds=0))
        buffer.push(make_sample(101.0, threshold=100, seconds=1))

        lines = render_csv(buffer.export_series()).splitlines()

        assert lines[0] == "Time,Temperature (°C),Threshold (°C)"
        assert lines[1] == "2025-10-27T12:00:00+00:00,26.46,100.00"
        assert lines[2] == "2025-10-27T12:00:01+00:00,101.00,100.00"

    def test_rows_follow_log_order_past_window(self, make_sample):
        """Test that export covers the whole log, not just the chart window."""
        buffer = TelemetryBuffer(capacity=3)
        for i in range(10):
            buffer.push(make_sample(20 + i, seconds=i))

        lines = render_csv(buffer.export_series()).splitlines()

        assert len(lines) == 11
        assert [line.split(",")[1] for line in lines[1:]] == [f"{20 + i}.00" for i in range(10)]

    def test_header_constant(self):
        assert render_csv([]) == ",".join(CSV_HEADERS) + "\n"


class TestExportFilename:
    def test_named_after_day(self):
        assert export_filename(date(2025, 10, 27)) == "temperature_data_2025-10-27.csv"

    def test_defaults_to_today(self):
        assert export_filename() == f"temperature_data_{date.today().isoformat()}.csv"
