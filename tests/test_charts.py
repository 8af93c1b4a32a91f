"""
Tests for chart PNG rendering.
"""

from thermodash.services.charts import (
    _generate_empty_chart,
    generate_live_chart,
    generate_session_report,
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestCharts:
    def test_live_chart(self, make_sample):
        samples = [make_sample(90 + i, seconds=i) for i in range(20)]

        image = generate_live_chart(samples, "Thermocouple")

        assert image.getvalue().startswith(PNG_SIGNATURE)

    def test_session_report_with_alarm_points(self, make_sample):
        samples = [make_sample(t, threshold=100, seconds=i) for i, t in enumerate([95, 99, 101, 104, 98])]

        image = generate_session_report(samples, "Session")

        assert image.getvalue().startswith(PNG_SIGNATURE)

    def test_empty_series(self):
        assert generate_live_chart([], "Empty").getvalue().startswith(PNG_SIGNATURE)
        assert generate_session_report([], "Empty").getvalue().startswith(PNG_SIGNATURE)

    def test_empty_chart(self):
        assert _generate_empty_chart("No data").getvalue().startswith(PNG_SIGNATURE)
