"""
Export Service - CSV file of the recorded series
"""

import csv
import io
from datetime import date
from typing import Iterable

from thermodash.telemetry.models import ExportRow

CSV_HEADERS = ("Time", "Temperature (°C)", "Threshold (°C)")


def render_csv(rows: Iterable[ExportRow]) -> str:
    """
    Header plus one line per row; numbers with two decimals.

    Callers check for an empty series first: an export with no rows is
    reported to the user instead of producing a header-only file.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow([row.time, f"{row.temperature:.2f}", f"{row.threshold:.2f}"])
    return buffer.getvalue()


def export_filename(day: date | None = None) -> str:
    day = day or date.today()
    return f"temperature_data_{day.isoformat()}.csv"
