"""
Charts Service - PNG snapshots of the temperature chart
Uses matplotlib + seaborn for server-side PNG generation
"""

import matplotlib
matplotlib.use('Agg')  # Headless mode - must be before pyplot import

import matplotlib.pyplot as plt
import matplotlib.dates as mdates
import seaborn as sns
from datetime import datetime
from io import BytesIO
from typing import Sequence

from thermodash.telemetry.models import Sample

# Set seaborn style
sns.set_theme(style="whitegrid", palette="husl")

TEMPERATURE_COLOR = '#60a5fa'
THRESHOLD_COLOR = '#ef4444'
ABOVE_COLOR = '#f97316'


def _local_times(samples: Sequence[Sample]) -> list[datetime]:
    # Chart axis shows wall-clock time of the dashboard host
    return [s.timestamp.astimezone().replace(tzinfo=None) for s in samples]


def generate_live_chart(samples: Sequence[Sample], title: str) -> BytesIO:
    """
    Render the display window: temperature line plus the dashed threshold line.

    Args:
        samples: Display window, oldest first
        title: Chart title

    Returns:
        BytesIO buffer with PNG image
    """
    if not samples:
        return _generate_empty_chart("No data yet. Start recording first.")

    times = _local_times(samples)
    temps = [s.temperature for s in samples]
    thresholds = [s.threshold for s in samples]

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.set_title(title, fontsize=14, fontweight='bold')

    ax.plot(times, temps, color=TEMPERATURE_COLOR, linewidth=3, marker='o',
            markersize=4, label='Temperature (°C)')
    ax.fill_between(times, temps, min(temps), alpha=0.1, color=TEMPERATURE_COLOR)
    ax.plot(times, thresholds, color=THRESHOLD_COLOR, linestyle='--', linewidth=2, label='Threshold')

    ax.set_ylabel('Temperature (°C)', fontsize=11)
    ax.set_xlabel('Time', fontsize=11)
    ax.legend(loc='upper left', fontsize=9)

    ax.xaxis.set_major_formatter(mdates.DateFormatter('%H:%M:%S'))
    plt.setp(ax.xaxis.get_majorticklabels(), rotation=45, ha='right')

    plt.tight_layout()

    buf = BytesIO()
    fig.savefig(buf, format='png', dpi=100, bbox_inches='tight',
                facecolor='white', edgecolor='none')
    buf.seek(0)
    plt.close(fig)

    return buf


def generate_session_report(samples: Sequence[Sample], title: str) -> BytesIO:
    """
    Render the whole recorded session with a stats box.
    Points at or above their threshold are highlighted.
    """
    if not samples:
        return _generate_empty_chart("No data to export. Start recording first.")

    times = _local_times(samples)
    temps = [s.temperature for s in samples]
    thresholds = [s.threshold for s in samples]

    avg_temp = sum(temps) / len(temps)
    max_temp = max(temps)
    min_temp = min(temps)
    time_above = sum(1 for s in samples if s.above_threshold) / len(samples) * 100

    fig, ax = plt.subplots(figsize=(12, 6))
    fig.suptitle(f'{title} - recorded session', fontsize=14, fontweight='bold')

    ax.plot(times, temps, color=TEMPERATURE_COLOR, linewidth=2, label='Temperature (°C)')
    ax.plot(times, thresholds, color=THRESHOLD_COLOR, linestyle='--', linewidth=1.5, label='Threshold')

    hot = [(t, s.temperature) for t, s in zip(times, samples) if s.above_threshold]
    if hot:
        ax.scatter([h[0] for h in hot], [h[1] for h in hot], color=ABOVE_COLOR,
                   s=18, zorder=3, label='At/above threshold')

    ax.set_ylabel('Temperature (°C)', fontsize=11)
    ax.legend(loc='upper right', fontsize=9)
    ax.xaxis.set_major_formatter(mdates.DateFormatter('%H:%M:%S'))
    plt.setp(ax.xaxis.get_majorticklabels(), rotation=45, ha='right')

    stats_text = (f'Avg: {avg_temp:.1f}°C | Max: {max_temp:.1f}°C | Min: {min_temp:.1f}°C | '
                  f'At/above threshold: {time_above:.0f}% of {len(samples)} samples')
    fig.text(0.5, 0.01, stats_text, ha='center', fontsize=10,
             bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

    plt.tight_layout(rect=[0, 0.04, 1, 0.97])

    buf = BytesIO()
    fig.savefig(buf, format='png', dpi=150, bbox_inches='tight',
                facecolor='white', edgecolor='none')
    buf.seek(0)
    plt.close(fig)

    return buf


def _generate_empty_chart(message: str) -> BytesIO:
    """Generate a simple chart with 'no data' message."""
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.text(0.5, 0.5, message, ha='center', va='center', fontsize=14, color='gray')
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.axis('off')

    buf = BytesIO()
    fig.savefig(buf, format='png', dpi=100, bbox_inches='tight',
                facecolor='white', edgecolor='none')
    buf.seek(0)
    plt.close(fig)

    return buf
