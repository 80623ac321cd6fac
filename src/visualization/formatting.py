"""
Series/Tooltip Formatter
=========================
Tooltip text, axis labels and summary statistics for chart series.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .models import ChartPoint, ChartSeries, TooltipFormatter


def format_value(value: Any) -> str:
    """Plain display text for a data value; whole floats drop their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_tooltip_value(
    value: Any,
    data_key: str,
    units: Optional[Mapping[str, str]] = None,
    formatter: Optional[TooltipFormatter] = None,
) -> str:
    """
    Tooltip text for one series value.

    A caller formatter replaces the default entirely; units are only used
    by the default ``"<value><unit>"`` text.
    """
    if formatter is not None:
        return formatter(value, data_key)
    unit = (units or {}).get(data_key, "")
    return f"{format_value(value)}{unit}"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string or epoch milliseconds.

    Returns None when the value cannot be interpreted as a point in time.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _local(moment: datetime) -> datetime:
    # Naive timestamps are already local wall-clock time
    return moment.astimezone() if moment.tzinfo is not None else moment


def format_timestamp(value: Any, with_seconds: bool = True) -> str:
    """Local hour:minute[:second] label for a timestamp; unparseable input is echoed."""
    moment = parse_timestamp(value)
    if moment is None:
        logger.trace(f"Unparseable timestamp: {value!r}")
        return format_value(value)
    return _local(moment).strftime("%H:%M:%S" if with_seconds else "%H:%M")


def format_date(value: Any) -> str:
    """Short local date label, e.g. ``Oct 19, 2026``."""
    moment = parse_timestamp(value)
    if moment is None:
        return format_value(value)
    local = _local(moment)
    return f"{local:%b} {local.day}, {local.year}"


def x_value(point: ChartPoint, x_key: str) -> Any:
    """X-axis value of a row, falling back to its generic ``x`` field."""
    if x_key in point:
        return point[x_key]
    return point.get("x")


def axis_label_formatter(x_key: str) -> Callable[[Any], str]:
    """Tick/tooltip label formatter for an x key."""
    if x_key == "timestamp":
        return format_timestamp
    return format_value


# =============================================================================
# TOOLTIPS
# =============================================================================

@dataclass(frozen=True)
class TooltipLine:
    name: str
    text: str
    color: str


@dataclass(frozen=True)
class TooltipRow:
    """Tooltip content for one x position."""
    label: str
    lines: Tuple[TooltipLine, ...]


def build_tooltip_rows(
    data: Sequence[ChartPoint],
    series: Sequence[ChartSeries],
    x_key: str,
    units: Optional[Mapping[str, str]] = None,
    formatter: Optional[TooltipFormatter] = None,
) -> List[TooltipRow]:
    """Tooltip rows for every data point; series missing from a row are skipped."""
    label_for = axis_label_formatter(x_key)
    rows = []
    for point in data:
        lines = tuple(
            TooltipLine(
                name=s.data_key,
                text=format_tooltip_value(point[s.data_key], s.data_key, units, formatter),
                color=s.color,
            )
            for s in series
            if point.get(s.data_key) is not None
        )
        rows.append(TooltipRow(label=label_for(x_value(point, x_key)), lines=lines))
    return rows


# =============================================================================
# STATISTICS
# =============================================================================

@dataclass(frozen=True)
class SeriesStats:
    """Summary of the numeric values of one data key."""
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    sum: float = 0.0
    count: int = 0


def numeric_values(data: Sequence[ChartPoint], key: str) -> np.ndarray:
    values = [
        point[key] for point in data
        if isinstance(point.get(key), (int, float)) and not isinstance(point.get(key), bool)
    ]
    return np.asarray(values, dtype=float)


def calculate_stats(data: Sequence[ChartPoint], key: str) -> SeriesStats:
    """Min/max/average/sum over the numeric values of ``key``; zeros when none."""
    values = numeric_values(data, key)
    if values.size == 0:
        return SeriesStats()
    return SeriesStats(
        min=float(values.min()),
        max=float(values.max()),
        avg=float(values.mean()),
        sum=float(values.sum()),
        count=int(values.size),
    )
