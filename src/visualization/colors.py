"""
Color & Threshold Resolver
===========================
Deterministic palette assignment for multi-series charts and the gauge
color/status rules.

The gauge color and the gauge status label are resolved by two separate
rules and may disagree, e.g. a warning-band status shown with a ladder color
when only a critical threshold is configured.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger

from .geometry import raw_percentage
from .models import ChartSeries, GaugeReading

DEFAULT_PALETTE: Tuple[str, ...] = (
    "#3B82F6",  # Blue
    "#10B981",  # Green
    "#F59E0B",  # Yellow
    "#EF4444",  # Red
    "#8B5CF6",  # Purple
    "#06B6D4",  # Cyan
    "#F97316",  # Orange
    "#84CC16",  # Lime
    "#EC4899",  # Pink
    "#6B7280",  # Gray
)

# Gauge ladder tiers, highest first
TIER_GREEN = "#10B981"
TIER_BLUE = "#3B82F6"
TIER_YELLOW = "#F59E0B"
TIER_RED = "#EF4444"

WARNING_COLOR = "#F59E0B"
CRITICAL_COLOR = "#EF4444"

LADDER: Tuple[Tuple[float, str], ...] = (
    (80.0, TIER_GREEN),
    (60.0, TIER_BLUE),
    (40.0, TIER_YELLOW),
)


def default_palette() -> Tuple[str, ...]:
    """The process-wide default palette."""
    return DEFAULT_PALETTE


def series_color(index: int, palette: Optional[Sequence[str]] = None) -> str:
    """Color for the series at ordinal ``index``, cycling through ``palette``."""
    colors = tuple(palette) if palette else DEFAULT_PALETTE
    return colors[index % len(colors)]


def assign_series_colors(
    data_keys: Sequence[str],
    palette: Optional[Sequence[str]] = None,
    units: Optional[Mapping[str, str]] = None,
    start_index: int = 0,
) -> List[ChartSeries]:
    """
    Build series for ``data_keys`` in order.

    Args:
        data_keys: Keys to visualize; position decides the color
        palette: Colors to cycle through (default palette if omitted)
        units: Optional unit per data key
        start_index: Ordinal of the first key, for series continuing another group

    Returns:
        One ChartSeries per key
    """
    units = units or {}
    return [
        ChartSeries(
            data_key=key,
            color=series_color(start_index + i, palette),
            unit=units.get(key),
        )
        for i, key in enumerate(data_keys)
    ]


# =============================================================================
# GAUGE RESOLUTION
# =============================================================================

class GaugeStatus(str, Enum):
    """Textual gauge status."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def ladder_color(percentage: float) -> str:
    for floor, color in LADDER:
        if percentage >= floor:
            return color
    return TIER_RED


def resolve_gauge_color(reading: GaugeReading) -> str:
    """
    Color for a gauge reading; first matching rule wins.

    1. custom color range containing the value
    2. critical threshold reached
    3. warning threshold reached
    4. percentage ladder: >=80 green, >=60 blue, >=40 yellow, else red
    """
    value = reading.value
    for color_range in reading.color_ranges:
        if color_range.min <= value <= color_range.max:
            return color_range.color

    if reading.critical_threshold is not None and value >= reading.critical_threshold:
        return CRITICAL_COLOR
    if reading.warning_threshold is not None and value >= reading.warning_threshold:
        return WARNING_COLOR

    return ladder_color(raw_percentage(value, reading.min, reading.max))


def resolve_gauge_status(reading: GaugeReading) -> GaugeStatus:
    value = reading.value
    if reading.critical_threshold is not None and value >= reading.critical_threshold:
        return GaugeStatus.CRITICAL
    if reading.warning_threshold is not None and value >= reading.warning_threshold:
        return GaugeStatus.WARNING
    return GaugeStatus.NORMAL


# =============================================================================
# EQUIPMENT STATUS
# =============================================================================

class EquipmentStatus(str, Enum):
    """Operational status reported for a piece of equipment."""
    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"
    MAINTENANCE = "maintenance"
    WARNING = "warning"


@dataclass(frozen=True)
class StatusStyle:
    label: str
    color: str


STATUS_STYLES: Dict[EquipmentStatus, StatusStyle] = {
    EquipmentStatus.ONLINE: StatusStyle("Online", "#22C55E"),
    EquipmentStatus.OFFLINE: StatusStyle("Offline", "#6B7280"),
    EquipmentStatus.ERROR: StatusStyle("Error", "#EF4444"),
    EquipmentStatus.MAINTENANCE: StatusStyle("Maintenance", "#EAB308"),
    EquipmentStatus.WARNING: StatusStyle("Warning", "#F97316"),
}

UNKNOWN_STATUS = StatusStyle("Unknown", "#6B7280")


def status_style(status: str) -> StatusStyle:
    """Label and indicator color for an equipment status string."""
    try:
        return STATUS_STYLES[EquipmentStatus(status)]
    except ValueError:
        logger.debug(f"Unknown equipment status: {status!r}")
        return UNKNOWN_STATUS
