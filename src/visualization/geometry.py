"""
Chart Geometry
==============
Polar/Cartesian helpers shared by the gauge and pie renderers.

All positions are screen coordinates: x grows to the right and y grows
downward, as on a canvas. Angles are in degrees.

This module provides:
- Percentage clamping and percentage -> sweep angle mapping
- Polar -> Cartesian conversion
- Arc-fraction (dash pattern) encoding for partial gauge arcs
- Gauge needle, arc and threshold tick layout
- Pie slice angles and label anchors
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

Point = Tuple[float, float]

GAUGE_SWEEP_DEG = 180.0
NEEDLE_RADIUS_RATIO = 0.4
ARC_RADIUS_RATIO = 0.35
ARC_STROKE_RATIO = 0.08
GAUGE_FRAME_ROTATION_DEG = -90.0

PIE_PADDING_DEG = 2.0
PIE_LABEL_RADIUS_RATIO = 0.5
PIE_LABEL_MIN_PERCENT = 0.05


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp ``value`` into ``[lower, upper]``."""
    return float(np.clip(value, lower, upper))


def raw_percentage(value: float, min_value: float, max_value: float) -> float:
    """
    Position of ``value`` on the ``[min, max]`` scale, in percent, unclamped.

    A degenerate scale (``max == min``) reads as full when the value has
    reached it and empty otherwise.
    """
    span = max_value - min_value
    if span == 0:
        return 100.0 if value >= max_value else 0.0
    return (value - min_value) / span * 100


def clamp_percentage(value: float, min_value: float, max_value: float) -> float:
    """``raw_percentage`` clamped to ``[0, 100]``."""
    return clamp(raw_percentage(value, min_value, max_value), 0.0, 100.0)


def percentage_to_angle(percentage: float, sweep: float = GAUGE_SWEEP_DEG) -> float:
    """Map a percentage onto the gauge sweep; out-of-range input is clamped."""
    return clamp(percentage, 0.0, 100.0) / 100 * sweep


def value_to_angle(value: float, min_value: float, max_value: float) -> float:
    return percentage_to_angle(raw_percentage(value, min_value, max_value))


def polar_to_cartesian(center: Point, radius: float, angle_deg: float) -> Point:
    """Point at ``radius`` from ``center`` along ``angle_deg``."""
    theta = math.radians(angle_deg)
    return (
        center[0] + radius * math.cos(theta),
        center[1] + radius * math.sin(theta),
    )


def gauge_theta(sweep_angle: float) -> float:
    """
    Screen angle for a gauge sweep angle.

    Needle math uses ``theta = sweep_angle - 90`` in the gauge frame; the
    frame is turned a further quarter turn onto the screen so that 0% points
    left and 100% points right, passing through the top.
    """
    return sweep_angle - 90 + GAUGE_FRAME_ROTATION_DEG


def gauge_point(center: Point, radius: float, sweep_angle: float) -> Point:
    """Point on the gauge for a sweep angle in ``[0, 180]``."""
    return polar_to_cartesian(center, radius, gauge_theta(sweep_angle))


def gauge_arc_points(
    center: Point,
    radius: float,
    start_angle: float,
    end_angle: float,
    samples: int = 100,
) -> NDArray:
    """Sampled polyline (N x 2) along the gauge arc between two sweep angles."""
    theta = np.radians(gauge_theta(np.linspace(start_angle, end_angle, max(2, samples))))
    return np.column_stack((
        center[0] + radius * np.cos(theta),
        center[1] + radius * np.sin(theta),
    ))


@dataclass(frozen=True)
class ArcStroke:
    """
    Dash encoding of a partial arc.

    Stroking the full semicircle, drawn from its 0% end, with dash pattern
    ``(visible_length, gap_length)`` shifted by ``offset`` leaves only the
    first ``fraction`` of it visible. The gap spans the whole semicircle so
    the pattern never repeats.
    """
    radius: float
    visible_length: float
    gap_length: float
    offset: float = 0.0

    @property
    def half_circumference(self) -> float:
        return math.pi * self.radius

    @property
    def fraction(self) -> float:
        if self.half_circumference == 0:
            return 0.0
        return self.visible_length / self.half_circumference

    def dash_pattern(self, scale: float = 1.0) -> Tuple[float, Tuple[float, float]]:
        """``(offset, (on, off))`` with lengths multiplied by ``scale``."""
        return (self.offset * scale, (self.visible_length * scale, self.gap_length * scale))


def arc_fraction(radius: float, sweep_angle: float, sweep: float = GAUGE_SWEEP_DEG) -> ArcStroke:
    """Encode ``sweep_angle / sweep`` of a semicircle as an ``ArcStroke``."""
    half = math.pi * radius
    visible = half * clamp(sweep_angle, 0.0, sweep) / sweep
    return ArcStroke(radius=radius, visible_length=visible, gap_length=half)


# =============================================================================
# GAUGE LAYOUT
# =============================================================================

@dataclass(frozen=True)
class ThresholdTick:
    """Short radial segment marking a threshold across the arc stroke."""
    kind: str
    value: float
    angle: float
    start: Point
    end: Point


@dataclass(frozen=True)
class GaugeGeometry:
    """Everything needed to draw a gauge of a given pixel size."""
    size: float
    percentage: float
    angle: float
    center: Point
    needle_tip: Point
    arc_radius: float
    stroke_width: float
    value_arc: ArcStroke
    ticks: Tuple[ThresholdTick, ...] = ()


def threshold_tick(
    kind: str,
    threshold: float,
    min_value: float,
    max_value: float,
    center: Point,
    arc_radius: float,
    stroke_width: float,
) -> ThresholdTick:
    angle = value_to_angle(threshold, min_value, max_value)
    half = stroke_width / 2
    return ThresholdTick(
        kind=kind,
        value=threshold,
        angle=angle,
        start=gauge_point(center, arc_radius - half, angle),
        end=gauge_point(center, arc_radius + half, angle),
    )


def compute_gauge_geometry(
    value: float,
    min_value: float,
    max_value: float,
    size: float,
    warning_threshold: Optional[float] = None,
    critical_threshold: Optional[float] = None,
) -> GaugeGeometry:
    """
    Lay out a gauge.

    Args:
        value: Current reading
        min_value: Scale minimum
        max_value: Scale maximum
        size: Gauge box edge in pixels
        warning_threshold: Optional warning level, drawn as a tick
        critical_threshold: Optional critical level, drawn as a tick

    Returns:
        GaugeGeometry with needle tip, value arc encoding and ticks
    """
    percentage = clamp_percentage(value, min_value, max_value)
    angle = percentage_to_angle(percentage)
    center = (size / 2, size / 2)
    arc_radius = size * ARC_RADIUS_RATIO
    stroke_width = size * ARC_STROKE_RATIO

    ticks = []
    for kind, threshold in (("warning", warning_threshold), ("critical", critical_threshold)):
        if threshold is not None:
            ticks.append(threshold_tick(
                kind, threshold, min_value, max_value, center, arc_radius, stroke_width
            ))

    return GaugeGeometry(
        size=size,
        percentage=percentage,
        angle=angle,
        center=center,
        needle_tip=gauge_point(center, size * NEEDLE_RADIUS_RATIO, angle),
        arc_radius=arc_radius,
        stroke_width=stroke_width,
        value_arc=arc_fraction(arc_radius, angle),
        ticks=tuple(ticks),
    )


# =============================================================================
# PIE LAYOUT
# =============================================================================

def slice_angles(
    percents: Sequence[float],
    start_angle: float = 0.0,
    end_angle: float = 360.0,
    padding: float = PIE_PADDING_DEG,
) -> List[Tuple[float, float]]:
    """
    Start/end angles (counter-clockwise, degrees) for each slice.

    Every non-empty slice is followed by ``padding`` degrees of gap; the
    remaining sweep is shared out by percent.
    """
    non_zero = sum(1 for p in percents if p > 0)
    available = max(abs(end_angle - start_angle) - non_zero * padding, 0.0)

    angles = []
    cursor = start_angle
    for percent in percents:
        sweep = available * percent
        angles.append((cursor, cursor + sweep))
        cursor += sweep + (padding if percent > 0 else 0.0)
    return angles


def pie_label_radius(inner_radius: float, outer_radius: float) -> float:
    return inner_radius + (outer_radius - inner_radius) * PIE_LABEL_RADIUS_RATIO


def pie_label_anchor(
    center: Point,
    inner_radius: float,
    outer_radius: float,
    mid_angle: float,
) -> Tuple[Point, str]:
    """
    Label position for a slice and its text anchor.

    Slice angles run counter-clockwise while screen y grows downward, so the
    mid-angle is negated before conversion.
    """
    position = polar_to_cartesian(center, pie_label_radius(inner_radius, outer_radius), -mid_angle)
    anchor = "start" if position[0] > center[0] else "end"
    return position, anchor


def label_visible(percent: float) -> bool:
    """Thin slices get no label so their text cannot overlap."""
    return percent >= PIE_LABEL_MIN_PERCENT
