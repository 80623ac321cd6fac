"""
Geometry Tests
===============
Gauge and pie layout math.
"""

import math
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from visualization.geometry import (
    arc_fraction,
    clamp_percentage,
    compute_gauge_geometry,
    gauge_arc_points,
    gauge_point,
    gauge_theta,
    label_visible,
    percentage_to_angle,
    pie_label_anchor,
    raw_percentage,
    slice_angles,
    value_to_angle,
)


class TestPercentages:
    """Tests for value -> percentage -> angle mapping."""

    def test_midpoint(self):
        assert clamp_percentage(50, 0, 100) == 50
        assert percentage_to_angle(50) == 90

    def test_out_of_range_values_are_clamped(self):
        """Values outside [min, max] pin to 0% or 100%."""
        assert clamp_percentage(150, 0, 100) == 100
        assert clamp_percentage(-10, 0, 100) == 0
        assert percentage_to_angle(140) == 180

    def test_offset_scale(self):
        assert clamp_percentage(15, 10, 20) == pytest.approx(50)

    def test_raw_percentage_is_unclamped(self):
        assert raw_percentage(120, 0, 100) == pytest.approx(120)

    @pytest.mark.parametrize("min_value, max_value", [(0, 100), (-20, 40), (5, 5)])
    def test_angle_monotonic_in_value(self, min_value, max_value):
        """Angle never decreases as the value rises, below, inside and above the range."""
        values = np.linspace(min_value - 50, max_value + 50, 61)
        angles = [value_to_angle(v, min_value, max_value) for v in values]
        assert all(b >= a for a, b in zip(angles, angles[1:]))
        assert angles[0] == 0
        assert angles[-1] == 180

    def test_degenerate_scale(self):
        """A zero-width scale reads full at or above max, empty below."""
        assert raw_percentage(5, 5, 5) == 100
        assert raw_percentage(4, 5, 5) == 0
        assert value_to_angle(5, 5, 5) == 180


class TestGaugeGeometry:
    """Tests for needle, arc and tick placement."""

    def test_gauge_point_orientation(self):
        """0% points left, 50% straight up, 100% right (screen y grows downward)."""
        center = (100.0, 100.0)
        assert gauge_point(center, 80, 0) == pytest.approx((20, 100))
        assert gauge_point(center, 80, 90) == pytest.approx((100, 20))
        assert gauge_point(center, 80, 180) == pytest.approx((180, 100))

    def test_gauge_frame_rotation(self):
        """Needle math is theta = angle - 90, turned a quarter turn onto the screen."""
        assert gauge_theta(0) == -180
        assert gauge_theta(90) == -90
        assert gauge_theta(180) == 0

    @pytest.mark.parametrize("angle", [0, 30, 60, 90, 120, 150, 180])
    def test_dial_stays_above_center(self, angle):
        """The whole sweep lies in the upper half, leaving room for the readout."""
        assert gauge_point((100.0, 100.0), 80, angle)[1] <= 100 + 1e-9

    def test_half_scale_needle(self, half_gauge):
        assert half_gauge.angle == pytest.approx(90)
        assert half_gauge.needle_tip == pytest.approx((100, 20))
        assert half_gauge.center == (100, 100)

    def test_arc_dimensions(self, half_gauge):
        assert half_gauge.arc_radius == pytest.approx(70)
        assert half_gauge.stroke_width == pytest.approx(16)

    def test_value_arc_fraction(self, half_gauge):
        """Visible dash length is angle/180 of the half circumference."""
        arc = half_gauge.value_arc
        assert arc.fraction == pytest.approx(0.5)
        assert arc.visible_length == pytest.approx(math.pi * 70 / 2)
        assert arc.offset == 0
        assert arc.gap_length == pytest.approx(math.pi * 70)

    def test_dash_pattern_scaling(self):
        """Dash lengths scale together; the gap covers the whole semicircle."""
        offset, (on, off) = arc_fraction(10, 45).dash_pattern(scale=2.0)
        assert offset == 0
        assert on == pytest.approx(math.pi * 10 / 4 * 2)
        assert off == pytest.approx(math.pi * 10 * 2)

    def test_full_and_empty_arcs(self):
        assert arc_fraction(50, 180).fraction == pytest.approx(1.0)
        assert arc_fraction(50, 0).visible_length == 0

    def test_over_max_reading(self):
        geometry = compute_gauge_geometry(150, 0, 100, 200)
        assert geometry.percentage == 100
        assert geometry.angle == 180

    def test_threshold_ticks(self):
        """Ticks cross the arc stroke at the threshold angle."""
        geometry = compute_gauge_geometry(50, 0, 100, 200, warning_threshold=80, critical_threshold=95)
        assert [t.kind for t in geometry.ticks] == ["warning", "critical"]

        warning = geometry.ticks[0]
        assert warning.angle == pytest.approx(144)
        start = np.hypot(warning.start[0] - 100, warning.start[1] - 100)
        end = np.hypot(warning.end[0] - 100, warning.end[1] - 100)
        assert start == pytest.approx(62)
        assert end == pytest.approx(78)

    def test_no_ticks_without_thresholds(self, half_gauge):
        assert half_gauge.ticks == ()

    def test_arc_points_shape(self):
        points = gauge_arc_points((100, 100), 70, 0, 180, samples=50)
        assert points.shape == (50, 2)
        np.testing.assert_allclose(points[0], [30, 100], atol=1e-9)
        np.testing.assert_allclose(points[-1], [170, 100], atol=1e-9)


class TestPieGeometry:
    """Tests for slice angles and label anchors."""

    def test_equal_slices_with_padding(self):
        angles = slice_angles([0.5, 0.5])
        assert angles[0] == pytest.approx((0, 178))
        assert angles[1] == pytest.approx((180, 358))

    def test_zero_slice_gets_no_padding(self):
        angles = slice_angles([1.0, 0.0])
        assert angles[0] == pytest.approx((0, 358))
        assert angles[1][0] == pytest.approx(angles[1][1])

    def test_label_anchor_right_side(self):
        position, anchor = pie_label_anchor((100, 100), 0, 80, 0)
        assert position == pytest.approx((140, 100))
        assert anchor == "start"

    def test_label_anchor_left_side(self):
        position, anchor = pie_label_anchor((100, 100), 0, 80, 180)
        assert position == pytest.approx((60, 100))
        assert anchor == "end"

    def test_label_mid_angle_is_negated(self):
        """Counter-clockwise 90 degrees lands above the center in screen space."""
        position, _ = pie_label_anchor((100, 100), 40, 80, 90)
        assert position == pytest.approx((100, 40))

    def test_label_threshold(self):
        assert label_visible(0.05)
        assert not label_visible(0.049)


# Fixtures

@pytest.fixture
def half_gauge():
    """Gauge of size 200 reading 50 on a 0-100 scale."""
    return compute_gauge_geometry(50, 0, 100, 200)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
