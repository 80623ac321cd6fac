"""
Formatting Tests
=================
Tooltip text, timestamp labels and series statistics.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from visualization.colors import assign_series_colors
from visualization.formatting import (
    build_tooltip_rows,
    calculate_stats,
    format_date,
    format_timestamp,
    format_tooltip_value,
    format_value,
    parse_timestamp,
    x_value,
)

NOON_UTC_MS = 1_792_411_200_000  # 2026-10-19T12:00:00Z


class TestTooltipValues:
    """Tests for default and custom tooltip text."""

    def test_value_with_unit(self):
        assert format_tooltip_value(12.5, "power", {"power": " kW"}) == "12.5 kW"

    def test_value_without_unit(self):
        assert format_tooltip_value(12.5, "power") == "12.5"

    def test_custom_formatter_replaces_units(self):
        text = format_tooltip_value(12.5, "power", {"power": " kW"}, lambda v, name: f"{name}={v}")
        assert text == "power=12.5"

    def test_whole_floats_drop_decimal(self):
        assert format_value(3.0) == "3"
        assert format_value(3.25) == "3.25"
        assert format_value(None) == ""


class TestTimestamps:
    """Tests for timestamp parsing and local-time labels."""

    def test_iso_with_z(self):
        moment = parse_timestamp("2026-10-19T12:00:00Z")
        assert moment == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(NOON_UTC_MS) == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_local_time_label(self):
        expected = datetime.fromtimestamp(NOON_UTC_MS / 1000)
        assert format_timestamp(NOON_UTC_MS) == expected.strftime("%H:%M:%S")
        assert format_timestamp("2026-10-19T12:00:00Z", with_seconds=False) == expected.strftime("%H:%M")

    def test_unparseable_input_is_echoed(self):
        assert format_timestamp("not a date") == "not a date"
        assert parse_timestamp(None) is None

    def test_format_date(self):
        assert format_date(datetime(2026, 10, 19, 9, 30)) == "Oct 19, 2026"


class TestTooltipRows:
    """Tests for per-point tooltip rows."""

    def test_missing_values_are_skipped(self):
        data = [
            {"site": "North", "a": 1, "b": 2},
            {"site": "South", "a": 3, "b": None},
        ]
        series = assign_series_colors(["a", "b"])
        rows = build_tooltip_rows(data, series, "site", {"a": " kW"})

        assert [row.label for row in rows] == ["North", "South"]
        assert [line.text for line in rows[0].lines] == ["1 kW", "2"]
        assert [line.name for line in rows[1].lines] == ["a"]

    def test_x_fallback(self):
        assert x_value({"x": 4}, "timestamp") == 4


class TestStatistics:
    """Tests for summary statistics."""

    def test_numeric_values_only(self):
        data = [{"a": 1}, {"a": 3}, {"a": "n/a"}, {"b": 2}, {"a": True}]
        stats = calculate_stats(data, "a")
        assert stats.min == 1
        assert stats.max == 3
        assert stats.avg == pytest.approx(2)
        assert stats.sum == 4
        assert stats.count == 2

    def test_no_values(self):
        stats = calculate_stats([{"b": 1}], "a")
        assert (stats.min, stats.max, stats.avg, stats.sum, stats.count) == (0, 0, 0, 0, 0)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
