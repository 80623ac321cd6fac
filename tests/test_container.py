"""
Chart Container Tests
======================
Lifecycle state, header/footer and export-control handling.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from export_pipeline import ExportPipeline, MemoryDownloadSink
from visualization import (
    AreaChartConfig,
    BarChartConfig,
    ChartState,
    ExportFormat,
    ExportOptions,
    GaugeChartConfig,
    LineChartConfig,
    MultiAxisChartConfig,
    PieChartConfig,
    create_renderer,
)
from visualization.container import (
    EMPTY_DETAIL,
    EMPTY_MESSAGE,
    ERROR_MESSAGE,
    LOADING_MESSAGE,
    ChartContainer,
    ChartContent,
    Placeholder,
    slugify_title,
)

FIXED_TIME = datetime(2026, 10, 19, 12, 34, 56)

VARIANT_FIELDS = {
    "line": (LineChartConfig, {"data_keys": ["power"]}),
    "area": (AreaChartConfig, {"data_keys": ["power"]}),
    "bar": (BarChartConfig, {"x_key": "site", "data_keys": ["power"]}),
    "pie": (PieChartConfig, {"data_key": "share", "name_key": "source"}),
    "gauge": (GaugeChartConfig, {"value": 50, "min": 0, "max": 100}),
    "multi_axis": (MultiAxisChartConfig, {"primary_data_keys": ["power"]}),
}


class TestStateResolution:
    """Tests for loading > error > empty > ready precedence."""

    def test_loading_wins(self):
        config = LineChartConfig(title="T", data_keys=["a"], data=[{"a": 1}], loading=True, error="x")
        assert ChartContainer.resolve_state(config) is ChartState.LOADING

    def test_error_before_empty(self):
        config = LineChartConfig(title="T", data_keys=["a"], data=[], error="feed down")
        assert ChartContainer.resolve_state(config) is ChartState.ERROR

    def test_empty_for_none_and_empty_list(self):
        assert ChartContainer.resolve_state(LineChartConfig(title="T", data_keys=["a"])) is ChartState.EMPTY
        assert ChartContainer.resolve_state(
            LineChartConfig(title="T", data_keys=["a"], data=[])
        ) is ChartState.EMPTY

    def test_ready(self):
        config = LineChartConfig(title="T", data_keys=["a"], data=[{"a": 1}])
        assert ChartContainer.resolve_state(config) is ChartState.READY


class TestPlaceholders:
    """Tests for non-ready rendering."""

    @pytest.mark.parametrize("variant", sorted(VARIANT_FIELDS))
    def test_empty_state_identical_across_variants(self, variant, memory_pipeline):
        model, fields = VARIANT_FIELDS[variant]
        rendered = create_renderer(model(title="Empty", data=[], **fields), pipeline=memory_pipeline).render()

        assert rendered.state is ChartState.EMPTY
        assert rendered.placeholder == Placeholder(ChartState.EMPTY, EMPTY_MESSAGE, EMPTY_DETAIL)
        assert rendered.content is None
        assert rendered.footer is None
        assert rendered.export_controls == ()

    def test_error_message_shown(self, memory_pipeline):
        config = LineChartConfig(title="T", data_keys=["a"], error="Feed unavailable")
        rendered = ChartContainer(config, pipeline=memory_pipeline).render(_unreachable)
        assert rendered.placeholder.message == ERROR_MESSAGE
        assert rendered.placeholder.detail == "Feed unavailable"

    def test_loading_placeholder(self, memory_pipeline):
        config = LineChartConfig(title="T", data_keys=["a"], loading=True)
        rendered = ChartContainer(config, pipeline=memory_pipeline).render(_unreachable)
        assert rendered.placeholder.message == LOADING_MESSAGE

    def test_render_failure_becomes_error_state(self, memory_pipeline):
        config = LineChartConfig(title="T", data_keys=["a"], data=[{"a": 1}])

        def broken():
            raise RuntimeError("boom")

        rendered = ChartContainer(config, pipeline=memory_pipeline).render(broken)
        assert rendered.state is ChartState.ERROR
        assert rendered.placeholder.detail == "boom"


class TestReadyChart:
    """Tests for header, footer and export controls of a ready chart."""

    def test_footer_and_controls(self, ready_config, memory_pipeline):
        container = ChartContainer(ready_config, pipeline=memory_pipeline, clock=lambda: FIXED_TIME)
        rendered = container.render(lambda: ChartContent(figure=_figure()))

        assert rendered.state is ChartState.READY
        assert rendered.footer.text == "Data points: 2 | Last updated: 12:34:56"
        assert rendered.export_controls == (ExportFormat.PNG, ExportFormat.CSV)
        assert rendered.header.title == "Solar Farm Output"

    def test_default_aria_label(self, ready_config, memory_pipeline):
        assert ChartContainer(ready_config, pipeline=memory_pipeline).aria_label == "Solar Farm Output chart"

    def test_custom_aria_label(self, memory_pipeline):
        config = LineChartConfig(title="T", data_keys=["a"], aria_label="Output trend")
        assert ChartContainer(config, pipeline=memory_pipeline).aria_label == "Output trend"

    def test_filename_prefix_from_title(self, ready_config, memory_pipeline):
        assert ChartContainer(ready_config, pipeline=memory_pipeline).filename_prefix == "solar-farm-output"

    def test_filename_prefix_override(self, memory_pipeline):
        config = LineChartConfig(
            title="Solar", data_keys=["a"],
            export_options=ExportOptions(export_as_csv=True, filename_prefix="site-7"),
        )
        assert ChartContainer(config, pipeline=memory_pipeline).filename_prefix == "site-7"

    def test_slugify_collapses_whitespace(self):
        assert slugify_title("Wind  Turbine\tOutput") == "wind-turbine-output"


class TestContainerExport:
    """Tests for export clicks routed through the container."""

    @pytest.mark.asyncio
    async def test_disabled_format_is_skipped(self, ready_config, memory_pipeline):
        container = ChartContainer(ready_config, pipeline=memory_pipeline)
        rendered = container.render(lambda: ChartContent(figure=_figure()))

        result = await container.export(rendered, ExportFormat.SVG)

        assert not result.ok
        assert "not enabled" in result.error
        assert memory_pipeline.sink.artifacts == []

    @pytest.mark.asyncio
    async def test_csv_export_uses_slug(self, ready_config, memory_pipeline):
        container = ChartContainer(ready_config, pipeline=memory_pipeline)
        rendered = container.render(lambda: ChartContent(figure=_figure()))

        result = await container.export(rendered, ExportFormat.CSV)

        assert result.ok
        assert result.filename.startswith("solar-farm-output-")
        assert result.filename.endswith(".csv")


def _unreachable():
    raise AssertionError("content must not be built outside the ready state")


def _figure():
    from matplotlib.figure import Figure
    return Figure(figsize=(2, 1))


# Fixtures

@pytest.fixture
def memory_pipeline():
    """Export pipeline that keeps artifacts in memory."""
    return ExportPipeline.default(sink=MemoryDownloadSink())


@pytest.fixture
def ready_config():
    """Two-point line chart with PNG and CSV exports enabled."""
    return LineChartConfig(
        title="Solar Farm Output",
        data_keys=["power"],
        data=[
            {"timestamp": "2026-10-19T10:00:00Z", "power": 86.2},
            {"timestamp": "2026-10-19T12:00:00Z", "power": 104.7},
        ],
        export_options=ExportOptions(export_as_png=True, export_as_csv=True),
    )


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
