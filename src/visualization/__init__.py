"""
Visualization Package
======================
Chart rendering for renewable-energy dashboards.
"""

from .models import (
    ChartType,
    ChartState,
    ExportFormat,
    ExportOptions,
    ColorRange,
    BaseChartConfig,
    LineChartConfig,
    AreaChartConfig,
    BarChartConfig,
    PieChartConfig,
    GaugeChartConfig,
    MultiAxisChartConfig,
    ChartConfig,
    ChartSeries,
    GaugeReading,
    PieSlice,
)
from .errors import (
    ChartEngineError,
    DataEmptyError,
    DataLoadError,
    ExportTargetMissingError,
    ExportLibraryUnavailableError,
)
from .colors import (
    DEFAULT_PALETTE,
    GaugeStatus,
    EquipmentStatus,
    assign_series_colors,
    resolve_gauge_color,
    resolve_gauge_status,
    series_color,
    status_style,
)
from .formatting import (
    SeriesStats,
    calculate_stats,
    format_date,
    format_timestamp,
    format_tooltip_value,
)
from .container import (
    ChartContainer,
    ChartContent,
    RenderedChart,
    slugify_title,
)
from .renderers import (
    ChartRenderer,
    LineChartRenderer,
    AreaChartRenderer,
    BarChartRenderer,
    PieChartRenderer,
    GaugeChartRenderer,
    MultiAxisChartRenderer,
    RENDERERS,
    create_renderer,
)

__all__ = [
    "ChartType",
    "ChartState",
    "ExportFormat",
    "ExportOptions",
    "ColorRange",
    "BaseChartConfig",
    "LineChartConfig",
    "AreaChartConfig",
    "BarChartConfig",
    "PieChartConfig",
    "GaugeChartConfig",
    "MultiAxisChartConfig",
    "ChartConfig",
    "ChartSeries",
    "GaugeReading",
    "PieSlice",
    "ChartEngineError",
    "DataEmptyError",
    "DataLoadError",
    "ExportTargetMissingError",
    "ExportLibraryUnavailableError",
    "DEFAULT_PALETTE",
    "GaugeStatus",
    "EquipmentStatus",
    "assign_series_colors",
    "resolve_gauge_color",
    "resolve_gauge_status",
    "series_color",
    "status_style",
    "SeriesStats",
    "calculate_stats",
    "format_date",
    "format_timestamp",
    "format_tooltip_value",
    "ChartContainer",
    "ChartContent",
    "RenderedChart",
    "slugify_title",
    "ChartRenderer",
    "LineChartRenderer",
    "AreaChartRenderer",
    "BarChartRenderer",
    "PieChartRenderer",
    "GaugeChartRenderer",
    "MultiAxisChartRenderer",
    "RENDERERS",
    "create_renderer",
]
