"""
Visualization - Data Models
============================
Pydantic configuration models and derived value types for the chart engine.

Configurations are validated once at construction; everything derived from
them (series colors, gauge readings, pie slices) is recomputed on each render
and never mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Callable, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# One row of caller-supplied data, keyed by metric name.
ChartPoint = Dict[str, Union[int, float, str, None]]

# Custom tooltip formatter: (value, series name) -> display text.
TooltipFormatter = Callable[[Any, str], str]


class ChartType(str, Enum):
    """Supported chart variants."""
    LINE = "line"
    AREA = "area"
    BAR = "bar"
    PIE = "pie"
    GAUGE = "gauge"
    MULTI_AXIS = "multi_axis"


class ChartState(str, Enum):
    """Container lifecycle state, evaluated fresh on every render."""
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


class ExportFormat(str, Enum):
    """Export formats offered by the chart container."""
    PNG = "png"
    SVG = "svg"
    CSV = "csv"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        return {
            ExportFormat.PNG: "image/png",
            ExportFormat.SVG: "image/svg+xml;charset=utf-8",
            ExportFormat.CSV: "text/csv;charset=utf-8",
        }[self]


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================

class ExportOptions(BaseModel):
    """Which export controls the container offers."""
    export_as_png: bool = False
    export_as_svg: bool = False
    export_as_csv: bool = False
    filename_prefix: Optional[str] = Field(
        None, description="Overrides the slugified title in export filenames"
    )

    @property
    def enabled_formats(self) -> Tuple[ExportFormat, ...]:
        flags = (
            (ExportFormat.PNG, self.export_as_png),
            (ExportFormat.SVG, self.export_as_svg),
            (ExportFormat.CSV, self.export_as_csv),
        )
        return tuple(fmt for fmt, enabled in flags if enabled)


class ColorRange(BaseModel):
    """Custom gauge color band, inclusive on both ends."""
    min: float
    max: float
    color: str


class BaseChartConfig(BaseModel):
    """
    Options shared by every chart variant.

    ``data`` may be None or empty; the container then renders its empty
    state instead of delegating to the variant renderer.
    """
    model_config = ConfigDict(frozen=True)

    title: str
    subtitle: Optional[str] = None
    data: Optional[List[ChartPoint]] = None
    height: int = Field(300, gt=0, description="Chart content height in pixels")
    width: int = Field(600, gt=0, description="Chart content width in pixels")
    loading: bool = False
    error: Optional[str] = None
    colors: Optional[List[str]] = Field(None, min_length=1)
    show_grid: bool = True
    show_legend: bool = True
    aria_label: Optional[str] = None
    export_options: Optional[ExportOptions] = None


class LineChartConfig(BaseChartConfig):
    """Time-series lines, optionally filled."""
    type: Literal["line"] = "line"
    data_keys: List[str]
    x_key: str = "timestamp"
    x_axis_label: Optional[str] = None
    y_axis_label: Optional[str] = None
    show_area: bool = False
    show_dots: bool = True
    units: Dict[str, str] = Field(default_factory=dict)
    tooltip_formatter: Optional[TooltipFormatter] = None


class AreaChartConfig(BaseChartConfig):
    """Filled areas for generation/accumulation, optionally stacked."""
    type: Literal["area"] = "area"
    data_keys: List[str]
    x_key: str = "timestamp"
    x_axis_label: Optional[str] = None
    y_axis_label: Optional[str] = None
    stacked: bool = False
    units: Dict[str, str] = Field(default_factory=dict)
    tooltip_formatter: Optional[TooltipFormatter] = None


class BarChartConfig(BaseChartConfig):
    """Categorical bars keyed by ``x_key``, grouped or stacked."""
    type: Literal["bar"] = "bar"
    x_key: str
    data_keys: List[str]
    x_axis_label: Optional[str] = None
    y_axis_label: Optional[str] = None
    stacked: bool = False
    units: Dict[str, str] = Field(default_factory=dict)
    tooltip_formatter: Optional[TooltipFormatter] = None


class PieChartConfig(BaseChartConfig):
    """Proportional slices; ``inner_radius > 0`` gives a donut."""
    type: Literal["pie"] = "pie"
    data_key: str
    name_key: str
    show_percentage: bool = True
    show_value: bool = False
    inner_radius: float = Field(0.0, ge=0)
    outer_radius: float = Field(80.0, gt=0)
    tooltip_formatter: Optional[TooltipFormatter] = None

    @field_validator("outer_radius")
    @classmethod
    def _outer_exceeds_inner(cls, v: float, info) -> float:
        inner = info.data.get("inner_radius", 0.0)
        if v <= inner:
            raise ValueError("outer_radius must be greater than inner_radius")
        return v


class GaugeChartConfig(BaseChartConfig):
    """Semicircular gauge for a single live reading."""
    type: Literal["gauge"] = "gauge"
    value: float
    min: float
    max: float
    unit: str = ""
    warning_threshold: Optional[float] = None
    critical_threshold: Optional[float] = None
    size: int = Field(200, gt=0)
    color_ranges: Optional[List[ColorRange]] = None

    @field_validator("max")
    @classmethod
    def _max_not_below_min(cls, v: float, info) -> float:
        lower = info.data.get("min")
        if lower is not None and v < lower:
            raise ValueError("max must not be below min")
        return v

    @property
    def reading(self) -> "GaugeReading":
        return GaugeReading(
            value=self.value,
            min=self.min,
            max=self.max,
            warning_threshold=self.warning_threshold,
            critical_threshold=self.critical_threshold,
            color_ranges=tuple(self.color_ranges or ()),
        )


class MultiAxisChartConfig(BaseChartConfig):
    """Primary series as lines on the left axis, secondary as bars on the right."""
    type: Literal["multi_axis"] = "multi_axis"
    primary_data_keys: List[str]
    secondary_data_keys: List[str] = Field(default_factory=list)
    x_key: str = "timestamp"
    x_axis_label: Optional[str] = None
    primary_y_axis_label: Optional[str] = None
    secondary_y_axis_label: Optional[str] = None
    units: Dict[str, str] = Field(default_factory=dict)
    tooltip_formatter: Optional[TooltipFormatter] = None


ChartConfig = Annotated[
    Union[
        LineChartConfig,
        AreaChartConfig,
        BarChartConfig,
        PieChartConfig,
        GaugeChartConfig,
        MultiAxisChartConfig,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# DERIVED VALUES
# =============================================================================

@dataclass(frozen=True)
class ChartSeries:
    """One visualized data key with its derived color."""
    data_key: str
    color: str
    unit: Optional[str] = None


@dataclass(frozen=True)
class GaugeReading:
    """A gauge value together with its scale and thresholds."""
    value: float
    min: float
    max: float
    warning_threshold: Optional[float] = None
    critical_threshold: Optional[float] = None
    color_ranges: Tuple[ColorRange, ...] = ()


@dataclass(frozen=True)
class PieSlice:
    """A pie segment derived from one data row."""
    name: str
    value: float
    percent: float
    color: str
    start_angle: float
    end_angle: float
    mid_angle: float
    label_position: Tuple[float, float]
    text_anchor: str
    label: Optional[str] = None

    @property
    def label_visible(self) -> bool:
        return self.label is not None
