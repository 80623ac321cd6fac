"""
Chart Type Renderers
=====================
Matplotlib rendering for the six chart variants.

Each renderer maps its typed configuration onto a figure and hands lifecycle
state, header/footer and export handling to a ``ChartContainer``.

This module provides:
- Line, area and bar charts over a shared Cartesian base
- Multi-axis charts (lines on the left axis, bars on the right)
- Pie/donut charts with thin-slice label suppression
- Semicircular gauges with threshold ticks
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np
from numpy.typing import NDArray
from matplotlib.axes import Axes
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib import rcParams
from matplotlib.patches import Circle, Patch, Wedge
from loguru import logger

from .colors import (
    CRITICAL_COLOR,
    WARNING_COLOR,
    assign_series_colors,
    default_palette,
    resolve_gauge_color,
    resolve_gauge_status,
    series_color,
)
from .container import ChartContainer, ChartContent, GaugeView, RenderedChart
from .formatting import (
    TooltipLine,
    TooltipRow,
    axis_label_formatter,
    build_tooltip_rows,
    format_value,
    x_value,
)
from .geometry import (
    ArcStroke,
    compute_gauge_geometry,
    gauge_arc_points,
    label_visible,
    pie_label_anchor,
    slice_angles,
)
from .models import (
    AreaChartConfig,
    BarChartConfig,
    BaseChartConfig,
    ChartPoint,
    ChartSeries,
    ChartType,
    ExportFormat,
    GaugeChartConfig,
    LineChartConfig,
    MultiAxisChartConfig,
    PieChartConfig,
    PieSlice,
)

PX_PER_INCH = 100
PT_PER_PX = 72 / PX_PER_INCH

AXIS_COLOR = "#6b7280"
GRID_COLOR = "#f0f0f0"
TRACK_COLOR = "#e5e7eb"
NEEDLE_COLOR = "#374151"
TEXT_COLOR = "#1f2937"
MUTED_TEXT_COLOR = "#6b7280"

THRESHOLD_COLORS = {
    "warning": WARNING_COLOR,
    "critical": CRITICAL_COLOR,
}

MAX_X_TICKS = 8

# Figure band (fractions of the height) reserved for the gauge box
GAUGE_AREA_BOTTOM = 0.08
GAUGE_AREA_HEIGHT = 0.76


def new_figure(width: int, height: int) -> Figure:
    """Blank white figure sized in pixels, bound to an Agg canvas."""
    figure = Figure(
        figsize=(width / PX_PER_INCH, height / PX_PER_INCH),
        dpi=PX_PER_INCH,
        facecolor="white",
    )
    FigureCanvasAgg(figure)
    return figure


def numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def dash_linestyle(stroke: ArcStroke, pt_per_unit: float, linewidth: float) -> Tuple[float, Tuple[float, float]]:
    """
    Matplotlib dash style drawing only the visible part of ``stroke``.

    Dash lengths are given in points; matplotlib multiplies them by the line
    width when ``lines.scale_dashes`` is set.
    """
    offset, (on, off) = stroke.dash_pattern(pt_per_unit)
    if rcParams["lines.scale_dashes"] and linewidth > 0:
        offset, on, off = offset / linewidth, on / linewidth, off / linewidth
    return (offset, (on, off))


def series_matrix(data: Sequence[ChartPoint], keys: Sequence[str]) -> NDArray:
    """(keys x points) float matrix; missing or non-numeric values are NaN."""
    matrix = np.full((len(keys), len(data)), np.nan)
    for j, point in enumerate(data):
        for i, key in enumerate(keys):
            value = numeric(point.get(key))
            if value is not None:
                matrix[i, j] = value
    return matrix


class ChartRenderer:
    """
    Base class for chart variants.

    Subclasses implement ``build_content``; it is only called when the
    container is in its ready state, so it may assume non-empty data.
    """

    chart_type: ChartType
    config_model: Type[BaseChartConfig] = BaseChartConfig

    def __init__(
        self,
        config: BaseChartConfig,
        pipeline: Optional[Any] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize renderer.

        Args:
            config: Variant configuration
            pipeline: Export pipeline (default matplotlib pipeline if omitted)
            clock: Wall clock for the footer timestamp
        """
        if not isinstance(config, self.config_model):
            raise TypeError(
                f"{type(self).__name__} expects {self.config_model.__name__}, "
                f"got {type(config).__name__}"
            )
        self.config = config
        self.container = ChartContainer(config, pipeline=pipeline, clock=clock)

    @property
    def palette(self) -> Tuple[str, ...]:
        return tuple(self.config.colors) if self.config.colors else default_palette()

    @property
    def data(self) -> List[ChartPoint]:
        return list(self.config.data or [])

    def render(self) -> RenderedChart:
        return self.container.render(self.build_content)

    def build_content(self) -> ChartContent:
        raise NotImplementedError

    async def export(self, export_format: ExportFormat, rendered: Optional[RenderedChart] = None):
        """Export ``rendered`` (or a fresh render) in the given format."""
        if rendered is None:
            rendered = self.render()
        return await self.container.export(rendered, export_format)


# =============================================================================
# CARTESIAN CHARTS
# =============================================================================

class CartesianChartRenderer(ChartRenderer):
    """Shared axes, ticks, grid, legend and tooltip handling."""

    def series(self) -> List[ChartSeries]:
        return assign_series_colors(self.config.data_keys, self.palette, self.config.units)

    @property
    def x_key(self) -> str:
        return self.config.x_key

    def x_positions(self) -> NDArray:
        return np.arange(len(self.data), dtype=float)

    def x_labels(self) -> List[str]:
        label_for = axis_label_formatter(self.x_key)
        return [label_for(x_value(point, self.x_key)) for point in self.data]

    def new_axes(self) -> Tuple[Figure, Axes]:
        figure = new_figure(self.config.width, self.config.height)
        figure.subplots_adjust(left=0.1, right=0.9, top=0.74, bottom=0.22)
        return figure, figure.add_subplot(111)

    def style_axes(self, ax: Axes, x_label: Optional[str], y_label: Optional[str]) -> None:
        positions = self.x_positions()
        labels = self.x_labels()
        step = max(1, int(np.ceil(len(positions) / MAX_X_TICKS)))
        ax.set_xticks(positions[::step])
        ax.set_xticklabels(labels[::step], fontsize=8)

        for spine in ax.spines.values():
            spine.set_visible(False)
        ax.tick_params(colors=AXIS_COLOR, length=0, labelsize=8)

        if self.config.show_grid:
            ax.grid(True, linestyle="--", color=GRID_COLOR)
            ax.set_axisbelow(True)
        if x_label:
            ax.set_xlabel(x_label, color=AXIS_COLOR, fontsize=9)
        if y_label:
            ax.set_ylabel(y_label, color=AXIS_COLOR, fontsize=9)

    def add_legend(self, *axes: Axes) -> None:
        if not self.config.show_legend:
            return
        handles, labels = [], []
        for ax in axes:
            h, l = ax.get_legend_handles_labels()
            handles.extend(h)
            labels.extend(l)
        if handles:
            axes[0].legend(
                handles, labels,
                loc="lower center", bbox_to_anchor=(0.5, 1.0),
                ncol=min(len(handles), 5), frameon=False, fontsize=8,
            )

    def tooltips(self, series: Sequence[ChartSeries]) -> Tuple[TooltipRow, ...]:
        return tuple(build_tooltip_rows(
            self.data, series, self.x_key, self.config.units, self.config.tooltip_formatter
        ))


class LineChartRenderer(CartesianChartRenderer):
    """Time-series lines with optional dots and light area fill."""

    chart_type = ChartType.LINE
    config_model = LineChartConfig

    def build_content(self) -> ChartContent:
        figure, ax = self.new_axes()
        x = self.x_positions()
        series = self.series()
        matrix = series_matrix(self.data, self.config.data_keys)

        for values, s in zip(matrix, series):
            ax.plot(
                x, values,
                color=s.color, linewidth=2,
                marker="o" if self.config.show_dots else None, markersize=4,
                label=s.data_key,
            )
            if self.config.show_area:
                ax.fill_between(x, values, color=s.color, alpha=0.1, linewidth=0)

        self.style_axes(ax, self.config.x_axis_label, self.config.y_axis_label)
        self.add_legend(ax)
        logger.debug(f"Line chart '{self.config.title}': {len(series)} series, {len(x)} points")
        return ChartContent(figure=figure, series=tuple(series), tooltips=self.tooltips(series))


class AreaChartRenderer(CartesianChartRenderer):
    """Filled areas; stacked areas accumulate with missing values as zero."""

    chart_type = ChartType.AREA
    config_model = AreaChartConfig

    def build_content(self) -> ChartContent:
        figure, ax = self.new_axes()
        x = self.x_positions()
        series = self.series()
        matrix = series_matrix(self.data, self.config.data_keys)
        if self.config.stacked:
            matrix = np.nan_to_num(matrix)

        baseline = np.zeros(len(x))
        for values, s in zip(matrix, series):
            if self.config.stacked:
                lower, upper = baseline, baseline + values
                baseline = upper
            else:
                lower, upper = np.zeros(len(x)), values
            ax.fill_between(x, lower, upper, color=s.color, alpha=0.3, linewidth=0, label=s.data_key)
            ax.plot(x, upper, color=s.color, linewidth=2)

        self.style_axes(ax, self.config.x_axis_label, self.config.y_axis_label)
        self.add_legend(ax)
        return ChartContent(figure=figure, series=tuple(series), tooltips=self.tooltips(series))


class BarChartRenderer(CartesianChartRenderer):
    """Grouped or stacked bars over categorical ``x_key`` values."""

    chart_type = ChartType.BAR
    config_model = BarChartConfig

    def build_content(self) -> ChartContent:
        figure, ax = self.new_axes()
        x = self.x_positions()
        series = self.series()
        matrix = np.nan_to_num(series_matrix(self.data, self.config.data_keys))

        if self.config.stacked:
            bottom = np.zeros(len(x))
            for heights, s in zip(matrix, series):
                ax.bar(x, heights, 0.6, bottom=bottom, color=s.color, label=s.data_key)
                bottom = bottom + heights
        else:
            width = 0.8 / max(len(series), 1)
            for i, (heights, s) in enumerate(zip(matrix, series)):
                offset = (i - (len(series) - 1) / 2) * width
                ax.bar(x + offset, heights, width, color=s.color, label=s.data_key)

        self.style_axes(ax, self.config.x_axis_label, self.config.y_axis_label)
        self.add_legend(ax)
        return ChartContent(figure=figure, series=tuple(series), tooltips=self.tooltips(series))


class MultiAxisChartRenderer(CartesianChartRenderer):
    """
    Two value scales on one time axis.

    Secondary series continue the palette after the primary ones, so a
    secondary key never reuses a primary key's color while the palette lasts.
    """

    chart_type = ChartType.MULTI_AXIS
    config_model = MultiAxisChartConfig

    def primary_series(self) -> List[ChartSeries]:
        return assign_series_colors(self.config.primary_data_keys, self.palette, self.config.units)

    def secondary_series(self) -> List[ChartSeries]:
        return assign_series_colors(
            self.config.secondary_data_keys,
            self.palette,
            self.config.units,
            start_index=len(self.config.primary_data_keys),
        )

    def series(self) -> List[ChartSeries]:
        return self.primary_series() + self.secondary_series()

    def build_content(self) -> ChartContent:
        figure, ax = self.new_axes()
        x = self.x_positions()
        primary = self.primary_series()
        secondary = self.secondary_series()

        for values, s in zip(series_matrix(self.data, self.config.primary_data_keys), primary):
            ax.plot(x, values, color=s.color, linewidth=2, marker="o", markersize=4, label=s.data_key)

        self.style_axes(ax, self.config.x_axis_label, self.config.primary_y_axis_label)
        axes = [ax]

        if secondary:
            ax_right = ax.twinx()
            width = 0.6 / len(secondary)
            matrix = np.nan_to_num(series_matrix(self.data, self.config.secondary_data_keys))
            for i, (heights, s) in enumerate(zip(matrix, secondary)):
                offset = (i - (len(secondary) - 1) / 2) * width
                ax_right.bar(x + offset, heights, width, color=s.color, alpha=0.7, label=s.data_key)
            for spine in ax_right.spines.values():
                spine.set_visible(False)
            ax_right.tick_params(colors=AXIS_COLOR, length=0, labelsize=8)
            if self.config.secondary_y_axis_label:
                ax_right.set_ylabel(self.config.secondary_y_axis_label, color=AXIS_COLOR, fontsize=9)
            # Lines stay above the bars
            ax.set_zorder(ax_right.get_zorder() + 1)
            ax.patch.set_visible(False)
            axes.append(ax_right)

        self.add_legend(*axes)
        series = primary + secondary
        return ChartContent(figure=figure, series=tuple(series), tooltips=self.tooltips(series))


# =============================================================================
# PIE
# =============================================================================

class PieChartRenderer(ChartRenderer):
    """Pie or donut chart with per-slice labels."""

    chart_type = ChartType.PIE
    config_model = PieChartConfig

    @property
    def center(self) -> Tuple[float, float]:
        return (self.config.width / 2, self.config.height / 2)

    def label_text(self, value: float, percent: float) -> Optional[str]:
        parts = []
        if self.config.show_value:
            parts.append(format_value(value))
        if self.config.show_percentage:
            parts.append(f"{percent * 100:.0f}%")
        return " ".join(parts) or None

    def compute_slices(self) -> List[PieSlice]:
        """Slices with percentages, angles and (possibly suppressed) labels."""
        data = self.data
        values = [numeric(point.get(self.config.data_key)) or 0.0 for point in data]
        total = sum(values)
        percents = [value / total if total > 0 else 0.0 for value in values]

        slices = []
        for i, (point, value, percent, (start, end)) in enumerate(
            zip(data, values, percents, slice_angles(percents))
        ):
            mid = (start + end) / 2
            position, anchor = pie_label_anchor(
                self.center, self.config.inner_radius, self.config.outer_radius, mid
            )
            slices.append(PieSlice(
                name=format_value(point.get(self.config.name_key)),
                value=value,
                percent=percent,
                color=series_color(i, self.palette),
                start_angle=start,
                end_angle=end,
                mid_angle=mid,
                label_position=position,
                text_anchor=anchor,
                label=self.label_text(value, percent) if label_visible(percent) else None,
            ))
        return slices

    def tooltip_text(self, pie_slice: PieSlice) -> str:
        formatter = self.config.tooltip_formatter
        if formatter is not None:
            return formatter(pie_slice.value, pie_slice.name)
        return f"{format_value(pie_slice.value)} ({pie_slice.percent * 100:.1f}%)"

    def build_content(self) -> ChartContent:
        slices = self.compute_slices()
        figure = new_figure(self.config.width, self.config.height)
        ax = figure.add_axes([0.0, 0.1, 1.0, 0.72])
        ax.set_xlim(0, self.config.width)
        ax.set_ylim(self.config.height, 0)
        ax.set_aspect("equal")
        ax.axis("off")

        ring = self.config.outer_radius - self.config.inner_radius
        for s in slices:
            if s.end_angle > s.start_angle:
                # Screen y points down, so counter-clockwise angles are negated
                ax.add_patch(Wedge(
                    self.center, self.config.outer_radius, -s.end_angle, -s.start_angle,
                    width=ring if self.config.inner_radius > 0 else None,
                    facecolor=s.color, edgecolor="white",
                ))
            if s.label is not None:
                ax.text(
                    s.label_position[0], s.label_position[1], s.label,
                    color="white", fontsize=9, fontweight="bold", va="center",
                    ha="left" if s.text_anchor == "start" else "right",
                )

        if self.config.show_legend:
            handles = [Patch(facecolor=s.color, label=s.name) for s in slices]
            ax.legend(handles=handles, loc="upper center", bbox_to_anchor=(0.5, 0.0),
                      ncol=min(len(handles), 4), frameon=False, fontsize=8)

        tooltips = tuple(
            TooltipRow(label=s.name, lines=(TooltipLine(s.name, self.tooltip_text(s), s.color),))
            for s in slices
        )
        return ChartContent(figure=figure, tooltips=tooltips, slices=tuple(slices))


# =============================================================================
# GAUGE
# =============================================================================

class GaugeChartRenderer(ChartRenderer):
    """
    Semicircular gauge for a single reading.

    Provides needle, track and value arcs, threshold ticks, the numeric
    readout and a status label colored by the resolved gauge color.
    """

    chart_type = ChartType.GAUGE
    config_model = GaugeChartConfig

    def view(self) -> GaugeView:
        config = self.config
        reading = config.reading
        geometry = compute_gauge_geometry(
            config.value, config.min, config.max, config.size,
            config.warning_threshold, config.critical_threshold,
        )
        return GaugeView(
            geometry=geometry,
            color=resolve_gauge_color(reading),
            status=resolve_gauge_status(reading).label,
            value_text=f"{config.value:.1f}",
            unit=config.unit,
            percentage_text=f"{geometry.percentage:.0f}%",
            min_label=f"{format_value(config.min)} {config.unit}".strip(),
            max_label=f"{format_value(config.max)} {config.unit}".strip(),
        )

    def gauge_axes(self, figure: Figure) -> Tuple[Axes, float]:
        """
        Square axes holding the ``size x size`` gauge box.

        Returns the axes and the number of points per gauge unit, which turns
        gauge lengths into line widths and dash lengths.
        """
        width, height = self.config.width, self.config.height
        side = min(width, height * GAUGE_AREA_HEIGHT)
        ax = figure.add_axes([
            (width - side) / 2 / width,
            GAUGE_AREA_BOTTOM + (height * GAUGE_AREA_HEIGHT - side) / 2 / height,
            side / width,
            side / height,
        ])
        size = self.config.size
        ax.set_xlim(0, size)
        ax.set_ylim(size, 0)
        ax.axis("off")
        return ax, side / size * PT_PER_PX

    def build_content(self) -> ChartContent:
        view = self.view()
        geometry = view.geometry
        size = geometry.size
        cx, cy = geometry.center

        figure = new_figure(self.config.width, self.config.height)
        ax, pt_per_unit = self.gauge_axes(figure)

        stroke = geometry.stroke_width * pt_per_unit
        track = gauge_arc_points(geometry.center, geometry.arc_radius, 0, 180, samples=181)
        ax.plot(track[:, 0], track[:, 1], color=TRACK_COLOR, linewidth=stroke,
                solid_capstyle="butt", gid="gauge-track")

        if geometry.angle > 0:
            ax.plot(
                track[:, 0], track[:, 1],
                color=view.color, linewidth=stroke, dash_capstyle="round", gid="gauge-value",
                linestyle=dash_linestyle(geometry.value_arc, pt_per_unit, stroke),
            )

        for tick in geometry.ticks:
            ax.plot(
                [tick.start[0], tick.end[0]], [tick.start[1], tick.end[1]],
                color=THRESHOLD_COLORS[tick.kind], linewidth=3 * PT_PER_PX, linestyle="--",
            )

        ax.plot([cx, geometry.needle_tip[0]], [cy, geometry.needle_tip[1]],
                color=NEEDLE_COLOR, linewidth=4 * PT_PER_PX, solid_capstyle="round", gid="gauge-needle")
        ax.add_patch(Circle(geometry.center, 8, color=NEEDLE_COLOR))

        # The dial only sweeps the upper half, so the readout sits below the hub
        ax.text(cx, cy + size * 0.14, view.value_text, ha="center", va="center",
                fontsize=18, fontweight="bold", color=TEXT_COLOR, gid="gauge-value-text")
        ax.text(cx, cy + size * 0.24, view.unit, ha="center", va="center",
                fontsize=9, color=MUTED_TEXT_COLOR)
        ax.text(cx, cy + size * 0.31, view.percentage_text, ha="center", va="center",
                fontsize=8, color=MUTED_TEXT_COLOR)

        label_y = cy + geometry.stroke_width
        ax.text(cx - geometry.arc_radius, label_y, view.min_label, ha="center", va="top",
                fontsize=8, color=MUTED_TEXT_COLOR)
        ax.text(cx + geometry.arc_radius, label_y, view.max_label, ha="center", va="top",
                fontsize=8, color=MUTED_TEXT_COLOR)

        figure.text(0.5, 0.06, f"● {view.status}", ha="center", fontsize=9, color=view.color)
        return ChartContent(figure=figure, gauge=view)


RENDERERS: Dict[ChartType, Type[ChartRenderer]] = {
    ChartType.LINE: LineChartRenderer,
    ChartType.AREA: AreaChartRenderer,
    ChartType.BAR: BarChartRenderer,
    ChartType.PIE: PieChartRenderer,
    ChartType.GAUGE: GaugeChartRenderer,
    ChartType.MULTI_AXIS: MultiAxisChartRenderer,
}


def create_renderer(config: BaseChartConfig, **kwargs) -> ChartRenderer:
    """Renderer for any variant configuration (dispatch on its ``type``)."""
    return RENDERERS[ChartType(config.type)](config, **kwargs)
