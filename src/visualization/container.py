"""
Chart Container
================
Lifecycle state machine shared by every chart variant.

The container decides which state a chart is in (loading > error > empty >
ready), renders the header, placeholder or delegated content, footer and
export controls, and forwards export clicks to the export pipeline.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple

from loguru import logger

from .formatting import TooltipRow
from .geometry import GaugeGeometry
from .models import BaseChartConfig, ChartSeries, ChartState, ExportFormat, PieSlice

if TYPE_CHECKING:
    from export_pipeline.exporter import ExportPipeline, ExportResult

EMPTY_MESSAGE = "No data available"
EMPTY_DETAIL = "Select a different time range or check your data source"
ERROR_MESSAGE = "Error loading chart"
LOADING_MESSAGE = "Loading..."

HEADER_COLOR = "#1F2937"
SUBTITLE_COLOR = "#4B5563"
FOOTER_COLOR = "#6B7280"


def slugify_title(title: str) -> str:
    """Lower-case ``title`` and replace whitespace runs with hyphens."""
    return re.sub(r"\s+", "-", title.lower())


@dataclass(frozen=True)
class ChartHeader:
    title: str
    subtitle: Optional[str] = None


@dataclass(frozen=True)
class Placeholder:
    """Content stand-in for the loading, error and empty states."""
    state: ChartState
    message: str
    detail: Optional[str] = None


@dataclass(frozen=True)
class ChartFooter:
    point_count: int
    last_updated: datetime

    @property
    def text(self) -> str:
        return f"Data points: {self.point_count} | Last updated: {self.last_updated:%H:%M:%S}"


@dataclass(frozen=True)
class GaugeView:
    """Gauge-specific output alongside its figure."""
    geometry: GaugeGeometry
    color: str
    status: str
    value_text: str
    unit: str
    percentage_text: str
    min_label: str
    max_label: str


@dataclass
class ChartContent:
    """What a variant renderer contributes to a ready chart."""
    figure: Any
    series: Tuple[ChartSeries, ...] = ()
    tooltips: Tuple[TooltipRow, ...] = ()
    slices: Tuple[PieSlice, ...] = ()
    gauge: Optional[GaugeView] = None


@dataclass
class RenderedChart:
    """Result of one render pass."""
    state: ChartState
    header: ChartHeader
    aria_label: str
    height: int
    width: int
    placeholder: Optional[Placeholder] = None
    content: Optional[ChartContent] = None
    footer: Optional[ChartFooter] = None
    export_controls: Tuple[ExportFormat, ...] = field(default_factory=tuple)

    @property
    def figure(self) -> Any:
        return self.content.figure if self.content else None


class ChartContainer:
    """
    Common state/layout/export handling for a chart configuration.

    The state is recomputed from the configuration on every render; there is
    no transition history.
    """

    def __init__(
        self,
        config: BaseChartConfig,
        pipeline: Optional[ExportPipeline] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize container.

        Args:
            config: Chart configuration (any variant)
            pipeline: Export pipeline used for export clicks
            clock: Wall clock for the footer's "last updated" time
        """
        if pipeline is None:
            from export_pipeline import ExportPipeline
            pipeline = ExportPipeline.default()

        self.config = config
        self.pipeline = pipeline
        self.clock = clock or datetime.now

    @staticmethod
    def resolve_state(config: BaseChartConfig) -> ChartState:
        if config.loading:
            return ChartState.LOADING
        if config.error:
            return ChartState.ERROR
        if not config.data:
            return ChartState.EMPTY
        return ChartState.READY

    @property
    def state(self) -> ChartState:
        return self.resolve_state(self.config)

    @property
    def header(self) -> ChartHeader:
        return ChartHeader(title=self.config.title, subtitle=self.config.subtitle)

    @property
    def aria_label(self) -> str:
        return self.config.aria_label or f"{self.config.title} chart"

    @property
    def filename_prefix(self) -> str:
        options = self.config.export_options
        if options is not None and options.filename_prefix:
            return options.filename_prefix
        return slugify_title(self.config.title)

    def placeholder(self, state: ChartState, error: Optional[str] = None) -> Optional[Placeholder]:
        if state is ChartState.LOADING:
            return Placeholder(state, LOADING_MESSAGE)
        if state is ChartState.ERROR:
            return Placeholder(state, ERROR_MESSAGE, error)
        if state is ChartState.EMPTY:
            return Placeholder(state, EMPTY_MESSAGE, EMPTY_DETAIL)
        return None

    def _shell(self, state: ChartState, **kwargs) -> RenderedChart:
        return RenderedChart(
            state=state,
            header=self.header,
            aria_label=self.aria_label,
            height=self.config.height,
            width=self.config.width,
            **kwargs,
        )

    def render(self, build_content: Callable[[], ChartContent]) -> RenderedChart:
        """
        Render the chart, delegating content to ``build_content`` when ready.

        A failure while building content is shown as the error state.
        """
        state = self.state
        if state is not ChartState.READY:
            logger.debug(f"Chart '{self.config.title}' rendered in {state.value} state")
            return self._shell(state, placeholder=self.placeholder(state, self.config.error))

        try:
            content = build_content()
        except Exception as e:
            logger.exception(f"Chart '{self.config.title}' failed to render")
            return self._shell(
                ChartState.ERROR,
                placeholder=self.placeholder(ChartState.ERROR, str(e)),
            )

        footer = ChartFooter(point_count=len(self.config.data), last_updated=self.clock())
        self._decorate(content.figure, footer)

        options = self.config.export_options
        return self._shell(
            ChartState.READY,
            content=content,
            footer=footer,
            export_controls=options.enabled_formats if options else (),
        )

    def _decorate(self, figure: Any, footer: ChartFooter) -> None:
        """Draw header and footer onto the figure so snapshots include them."""
        figure.suptitle(
            self.config.title, x=0.02, ha="left", fontsize=12,
            fontweight="bold", color=HEADER_COLOR,
        )
        if self.config.subtitle:
            figure.text(0.02, 0.92, self.config.subtitle, fontsize=9, color=SUBTITLE_COLOR)
        figure.text(0.02, 0.01, footer.text, fontsize=7, color=FOOTER_COLOR)

    async def export(self, rendered: RenderedChart, export_format: ExportFormat) -> ExportResult:
        """Handle a click on one of the rendered chart's export controls."""
        from export_pipeline import ExportRequest, ExportResult

        export_format = ExportFormat(export_format)
        if export_format not in rendered.export_controls:
            message = f"{export_format.value.upper()} export is not enabled for '{self.config.title}'"
            logger.warning(message)
            return ExportResult(format=export_format, ok=False, error=message)

        request = ExportRequest(
            format=export_format,
            filename_prefix=self.filename_prefix,
            figure=rendered.figure,
            data=tuple(self.config.data or ()),
        )
        return await self.pipeline.export(request)
