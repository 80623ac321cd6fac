"""
Export Pipeline
================
One-shot CSV, PNG and SVG exports of a rendered chart.

Each export is independent: it builds its own artifact, hands it to the
download sink and reports an ``ExportResult``. Failures are absorbed here:
a missing target is a logged no-op, an unavailable raster capability is
logged and raised to the user through the alert callback. Neither affects
the chart that was exported.
"""

from __future__ import annotations

import asyncio
import csv
import io
import itertools
import re
import sys
import copy
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Protocol, Sequence

from loguru import logger

from visualization.errors import (
    ChartEngineError,
    DataEmptyError,
    ExportLibraryUnavailableError,
    ExportTargetMissingError,
)
from visualization.models import ChartPoint, ExportFormat

from .snapshot import WHITE, AggRasterBackend, SnapshotBackend, SvgVectorBackend

SVG_NS = "http://www.w3.org/2000/svg"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", "http://www.w3.org/1999/xlink")


@dataclass(frozen=True)
class ExportRequest:
    """A single user-initiated export."""
    format: ExportFormat
    filename_prefix: str = "chart"
    figure: Optional[Any] = None
    data: Sequence[ChartPoint] = ()


@dataclass(frozen=True)
class ExportArtifact:
    """File contents offered for download."""
    filename: str
    media_type: str
    payload: bytes


@dataclass(frozen=True)
class ExportResult:
    """Outcome of one export."""
    format: ExportFormat
    ok: bool
    filename: Optional[str] = None
    location: Optional[str] = None
    error: Optional[str] = None
    alerted: bool = False


# =============================================================================
# DOWNLOAD SINKS
# =============================================================================

class DownloadSink(Protocol):
    """Receives finished artifacts; returns where the file went."""

    def deliver(self, artifact: ExportArtifact) -> Optional[str]:
        ...


class DirectoryDownloadSink:
    """
    Writes each artifact once into a download directory.

    Existing files are never overwritten: a name already taken gets a
    numeric suffix (``chart-...-1.csv``).
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def candidates(self, filename: str) -> Iterator[Path]:
        name = Path(filename)
        yield self.directory / name
        for n in itertools.count(1):
            yield self.directory / f"{name.stem}-{n}{name.suffix}"

    def deliver(self, artifact: ExportArtifact) -> Optional[str]:
        self.directory.mkdir(parents=True, exist_ok=True)
        for path in self.candidates(artifact.filename):
            try:
                with open(path, "xb") as f:
                    f.write(artifact.payload)
            except FileExistsError:
                continue
            if path.name != artifact.filename:
                logger.debug(f"{artifact.filename} already exists, saved as {path.name}")
            return str(path)


class MemoryDownloadSink:
    """Keeps artifacts in memory, e.g. for embedding or inspection."""

    def __init__(self):
        self.artifacts: List[ExportArtifact] = []

    def deliver(self, artifact: ExportArtifact) -> Optional[str]:
        self.artifacts.append(artifact)
        return artifact.filename


def _stderr_alert(message: str) -> None:
    print(message, file=sys.stderr)


# =============================================================================
# PURE HELPERS
# =============================================================================

def timestamp_suffix(now: Optional[datetime] = None) -> str:
    """Filesystem-safe UTC timestamp with millisecond precision."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    iso = now.isoformat(timespec="milliseconds").split("+")[0]
    return re.sub(r"[:.]", "-", iso)


def generate_filename(prefix: str = "chart", now: Optional[datetime] = None) -> str:
    """``<prefix>-<timestamp>``, without extension."""
    return f"{prefix}-{timestamp_suffix(now)}"


def csv_fieldnames(data: Sequence[ChartPoint]) -> List[str]:
    """Union of row keys in order of first appearance."""
    return list(dict.fromkeys(key for row in data for key in row))


def serialize_csv(data: Sequence[ChartPoint]) -> str:
    """
    Serialize rows to CSV text.

    Missing keys render as empty fields; values containing a comma or a
    double quote are quoted with inner quotes doubled.

    Raises:
        DataEmptyError: when there are no rows
    """
    if not data:
        raise DataEmptyError("No data to export")

    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=csv_fieldnames(data),
        restval="",
        lineterminator="\n",
    )
    writer.writeheader()
    for row in data:
        writer.writerow({key: ("" if value is None else value) for key, value in row.items()})
    return buffer.getvalue()


def _is_svg(element: ET.Element) -> bool:
    return element.tag in (f"{{{SVG_NS}}}svg", "svg")


def add_svg_background(svg_text: str, fill: str = WHITE) -> str:
    """
    Clone the first ``<svg>`` element and give it an opaque background.

    Raises:
        ExportTargetMissingError: when the document holds no svg element
    """
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise ExportTargetMissingError(f"Unreadable vector output: {e}") from e

    target = next((el for el in root.iter() if _is_svg(el)), None)
    if target is None:
        raise ExportTargetMissingError("SVG element not found in chart")

    clone = copy.deepcopy(target)
    rect_tag = f"{{{SVG_NS}}}rect" if target.tag.startswith("{") else "rect"
    background = ET.Element(rect_tag, {"width": "100%", "height": "100%", "fill": fill})
    clone.insert(0, background)
    return ET.tostring(clone, encoding="unicode")


# =============================================================================
# PIPELINE
# =============================================================================

class ExportPipeline:
    """
    Runs exports against rendered charts.

    Snapshot backends are injected; passing ``None`` for the raster backend
    means the capability is absent and PNG exports fail with an alert.
    """

    def __init__(
        self,
        sink: Optional[DownloadSink] = None,
        raster_backend: Optional[SnapshotBackend] = None,
        vector_backend: Optional[SnapshotBackend] = None,
        alert: Optional[Callable[[str], None]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize export pipeline.

        Args:
            sink: Where finished files go (in-memory if omitted)
            raster_backend: PNG snapshot capability, or None when unavailable
            vector_backend: SVG snapshot capability, or None when unavailable
            alert: User-facing alert callback for raster failures
            clock: UTC clock used for filename suffixes
        """
        self.sink = sink or MemoryDownloadSink()
        self.raster_backend = raster_backend
        self.vector_backend = vector_backend
        self.alert = alert or _stderr_alert
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def default(cls, sink: Optional[DownloadSink] = None, **kwargs) -> "ExportPipeline":
        """Pipeline wired with the matplotlib Agg and SVG backends."""
        return cls(
            sink=sink,
            raster_backend=AggRasterBackend(),
            vector_backend=SvgVectorBackend(),
            **kwargs,
        )

    def filename_for(self, request: ExportRequest) -> str:
        return f"{generate_filename(request.filename_prefix, self.clock())}.{request.format.extension}"

    def _deliver(self, request: ExportRequest, payload: bytes) -> ExportResult:
        artifact = ExportArtifact(
            filename=self.filename_for(request),
            media_type=request.format.media_type,
            payload=payload,
        )
        location = self.sink.deliver(artifact)
        logger.info(f"Exported {request.format.value.upper()} to {location or artifact.filename}")
        return ExportResult(
            format=request.format,
            ok=True,
            filename=Path(location).name if location else artifact.filename,
            location=location,
        )

    async def export(self, request: ExportRequest) -> ExportResult:
        """Run one export; never raises for engine failures."""
        try:
            if request.format is ExportFormat.CSV:
                return self.export_csv(request)
            if request.format is ExportFormat.PNG:
                return await self.export_png(request)
            return await self.export_svg(request)
        except ChartEngineError as e:
            logger.error(f"{request.format.value.upper()} export failed: {e}")
            return ExportResult(format=request.format, ok=False, error=str(e))

    def export_csv(self, request: ExportRequest) -> ExportResult:
        try:
            text = serialize_csv(request.data)
        except DataEmptyError as e:
            logger.warning(str(e))
            return ExportResult(format=request.format, ok=False, error=str(e))
        return self._deliver(request, text.encode("utf-8"))

    async def export_png(self, request: ExportRequest) -> ExportResult:
        if request.figure is None:
            logger.warning("Chart reference not found")
            return ExportResult(
                format=request.format,
                ok=False,
                error=str(ExportTargetMissingError("Chart reference not found")),
            )

        try:
            payload = await self._raster_snapshot(request.figure)
        except ExportLibraryUnavailableError as e:
            logger.error(f"Failed to export as PNG: {e}")
            self.alert("PNG export is unavailable: the raster snapshot capability failed to load.")
            return ExportResult(format=request.format, ok=False, error=str(e), alerted=True)

        return self._deliver(request, payload)

    async def _raster_snapshot(self, figure: Any) -> bytes:
        backend = self.raster_backend
        if backend is None or not backend.is_available():
            raise ExportLibraryUnavailableError("No raster snapshot backend available")

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, backend.snapshot, figure, WHITE)
        if not result.ok:
            raise ExportLibraryUnavailableError(result.error or "Raster snapshot failed")
        return result.payload

    async def export_svg(self, request: ExportRequest) -> ExportResult:
        try:
            svg_text = await self._vector_document(request.figure)
            payload = add_svg_background(svg_text).encode("utf-8")
        except ExportTargetMissingError as e:
            logger.warning(str(e))
            return ExportResult(format=request.format, ok=False, error=str(e))

        return self._deliver(request, payload)

    async def _vector_document(self, figure: Any) -> str:
        backend = self.vector_backend
        if figure is None:
            raise ExportTargetMissingError("Chart reference not found")
        if backend is None or not backend.is_available():
            raise ExportTargetMissingError("No vector output available for chart")

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, backend.snapshot, figure, "none")
        if not result.ok:
            raise ExportTargetMissingError(result.error or "Vector snapshot failed")
        return result.payload.decode("utf-8")
