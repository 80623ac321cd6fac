"""
Snapshot Backends
==================
Injectable raster and vector snapshot capabilities.

A backend turns a rendered matplotlib figure into bytes and reports failure
through a ``SnapshotResult`` instead of raising. Backends import their
rendering machinery on demand, so a missing capability shows up as a failed
result at call time.
"""

from __future__ import annotations

import importlib
import importlib.util
import io
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from loguru import logger

WHITE = "#ffffff"


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of a snapshot: either payload bytes or an error message."""
    ok: bool
    payload: bytes = b""
    error: Optional[str] = None

    @classmethod
    def success(cls, payload: bytes) -> "SnapshotResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: str) -> "SnapshotResult":
        return cls(ok=False, error=error)


class SnapshotBackend(Protocol):
    """Anything that can snapshot a figure into one file format."""
    name: str

    def is_available(self) -> bool:
        ...

    def snapshot(self, figure: Any, background: str = WHITE) -> SnapshotResult:
        ...


class _MatplotlibBackend:
    """Shared on-demand loading for matplotlib canvas backends."""

    name = "matplotlib"
    module = ""
    canvas_class = ""
    file_format = ""

    def __init__(self, dpi: Optional[float] = None):
        self.dpi = dpi

    def is_available(self) -> bool:
        try:
            return importlib.util.find_spec(self.module) is not None
        except ModuleNotFoundError:
            return False

    def snapshot(self, figure: Any, background: str = WHITE) -> SnapshotResult:
        """
        Render ``figure`` into bytes.

        Args:
            figure: matplotlib Figure to snapshot
            background: Opaque face color painted behind the figure

        Returns:
            SnapshotResult carrying the encoded file
        """
        try:
            canvas_cls = getattr(importlib.import_module(self.module), self.canvas_class)
        except (ImportError, AttributeError) as e:
            logger.error(f"{self.name} snapshot backend unavailable: {e}")
            return SnapshotResult.failure(f"{self.name} backend unavailable: {e}")

        buffer = io.BytesIO()
        try:
            canvas_cls(figure)
            figure.savefig(
                buffer,
                format=self.file_format,
                dpi=self.dpi or figure.dpi,
                facecolor=background,
                edgecolor=background,
            )
        except (ValueError, RuntimeError, OSError, TypeError) as e:
            logger.error(f"{self.name} snapshot failed: {e}")
            return SnapshotResult.failure(f"{self.name} snapshot failed: {e}")

        return SnapshotResult.success(buffer.getvalue())


class AggRasterBackend(_MatplotlibBackend):
    """PNG snapshots through matplotlib's Agg canvas."""

    name = "matplotlib-agg"
    module = "matplotlib.backends.backend_agg"
    canvas_class = "FigureCanvasAgg"
    file_format = "png"

    def __init__(self, dpi: Optional[float] = 150):
        super().__init__(dpi=dpi)


class SvgVectorBackend(_MatplotlibBackend):
    """SVG serialization through matplotlib's SVG canvas."""

    name = "matplotlib-svg"
    module = "matplotlib.backends.backend_svg"
    canvas_class = "FigureCanvasSVG"
    file_format = "svg"
