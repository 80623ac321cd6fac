"""
Export Pipeline Package
========================
CSV, PNG and SVG exports of rendered charts.
"""

from .snapshot import (
    SnapshotResult,
    SnapshotBackend,
    AggRasterBackend,
    SvgVectorBackend,
)
from .exporter import (
    ExportRequest,
    ExportArtifact,
    ExportResult,
    DownloadSink,
    DirectoryDownloadSink,
    MemoryDownloadSink,
    ExportPipeline,
    add_svg_background,
    csv_fieldnames,
    generate_filename,
    serialize_csv,
    timestamp_suffix,
)

__all__ = [
    "SnapshotResult",
    "SnapshotBackend",
    "AggRasterBackend",
    "SvgVectorBackend",
    "ExportRequest",
    "ExportArtifact",
    "ExportResult",
    "DownloadSink",
    "DirectoryDownloadSink",
    "MemoryDownloadSink",
    "ExportPipeline",
    "add_svg_background",
    "csv_fieldnames",
    "generate_filename",
    "serialize_csv",
    "timestamp_suffix",
]
