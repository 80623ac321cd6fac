"""Failure kinds of the chart engine.

None of these escape to callers: the container and export pipeline resolve
each one to an empty/error state, a logged no-op, or an alert.
"""


class ChartEngineError(Exception):
    """Base class for chart engine failures."""


class DataEmptyError(ChartEngineError):
    """No data rows were supplied."""


class DataLoadError(ChartEngineError):
    """The data provider reported a failure."""


class ExportTargetMissingError(ChartEngineError):
    """Nothing rendered (or no vector element) to export."""


class ExportLibraryUnavailableError(ChartEngineError):
    """The raster snapshot capability is missing or failed."""
