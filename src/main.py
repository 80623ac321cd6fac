"""
Renewable Telemetry Charts - Dashboard Entry Point
===================================================
Renders the charts listed in a dashboard YAML file and runs their exports.

Each chart entry names its variant ``type``, a data file (JSON or CSV) and
the export formats to produce. Charts whose data cannot be loaded are
rendered in their error state; the rest of the dashboard is unaffected.
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from loguru import logger
from pydantic import TypeAdapter, ValidationError

# Add src to path for imports
SRC_DIR = Path(__file__).parent
PROJECT_ROOT = SRC_DIR.parent
sys.path.insert(0, str(SRC_DIR))

from export_pipeline import DirectoryDownloadSink, ExportPipeline, ExportResult
from visualization import (
    BaseChartConfig,
    ChartConfig,
    ChartState,
    DataLoadError,
    ExportFormat,
    GaugeChartConfig,
    MultiAxisChartConfig,
    PieChartConfig,
    RenderedChart,
    calculate_stats,
    create_renderer,
)

CHART_CONFIG = TypeAdapter(ChartConfig)


def parse_cell(text: str) -> Any:
    """CSV cell to int, float, None (empty) or the original text."""
    if text == "":
        return None
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


def load_chart_data(path: Path) -> List[Dict[str, Any]]:
    """
    Load chart rows from a JSON or CSV file.

    JSON files hold either a list of rows or an object with a ``data`` list.

    Raises:
        DataLoadError: unreadable file, bad syntax or wrong shape
    """
    path = Path(path)
    try:
        with open(path, "r", newline="") as f:
            if path.suffix.lower() == ".csv":
                rows = [{k: parse_cell(v) for k, v in row.items()} for row in csv.DictReader(f)]
            else:
                rows = json.load(f)
    except OSError as e:
        raise DataLoadError(f"Cannot read {path}: {e.strerror or e}") from e
    except (json.JSONDecodeError, csv.Error) as e:
        raise DataLoadError(f"Malformed data in {path}: {e}") from e

    if isinstance(rows, dict):
        rows = rows.get("data")
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise DataLoadError(f"{path} does not contain a list of data rows")

    logger.debug(f"Loaded {len(rows)} rows from {path}")
    return rows


def stat_keys(config: BaseChartConfig) -> List[str]:
    """Data keys worth summarizing for a chart."""
    if isinstance(config, MultiAxisChartConfig):
        return config.primary_data_keys + config.secondary_data_keys
    if isinstance(config, PieChartConfig):
        return [config.data_key]
    return list(getattr(config, "data_keys", []))


class DashboardApplication:
    """
    Renders a YAML-described dashboard.

    Orchestrates data loading, chart rendering and the export pipeline.
    """

    VERSION = "1.0.0"

    def __init__(self, config_path: Path, output_dir: Optional[Path] = None):
        """
        Initialize dashboard application.

        Args:
            config_path: Path to dashboard YAML file
            output_dir: Download directory for exports (overrides the file)
        """
        self.config_path = Path(config_path)
        self.config = self._load_config()
        self.base_dir = self.config_path.parent

        output = output_dir or self.config.get("output_dir", "exports")
        self.output_dir = Path(output)
        if not self.output_dir.is_absolute() and output_dir is None:
            self.output_dir = self.base_dir / self.output_dir

        self.pipeline = ExportPipeline.default(sink=DirectoryDownloadSink(self.output_dir))
        logger.info(f"Dashboard v{self.VERSION} initialized from {self.config_path}")

    def _load_config(self) -> dict:
        """Load dashboard description from YAML file."""
        if not self.config_path.exists():
            logger.warning(f"Config file not found: {self.config_path}")
            return {}
        with open(self.config_path, "r") as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Configuration loaded from {self.config_path}")
        return config

    def build_chart_config(self, entry: Dict[str, Any]) -> BaseChartConfig:
        """
        Turn one YAML chart entry into a validated chart configuration.

        A data file that cannot be loaded puts the chart into its error state.

        Raises:
            ValidationError: the entry does not describe a valid chart
        """
        fields = {k: v for k, v in entry.items() if k not in ("data_file", "exports")}
        data_file = entry.get("data_file")
        if data_file:
            try:
                fields["data"] = load_chart_data(self.base_dir / data_file)
            except DataLoadError as e:
                logger.error(f"Chart '{entry.get('title')}': {e}")
                fields["error"] = str(e)
        return CHART_CONFIG.validate_python(fields)

    def requested_formats(self, entry: Dict[str, Any], config: BaseChartConfig) -> List[ExportFormat]:
        requested = entry.get("exports")
        if requested is None:
            options = config.export_options
            return list(options.enabled_formats) if options else []
        return [ExportFormat(fmt) for fmt in requested]

    async def run(self) -> int:
        """Render every chart and run its exports; returns the failure count."""
        charts = self.config.get("charts", [])
        if not charts:
            logger.warning("No charts configured")

        failures = 0
        for entry in charts:
            try:
                config = self.build_chart_config(entry)
            except ValidationError as e:
                logger.error(f"Invalid chart entry '{entry.get('title', '?')}': {e}")
                failures += 1
                continue

            renderer = create_renderer(config, pipeline=self.pipeline)
            rendered = renderer.render()
            self._print_chart(config, rendered)

            if rendered.state is not ChartState.READY:
                failures += rendered.state is ChartState.ERROR
                continue

            for fmt in self.requested_formats(entry, config):
                result = await renderer.export(fmt, rendered)
                self._print_export(result)
                failures += not result.ok

        return failures

    def _print_chart(self, config: BaseChartConfig, rendered: RenderedChart) -> None:
        """Print a chart's state and series statistics."""
        print("\n" + "=" * 60)
        print(f"  {config.title} [{config.type}] - {rendered.state.value}")
        print("=" * 60)

        if rendered.placeholder is not None:
            print(f"  {rendered.placeholder.message}")
            if rendered.placeholder.detail:
                print(f"  {rendered.placeholder.detail}")
            return

        if isinstance(config, GaugeChartConfig):
            gauge = rendered.content.gauge
            print(f"  Value:  {gauge.value_text} {gauge.unit} ({gauge.percentage_text})")
            print(f"  Status: {gauge.status}")
        for key in stat_keys(config):
            stats = calculate_stats(config.data, key)
            print(
                f"  {key}: min={stats.min:.2f} max={stats.max:.2f} "
                f"avg={stats.avg:.2f} sum={stats.sum:.2f} (n={stats.count})"
            )
        if rendered.footer is not None:
            print(f"  {rendered.footer.text}")

    @staticmethod
    def _print_export(result: ExportResult) -> None:
        label = result.format.value.upper()
        if result.ok:
            print(f"  {label} -> {result.location}")
        else:
            print(f"  {label} skipped: {result.error}")


def setup_logging(verbose: bool = False, log_dir: Optional[Path] = None) -> None:
    """Configure logging."""
    logger.remove()  # Remove default handler

    level = "DEBUG" if verbose else "INFO"

    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "dashboard_{time}.log",
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Renewable Telemetry Charts - render dashboard charts and export them"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=PROJECT_ROOT / "config" / "dashboard.yaml",
        help="Path to dashboard configuration file",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Directory that receives exported files",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Also write debug logs to this directory",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_dir)

    app = DashboardApplication(config_path=args.config, output_dir=args.output_dir)
    failures = await app.run()
    if failures:
        logger.warning(f"{failures} chart(s) or export(s) did not complete")
    return 1 if failures else 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
