"""CLI entry point for visual checks over captured screenshot files."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.baseline.store import FileBaselineStore
from src.capture.cropper import RegionCropper
from src.capture.debugger import ScreenshotDebugger
from src.capture.file_provider import FileCaptureProvider
from src.engine.actions import resolve_verdict
from src.engine.visual_testing_engine import VisualTestingEngine
from src.errors import ConfigurationError
from src.models.config import ScreenshotParameters, VisualConfig
from src.models.geometry import Rectangle
from src.models.visual_check import IgnoreStrategy, VisualActionType
from src.orchestrator import StaticContextProvider, VisualCheckOrchestrator
from src.reporter.reporter import Reporter
from src.reporter.soft_assert import SoftAssert

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> VisualConfig:
    if Path(config).exists():
        return VisualConfig.load(config)
    return VisualConfig()


def _parse_rectangles(values: tuple[str, ...]) -> set[Rectangle]:
    try:
        return {Rectangle.parse(v) for v in values}
    except ValueError as e:
        raise click.BadParameter(str(e))


def capture_options(fn):
    options = [
        click.option("--name", "-n", required=True, help="Baseline name"),
        click.option("--tile", "-t", "tiles", multiple=True, required=True,
                     type=click.Path(exists=True, dir_okay=False), help="Captured tile PNG, top to bottom"),
        click.option("--ignore-element", multiple=True, help="Element bounds to ignore: x,y,width,height"),
        click.option("--ignore-area", multiple=True, help="Area to ignore: x,y,width,height"),
        click.option("--dpr", type=float, default=None, help="Device pixel ratio"),
        click.option("--header-cut", type=int, default=None, help="Header pixels to cut from each tile"),
        click.option("--footer-cut", type=int, default=None, help="Footer pixels to cut from each tile"),
        click.option("--strategy", default=None, help="Capture strategy name (VIEWPORT, VIEWPORT_PASTING)"),
        click.option("--config", "-c", default="visual-config.json", help="Config file path"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _run_check(
    action: VisualActionType,
    name: str,
    tiles: tuple[str, ...],
    ignore_element: tuple[str, ...],
    ignore_area: tuple[str, ...],
    dpr: Optional[float],
    header_cut: Optional[int],
    footer_cut: Optional[int],
    strategy: Optional[str],
    config: str,
    diff_percentage: Optional[int] = None,
) -> None:
    cfg = _load_config(config)
    overrides = {
        key: value for key, value in (
            ("device_pixel_ratio", dpr), ("header_cut", header_cut),
            ("footer_cut", footer_cut), ("strategy", strategy),
        ) if value is not None
    }
    try:
        params = ScreenshotParameters(**{**cfg.screenshot.model_dump(), **overrides}) if overrides else None
    except ValidationError as e:
        console.print(f"[red]Invalid screenshot parameters:[/red] {e}")
        sys.exit(2)

    ignores = {}
    if ignore_element:
        ignores[IgnoreStrategy.ELEMENT] = _parse_rectangles(ignore_element)
    if ignore_area:
        ignores[IgnoreStrategy.AREA] = _parse_rectangles(ignore_area)

    debugger = ScreenshotDebugger(Path(cfg.debug_dir)) if cfg.debug_dir else None
    engine = VisualTestingEngine(
        FileCaptureProvider(),
        FileBaselineStore(Path(cfg.baselines_dir)),
        cfg,
        cropper=RegionCropper(debugger),
    )
    soft_assert = SoftAssert()
    reporter = Reporter(cfg)
    orchestrator = VisualCheckOrchestrator(engine, StaticContextProvider(list(tiles)), soft_assert, reporter)

    try:
        result = orchestrator.run(
            action,
            name,
            screenshot_parameters=params,
            ignores=ignores,
            acceptable_diff_percentage=diff_percentage if action is VisualActionType.COMPARE_AGAINST else None,
            required_diff_percentage=diff_percentage if action is VisualActionType.CHECK_INEQUALITY_AGAINST else None,
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        sys.exit(2)

    reports = reporter.generate_reports(soft_assert.results)

    table = Table(title=f"Visual Check: {name}")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Action", action.value)
    if result is not None:
        table.add_row("Baseline found", "yes" if result.baseline_found else "no")
        if result.diff_percentage is not None:
            table.add_row("Diff", f"{result.diff_percentage:.2f}%")
        verdict = resolve_verdict(result)
        if verdict is not None:
            table.add_row("Verdict", "[green]PASS[/green]" if verdict else "[red]FAIL[/red]")
    for failure in soft_assert.failed:
        table.add_row("Failure", f"[red]{failure.message or failure.description}[/red]")
    console.print(table)

    for fmt, path in reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")

    if not soft_assert.all_passed:
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression checks against stored baselines"""
    setup_logging(verbose)


@cli.command()
@capture_options
def establish(**kwargs) -> None:
    """Store the captured screenshot as the new baseline."""
    _run_check(VisualActionType.ESTABLISH, **kwargs)


@cli.command()
@capture_options
@click.option("--acceptable-diff", type=click.IntRange(0, 100), default=None,
              help="Percentage of pixels allowed to differ")
def compare(acceptable_diff: Optional[int], **kwargs) -> None:
    """Compare the captured screenshot against its baseline."""
    _run_check(VisualActionType.COMPARE_AGAINST, diff_percentage=acceptable_diff, **kwargs)


@cli.command("check-inequality")
@capture_options
@click.option("--required-diff", type=click.IntRange(0, 100), default=None,
              help="Percentage of pixels that must differ")
def check_inequality(required_diff: Optional[int], **kwargs) -> None:
    """Assert the captured screenshot differs from its baseline."""
    _run_check(VisualActionType.CHECK_INEQUALITY_AGAINST, diff_percentage=required_diff, **kwargs)


@cli.command()
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def baselines(config: str) -> None:
    """List stored baselines."""
    cfg = _load_config(config)
    entries = FileBaselineStore(Path(cfg.baselines_dir)).list_entries()
    if not entries:
        console.print("[yellow]No baselines stored[/yellow]")
        return
    table = Table(title="Baselines")
    table.add_column("Name", style="bold")
    table.add_column("Size")
    table.add_column("Captured at")
    for entry in entries:
        table.add_row(entry.baseline_name, f"{entry.width}x{entry.height}", entry.captured_at)
    console.print(table)


@cli.command()
@click.option("--baselines-dir", default="./baselines", help="Where baselines are stored")
def init(baselines_dir: str) -> None:
    """Create a default configuration file."""
    config_path = Path("visual-config.json")
    if config_path.exists():
        if not click.confirm("visual-config.json already exists. Overwrite?"):
            return

    cfg = VisualConfig(baselines_dir=baselines_dir)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now establish a baseline:")
    console.print("  [blue]visual-check establish --name home --tile home.png[/blue]")


if __name__ == "__main__":
    cli()
