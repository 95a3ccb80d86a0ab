"""
Command line interface for sitewrap.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import DEFAULT_PIPELINE, ConfigError, ProjectConfig, get_settings, load_config
from .pipeline import PipelineReport, StepError, execute_pipeline, plan_pipeline
from .template import LayoutError, TemplateReport, render_templates

console = Console()
app = typer.Typer(help="Build a static site: wrap page fragments in a layout and run the build steps.")
logger = logging.getLogger(__name__)

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


def _configure_logging(level_name: str) -> None:
    env_override = get_settings().log_level
    level_str = (env_override or level_name or "info").upper()
    if level_str not in {lvl.upper() for lvl in LOG_LEVELS}:
        level_str = "INFO"
    logging.basicConfig(
        level=getattr(logging, level_str, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Logging configured at %s", level_str)


def _resolve_config_path(value: Optional[Path]) -> Path:
    """Ensure config path exists and return absolute path."""
    resolved = (value or get_settings().config_path).expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"No config file found at {resolved}")
    if not resolved.is_file():
        raise typer.BadParameter(f"Config path must be a file, got directory: {resolved}")
    return resolved


def _load_config_or_exit(path: Path) -> ProjectConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _print_template_report(report: TemplateReport) -> None:
    table = Table(title="Template Summary")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in report.summary_rows():
        table.add_row(key, value)
    console.print(table)
    if report.failures:
        console.print("[bold red]Some pages could not be generated:[/]")
        for outcome in report.failures:
            console.print(f"- {outcome.relative_path.as_posix()}: {escape(outcome.error or '')}")


def _print_pipeline_report(report: PipelineReport) -> None:
    table = Table(title=f"Pipeline '{report.pipeline}'")
    table.add_column("Step")
    table.add_column("Kind")
    table.add_column("Result", overflow="fold")
    for row in report.summary_rows():
        table.add_row(*row)
    console.print(table)
    for result in report.results:
        if result.template_report is not None and result.template_report.failures:
            console.print(f"[bold red]Template step '{result.name}' had failures:[/]")
            for outcome in result.template_report.failures:
                console.print(f"- {outcome.relative_path.as_posix()}: {escape(outcome.error or '')}")


@app.callback(invoke_without_command=True)
def _root_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show sitewrap version and exit.",
        is_flag=True,
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        help="Logging level (critical, error, warning, info, debug).",
        show_default=True,
        case_sensitive=False,
    ),
) -> None:
    """
    Default command when no subcommand is selected.
    """
    _configure_logging(log_level)

    if version:
        console.print(f"[bold green]sitewrap[/] {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(
            "[bold yellow]sitewrap[/] is ready. Run [cyan]sitewrap build --config sitewrap.toml[/] to build the site.",
        )


@app.command()
def build(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the project TOML file (defaults to $SITEWRAP_CONFIG or ./sitewrap.toml).",
    ),
    pipeline: str = typer.Option(
        DEFAULT_PIPELINE,
        "--pipeline",
        "-p",
        help="Name of the pipeline to run.",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail when any page fragment cannot be generated.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show the planned steps with their inputs and outputs without running them.",
    ),
) -> None:
    """
    Run a pipeline of build steps in order.
    """
    config_path = _resolve_config_path(config)
    logger.info("Loading configuration from %s", config_path)
    project = _load_config_or_exit(config_path)

    try:
        steps = plan_pipeline(project, pipeline, strict=strict)
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if dry_run:
        table = Table(title=f"Plan for '{pipeline}'")
        table.add_column("Step")
        table.add_column("Kind")
        table.add_column("Inputs", overflow="fold")
        table.add_column("Outputs", overflow="fold")
        for step in steps:
            table.add_row(
                step.name,
                step.kind,
                "\n".join(str(path) for path in step.inputs()),
                "\n".join(str(path) for path in step.outputs()),
            )
        console.print(table)
        console.print("[bold blue]Dry run complete.[/] No filesystem changes made.")
        return

    try:
        report = execute_pipeline(project, pipeline, strict=strict)
    except (LayoutError, StepError) as exc:
        console.print(f"[bold red]Build failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    _print_pipeline_report(report)
    if report.fragment_failures:
        console.print(f"[bold yellow]Build completed with {report.fragment_failures} page failure(s).[/]")
    else:
        console.print("[bold green]Build completed.[/]")


@app.command()
def template(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the project TOML file (defaults to $SITEWRAP_CONFIG or ./sitewrap.toml).",
    ),
    layout: Optional[Path] = typer.Option(None, "--layout", help="Override the layout document."),
    source: Optional[Path] = typer.Option(None, "--source", help="Override the fragment source directory."),
    dest: Optional[Path] = typer.Option(None, "--dest", help="Override the destination directory."),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit non-zero when any page fragment cannot be generated.",
    ),
) -> None:
    """
    Wrap every page fragment in the layout, mirroring the source tree into the destination.
    """
    project = _load_config_or_exit(_resolve_config_path(config))
    overrides = {
        key: value.expanduser().resolve()
        for key, value in {"layout": layout, "source": source, "destination": dest}.items()
        if value is not None
    }
    settings = project.template_settings().model_copy(update=overrides)

    try:
        report = render_templates(settings)
    except LayoutError as exc:
        console.print(f"[bold red]Layout error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    _print_template_report(report)
    if report.failures and (strict or settings.strict):
        raise typer.Exit(code=1)


@app.command("config-hash")
def config_hash(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the project TOML file.",
    ),
) -> None:
    """
    Output the deterministic hash of a project file for change detection.
    """
    project = _load_config_or_exit(_resolve_config_path(config))
    console.print(f"[bold green]{project.hash}[/]")


def main() -> None:
    """
    Entry-point used by the console script defined in pyproject.toml.
    """
    app()
