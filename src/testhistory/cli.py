"""Command-line interface for testhistory."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from testhistory import __version__
from testhistory.config import TestHistoryConfig, create_example_config, get_default_config
from testhistory.history import History
from testhistory.results.loader import JobLoadError, load_job
from testhistory.results.models import Job, TestEntity


console = Console()
err_console = Console(stderr=True)


def print_banner() -> None:
    """Print the testhistory banner."""
    err_console.print(
        Panel.fit(
            "[bold blue]testhistory[/bold blue] - Test Result Trends",
            subtitle=f"v{__version__}",
        )
    )


def setup_logging(level: str) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(ctx: click.Context) -> TestHistoryConfig:
    config_path = ctx.obj.get("config_path")
    try:
        if config_path:
            return TestHistoryConfig.from_file(config_path)
        return TestHistoryConfig.find_and_load()
    except FileNotFoundError as e:
        if config_path:
            err_console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        return get_default_config()


def _load_job(job_file: str) -> Job:
    try:
        return load_job(job_file)
    except JobLoadError as e:
        err_console.print(f"[red]Error loading job history:[/red] {e}")
        sys.exit(1)


def _resolve_entity(job: Job, build_number: Optional[int], entity_id: str) -> TestEntity:
    """Find the entity in the given build, or in the latest build by default."""
    build = job.get_build(build_number) if build_number is not None else job.last_build
    if build is None:
        label = f"#{build_number}" if build_number is not None else "any build"
        err_console.print(f"[red]Error:[/red] Job {job.name} has no {label}")
        sys.exit(1)
    if build.result is None:
        err_console.print(f"[red]Error:[/red] Build {build.display_name} has no test results")
        sys.exit(1)

    entity = build.result.find(entity_id)
    if entity is None:
        err_console.print(
            f"[red]Error:[/red] No test result {entity_id!r} in build {build.display_name}"
        )
        sys.exit(1)
    return entity


@click.group()
@click.version_option(version=__version__, prog_name="testhistory")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: testhistory.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """testhistory - historical test result trends for CI jobs.

    Summarizes how a test result, package, class or case evolved over
    the builds of a job.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="testhistory.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
def init(output: str, force: bool) -> None:
    """Initialize a new testhistory configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(
            f"[yellow]Configuration file already exists:[/yellow] {output_path}"
        )
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        create_example_config(output_path)
        console.print(f"[green]Created configuration file:[/green] {output_path}")
    except OSError as e:
        console.print(f"[red]Error creating configuration:[/red] {e}")
        sys.exit(1)


def _prepare(ctx: click.Context, job_file: str) -> tuple[TestHistoryConfig, Job]:
    config = _load_config(ctx)
    setup_logging("DEBUG" if ctx.obj.get("verbose") else config.logging.level)
    return config, _load_job(job_file)


@main.command()
@click.argument("job_file", type=click.Path())
@click.argument("entity", default="")
@click.option("--build", "-b", "build_number", type=int, help="Build holding the entity (default: latest)")
@click.option("--offset", default="0", help="Index of the first row (backend storage only)")
@click.option("--json", "as_json", is_flag=True, help="Print the table as JSON")
@click.pass_context
def show(
    ctx: click.Context,
    job_file: str,
    entity: str,
    build_number: Optional[int],
    offset: str,
    as_json: bool,
) -> None:
    """Show the history table of ENTITY (default: the whole build result)."""
    config, job = _prepare(ctx, job_file)
    test_entity = _resolve_entity(job, build_number, entity)

    history = History(test_entity, config.history, config.trend)
    table_result = history.retrieve_history_summary(History.as_int(offset, 0))

    if as_json:
        data = table_result.to_dict()
        data["history_available"] = history.history_available()
        click.echo(json.dumps(data, indent=2))
        return

    print_banner()
    title = f"History of {entity or 'all tests'} ({job.name})"
    if not table_result.history_summaries:
        console.print(f"[yellow]No history found for {entity or 'all tests'}[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Build", style="cyan")
    table.add_column("Duration", justify="right", style="dim")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Total", justify="right")
    if table_result.description_available:
        table.add_column("Description")

    for summary in table_result.history_summaries:
        row = [
            summary.build.display_name,
            _format_duration(summary.duration),
            str(summary.fail_count),
            str(summary.skip_count),
            str(summary.pass_count),
            str(summary.total_count),
        ]
        if table_result.description_available:
            row.append(summary.description or "-")
        table.add_row(*row)

    console.print(table)
    if not history.history_available():
        console.print("[dim]Not enough builds for a trend[/dim]")


@main.command()
@click.argument("job_file", type=click.Path())
@click.argument("entity", default="")
@click.option("--build", "-b", "build_number", type=int, help="Build holding the entity (default: latest)")
@click.option("--duration", is_flag=True, help="Print the duration trend instead of counts")
@click.pass_context
def trend(
    ctx: click.Context,
    job_file: str,
    entity: str,
    build_number: Optional[int],
    duration: bool,
) -> None:
    """Print the trend series of ENTITY as JSON."""
    config, job = _prepare(ctx, job_file)
    test_entity = _resolve_entity(job, build_number, entity)

    history = History(test_entity, config.history, config.trend)
    click.echo(history.test_duration_trend() if duration else history.test_result_trend())


@main.command()
@click.argument("job_file", type=click.Path())
@click.option("--build", "-b", "build_number", type=int, help="Build to list (default: latest)")
@click.pass_context
def entities(ctx: click.Context, job_file: str, build_number: Optional[int]) -> None:
    """List the test entities recorded in a build."""
    _, job = _prepare(ctx, job_file)
    result = _resolve_entity(job, build_number, "")

    table = Table(title=f"Test results of {job.name} {result.run.display_name}")
    table.add_column("Id", style="cyan")
    table.add_column("Kind", style="dim")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Passed", justify="right", style="green")

    for item in result.walk():  # type: ignore[attr-defined]
        table.add_row(
            item.id or "(all)",
            item.kind.value,
            str(item.fail_count),
            str(item.skip_count),
            str(item.pass_count),
        )

    console.print(table)


def _format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    else:
        minutes = int(seconds // 60)
        return f"{minutes}m {seconds % 60:.1f}s"


if __name__ == "__main__":
    main()
