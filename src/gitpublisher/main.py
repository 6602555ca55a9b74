"""Command line entry point for gitpublisher.

Usage:
    gitpublisher publish job.toml --workspace . --job-name api --build-number 42
    gitpublisher publish job.toml -w . -j api -n 42 --result UNSTABLE
    gitpublisher show-config job.toml
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from gitpublisher.build import Build, BuildLog, BuildResult, BuildResultHandle
from gitpublisher.config import load_config
from gitpublisher.jobs import JobDefinition, load_job
from gitpublisher.logging import setup_logging
from gitpublisher.publisher import GitPublisher

app = typer.Typer(
    name="gitpublisher",
    help="Push build results, tags and branches back to git remotes",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def _load_job_or_exit(job_file: Path) -> JobDefinition:
    try:
        return load_job(job_file)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading job definition:[/red] {e}")
        raise typer.Exit(code=2)


@app.command()
def publish(
    job_file: Annotated[Path, typer.Argument(help="Job definition (TOML)")],
    workspace: Annotated[
        Path,
        typer.Option("--workspace", "-w", help="Workspace directory of the build"),
    ],
    job_name: Annotated[str, typer.Option("--job-name", "-j", help="Name of the job")],
    build_number: Annotated[
        int,
        typer.Option("--build-number", "-n", min=1, help="Number of the build"),
    ],
    result: Annotated[
        BuildResult,
        typer.Option("--result", "-r", case_sensitive=False, help="Result of the build"),
    ] = BuildResult.SUCCESS,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
) -> None:
    """Publish a finished build.

    Exits with code 0 when publishing succeeded or was skipped on purpose,
    1 when it failed, and 2 when the job or configuration is invalid.
    """
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=2)

    setup_logging(config.logging)
    job = _load_job_or_exit(job_file)

    build = Build(
        job_name=job_name,
        number=build_number,
        workspace=workspace.resolve(),
        scm=job.scm,
        result_handle=BuildResultHandle(result),
        log=BuildLog(),
        environment_provider=lambda: dict(os.environ),
    )

    publisher = GitPublisher(job.publisher, settings=config.publish)
    outcome = publisher.publish(build)

    table = Table(title=f"{job_name} #{build_number}")
    table.add_column("Stage", style="cyan")
    table.add_column("Result")
    for stage, ok in outcome.stages.items():
        table.add_row(stage, "[green]ok[/green]" if ok else "[red]failed[/red]")
    table.add_row("build result", outcome.result.value)
    console.print(table)

    if not outcome.success:
        raise typer.Exit(code=1)


@app.command("show-config")
def show_config(
    job_file: Annotated[Path, typer.Argument(help="Job definition (TOML)")],
) -> None:
    """Print the job's publish configuration after migration, as JSON."""
    job = _load_job_or_exit(job_file)
    console.print_json(json.dumps(job.publisher.model_dump(by_alias=True)))


if __name__ == "__main__":
    app()
