"""Thin CLI wrapper for conveyor_codebuild.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from conveyor_codebuild import __version__
from conveyor_codebuild.config import get_settings, print_settings_json

app = typer.Typer(
    name="conveyor-codebuild",
    help="Conveyor CodeBuild - run repository builds on AWS CodeBuild",
    no_args_is_help=True,
)
console = Console()
# stdout carries build log bytes; status messages go to stderr.
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"conveyor-codebuild version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Conveyor CodeBuild - run repository builds on AWS CodeBuild."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Builds:[/bold]")
        console.print(f"  Project prefix:      {settings.project_prefix}")
        console.print()
        console.print("[bold]AWS:[/bold]")
        console.print(f"  Region:              {settings.aws_region or '(default)'}")
        console.print(f"  Profile:             {settings.aws_profile or '(default)'}")
        console.print(f"  Max attempts (logs): {settings.aws_max_attempts}")
        console.print()
        console.print("[bold]Log streaming (seconds):[/bold]")
        console.print(f"  Poll interval:       {settings.log_poll_interval}")
        console.print(f"  Location timeout:    {settings.log_location_timeout}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")


@app.command()
def build(
    repository: Annotated[str, typer.Argument(help="Repository to build")],
    sha: Annotated[str, typer.Argument(help="Revision to build")],
    prefix: Annotated[
        str | None,
        typer.Option("--prefix", "-p", help="CodeBuild project name prefix"),
    ] = None,
) -> None:
    """Start a CodeBuild build and stream its log to stdout.

    The CodeBuild project '<prefix>-<repository>' must already exist.
    """
    from botocore.exceptions import BotoCoreError

    from conveyor_codebuild.aws.session import create_runner
    from conveyor_codebuild.builds.models import BuildOptions
    from conveyor_codebuild.builds.runner import BuildError

    try:
        options = BuildOptions(repository=repository, sha=sha)
    except ValidationError as e:
        err_console.print(f"[red]Invalid build options: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    settings = get_settings()
    if prefix:
        settings = settings.model_copy(update={"project_prefix": prefix})

    try:
        runner = create_runner(settings)
    except BotoCoreError as e:
        err_console.print(f"[red]Unable to create AWS clients: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    out = typer.get_binary_stream("stdout")
    try:
        build_id = runner.run(out, options)
    except BuildError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None
    finally:
        out.flush()

    err_console.print(f"[green]Built {escape(build_id)}[/green]")
