"""Main CLI entry point for scaffold."""

import sys
from pathlib import Path
from typing import Optional, Sequence

import click
from rich.console import Console

from scaffold.cli.dispatcher import COMMANDS, Dispatcher
from scaffold.config.loader import load_config
from scaffold.core.exceptions import ScaffoldError, UsageError
from scaffold.core.state_store import STATE_FILE_NAME, StateStore
from scaffold.tracking.activity_logger import ActivityLogger

console = Console()


def build_dispatcher(
    workspace: Optional[Path] = None,
    config_path: Optional[Path] = None,
    verbose: bool = False,
    out: Optional[Console] = None,
) -> Dispatcher:
    """Wire config, activity log and state store for a workspace.

    Raises:
        ConfigurationError: If the configuration file is invalid
    """
    workspace = Path(workspace) if workspace else Path.cwd()
    config = load_config(workspace, config_path)

    activity_logger = None
    if config.activity_log.enabled:
        activity_logger = ActivityLogger(config.get_log_dir(workspace))

    store = StateStore(
        workspace / STATE_FILE_NAME,
        config=config,
        activity_logger=activity_logger,
    )
    return Dispatcher(store, config=config, console=out or console, verbose=verbose)


@click.group()
@click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False, path_type=Path),
    help="Workspace root holding the state file (default: current directory)",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(
    ctx: click.Context,
    workspace: Optional[Path],
    config: Optional[Path],
    verbose: bool,
) -> None:
    """Scaffold State Manager.

    Tracks scaffolding progress phase by phase, so an agent can pick up
    exactly where it left off.

    \b
    Examples:
        scaffold status                          # Show current status
        scaffold resume                          # What to do next
        scaffold resume prompt                   # Next step as an agent prompt
        scaffold start 3                         # Mark phase 3 as started
        scaffold complete 3                      # Mark phase 3 as completed
        scaffold fail 3 "Import error in types"  # Record a failure
        scaffold reset                           # Fresh start
    """
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = workspace
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose

    if verbose:
        console.print("[dim]scaffold CLI starting with verbose output enabled[/dim]")


def _dispatch(ctx: click.Context, name: str, args: Sequence[str]) -> None:
    """Run a table command, mapping scaffold errors onto click's exit codes."""
    try:
        dispatcher = build_dispatcher(
            ctx.obj.get("workspace"),
            ctx.obj.get("config"),
            ctx.obj.get("verbose", False),
        )
        dispatcher.dispatch(name, args)
    except UsageError as e:
        raise click.UsageError(str(e), ctx=ctx)
    except ScaffoldError as e:
        raise click.ClickException(str(e))


@cli.command("status", help=COMMANDS["status"].help)
@click.pass_context
def status_command(ctx: click.Context) -> None:
    _dispatch(ctx, "status", [])


@cli.command("resume", help=COMMANDS["resume"].help)
@click.argument("view", required=False)
@click.pass_context
def resume_command(ctx: click.Context, view: Optional[str]) -> None:
    _dispatch(ctx, "resume", [view] if view else [])


@cli.command("reset", help=COMMANDS["reset"].help)
@click.pass_context
def reset_command(ctx: click.Context) -> None:
    _dispatch(ctx, "reset", [])


@cli.command("start", help=COMMANDS["start"].help)
@click.argument("phase")
@click.pass_context
def start_command(ctx: click.Context, phase: str) -> None:
    _dispatch(ctx, "start", [phase])


@cli.command("complete", help=COMMANDS["complete"].help)
@click.argument("phase")
@click.pass_context
def complete_command(ctx: click.Context, phase: str) -> None:
    _dispatch(ctx, "complete", [phase])


@cli.command(
    "fail",
    help=COMMANDS["fail"].help,
    context_settings={"ignore_unknown_options": True},
)
@click.argument("phase")
@click.argument("message", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def fail_command(ctx: click.Context, phase: str, message: Sequence[str]) -> None:
    _dispatch(ctx, "fail", [phase, *message])


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except ScaffoldError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
