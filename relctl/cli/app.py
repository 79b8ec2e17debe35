from __future__ import annotations

import os
from pathlib import Path

import typer

from relctl import __version__
from relctl.cli.commands.release_cmd import plan, release, release_pr, run
from relctl.cli.commands.route_cmd import route
from relctl.cli.commands.workflows_cmd import workflows
from relctl.core.config import CONFIG_ENV_VAR
from relctl.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    invoke_without_command=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(route)
app.command()(release)
app.command("release-pr")(release_pr)
app.command()(run)
app.command()(plan)
app.command()(workflows)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help=f"Config file (default: relctl.toml, or ${CONFIG_ENV_VAR})",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config is not None:
        try:
            path = config.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --config: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not path.is_file():
            typer.echo(f"error: --config '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[CONFIG_ENV_VAR] = str(path)


def main() -> None:
    app()
