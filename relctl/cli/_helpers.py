"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relctl.core.errors import ErrorCode
from relctl.core.result import Err, Result
from relctl.release.errors import ReleaseError, exit_code_for

if TYPE_CHECKING:
    from relctl.cli.context import CLIContext

T = TypeVar("T")


def exit_on_release_error(result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the value of ``result`` or exit with the code its error kind maps to.

    The error goes to stderr through the masking console, so a secret echoed
    back by a failing command never reaches the log.
    """
    if isinstance(result, Err):
        ctx.err_console.error(result.error.pretty())
        raise typer.Exit(code=int(exit_code_for(result.error)))
    return result.value


def exit_with(message: str, *, code: ErrorCode, hint: str | None = None) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    if hint:
        typer.echo(f"hint: {hint}", err=True)
    raise typer.Exit(code=int(code))
