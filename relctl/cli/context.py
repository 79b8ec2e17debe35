from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relctl.core.config import Config, default_config_path, load_config, load_config_or_default
from relctl.core.errors import ErrorCode
from relctl.core.result import Err
from relctl.output.console import ConsoleProtocol, MaskingConsole, RichConsole
from relctl.release.credentials import Credentials, load_credentials


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_root: Path
    config_path: Path
    config: Config
    credentials: Credentials
    console: ConsoleProtocol
    err_console: ConsoleProtocol


def build_context(*, require_config: bool) -> CLIContext:
    """Resolve repository root, config and credentials for a command.

    Commands that mutate release state pass ``require_config=True`` and exit
    with a user error when the config is missing. Every command exits with a
    user error when a config file exists but is invalid.
    """
    repo_root = Path.cwd().resolve()
    config_path = default_config_path(repo_root)

    loader = load_config if require_config else load_config_or_default
    config_result = loader(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = config_result.value

    credentials = load_credentials(os.environ, config.credentials)
    secrets = credentials.secrets()
    return CLIContext(
        repo_root=repo_root,
        config_path=config_path,
        config=config,
        credentials=credentials,
        console=MaskingConsole(RichConsole(), secrets),
        err_console=MaskingConsole(RichConsole(stderr=True), secrets),
    )
