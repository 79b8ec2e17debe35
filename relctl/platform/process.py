"""Subprocess execution with Result-based error handling.

This is the only module allowed to call ``subprocess`` directly; git, gh and
publish commands all go through ``run``.

    result = run(["git", "tag", "--list"], cwd=repo_root, timeout=30.0)
    match result:
        case Ok(stdout):
            ...
        case Err(error):
            print(error.stderr)
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from relctl.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A failed or unstartable subprocess.

    ``returncode`` is -1 when the process never ran or timed out.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def timed_out(self) -> bool:
        return self.returncode == -1 and "timed out" in self.stderr

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def _merged_env(extra_env: Mapping[str, str] | None) -> dict[str, str] | None:
    if not extra_env:
        return None
    env = dict(os.environ)
    env.update(extra_env)
    return env


def run(
    cmd: list[str],
    cwd: Path,
    *,
    extra_env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` and return its stdout.

    Args:
        cmd: Command and arguments.
        cwd: Working directory.
        extra_env: Variables layered over the current environment. Credentials
            travel this way so they never appear on the command line.
        timeout: Seconds before the process is killed (None for no limit).
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=_merged_env(extra_env),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
