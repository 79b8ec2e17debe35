from __future__ import annotations

import shlex
from collections.abc import Mapping
from pathlib import Path

from relctl.core.result import Err, Ok, Result
from relctl.output.console import ConsoleProtocol, Style
from relctl.platform.process import ProcessError
from relctl.platform.process import run as run_process
from relctl.release.errors import ReleaseError, from_process_error
from relctl.release.model import Package, PublishStatus
from relctl.release.timeouts import PUBLISH_TIMEOUT_SECONDS

# Registry replies to an upload of a version it already holds
# (PyPI/uv/twine, npm, cargo).
_DUPLICATE_UPLOAD_MARKERS = (
    "file already exists",
    "cannot publish over the previously published versions",
    "cannot publish over previously published version",
    "is already uploaded",
)


def is_duplicate_upload(error: ProcessError) -> bool:
    text = f"{error.stdout}\n{error.stderr}".lower()
    return any(marker in text for marker in _DUPLICATE_UPLOAD_MARKERS)


class CommandPublisher:
    """Run a package's configured ``publish`` command from its directory.

    The registry token reaches the command only through its environment.
    Packages without a command are tagged without uploading anything. A
    registry that rejects the upload because the version is already there
    counts as published, so a run that failed after uploading can resume.
    """

    def __init__(
        self,
        repo_root: Path,
        *,
        env: Mapping[str, str],
        console: ConsoleProtocol,
        dry_run: bool = False,
    ) -> None:
        self._root = repo_root
        self._env = dict(env)
        self._console = console
        self._dry_run = dry_run

    def publish(self, package: Package) -> Result[PublishStatus, ReleaseError]:
        command = package.config.publish
        if command is None:
            return Ok("no_command")

        try:
            argv = shlex.split(command)
        except ValueError as e:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"invalid publish command for {package.name}: {e}",
                )
            )
        if not argv:
            return Ok("no_command")

        cwd = self._root / package.config.path
        self._console.print(f"[{package.name}] {command}", Style.DIM)
        if self._dry_run:
            return Ok("uploaded")

        result = run_process(argv, cwd=cwd, extra_env=self._env, timeout=PUBLISH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            if is_duplicate_upload(result.error):
                return Ok("already_uploaded")
            return Err(
                from_process_error(
                    result.error,
                    message=f"failed to publish {package.name} {package.version}",
                )
            )
        return Ok("uploaded")
