"""GitHub side of the release state, driven through the ``gh`` CLI."""

from __future__ import annotations

import json
import re
import shutil
from collections.abc import Mapping
from pathlib import Path
from time import sleep

from relctl.core.result import Err, Ok, Result
from relctl.core.structured import as_obj_list, as_str_dict, get_int, get_str
from relctl.output.console import ConsoleProtocol, Style
from relctl.platform.process import run as run_process
from relctl.release.errors import ReleaseError, from_process_error, is_transient
from relctl.release.model import PullRequest
from relctl.release.timeouts import (
    GH_TIMEOUT_SECONDS,
    READ_RETRY_ATTEMPTS,
    READ_RETRY_DELAY_SECONDS,
)

_PR_URL_RE = re.compile(r"/pull/(\d+)\s*$")
_PR_FIELDS = "number,url,headRefName,baseRefName,title"


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="tool_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def run_gh_read(
    *,
    repo_root: Path,
    cmd: list[str],
    env: Mapping[str, str],
    message: str,
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = READ_RETRY_ATTEMPTS,
) -> Result[str, ReleaseError]:
    """Run an idempotent gh command, retrying transient failures."""
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = run_process(cmd, cwd=repo_root, extra_env=env, timeout=timeout)
        if isinstance(result, Ok):
            return result

        error = result.error
        if attempt < attempts - 1 and is_transient(error):
            sleep(READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue
        return Err(from_process_error(error, message=message))

    return Err(ReleaseError(kind="transient", message=message))


def parse_pr(obj: object) -> PullRequest | None:
    d = as_str_dict(obj)
    if d is None:
        return None
    number = get_int(d, "number")
    url = get_str(d, "url")
    head = get_str(d, "headRefName")
    base = get_str(d, "baseRefName")
    if number is None or url is None or head is None or base is None:
        return None
    return PullRequest(
        number=number,
        url=url,
        head=head,
        base=base,
        title=get_str(d, "title") or "",
    )


def parse_pr_list(payload: str) -> Result[list[PullRequest], ReleaseError]:
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(ReleaseError(kind="command_failed", message=f"invalid JSON from gh pr list: {e}"))

    raw = as_obj_list(obj)
    if raw is None:
        return Err(ReleaseError(kind="command_failed", message="unexpected gh pr list payload"))

    out: list[PullRequest] = []
    for item in raw:
        pr = parse_pr(item)
        if pr is not None:
            out.append(pr)
    return Ok(out)


class GhHost:
    """Releases and pull requests on GitHub.

    Writes are never retried: a timed-out create may have succeeded, and the
    next run's existence checks are what makes a retry safe.
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

    def _write(self, cmd: list[str], *, message: str) -> Result[str, ReleaseError]:
        self._console.print(" ".join(cmd[:4]) + " ...", Style.DIM)
        result = run_process(cmd, cwd=self._root, extra_env=self._env, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(from_process_error(result.error, message=message))
        return Ok(result.value)

    def create_release(
        self,
        *,
        tag: str,
        target_sha: str,
        title: str,
        notes: str,
    ) -> Result[None, ReleaseError]:
        cmd = [
            "gh",
            "release",
            "create",
            tag,
            "--target",
            target_sha,
            "--title",
            title,
            "--notes",
            notes,
        ]
        if self._dry_run:
            self._console.print(" ".join(cmd[:4]) + " ... (dry-run)", Style.DIM)
            return Ok(None)

        result = self._write(cmd, message=f"failed to create release {tag}")
        if isinstance(result, Err):
            return result
        return Ok(None)

    def list_release_prs(self, *, head: str, base: str) -> Result[list[PullRequest], ReleaseError]:
        payload = run_gh_read(
            repo_root=self._root,
            cmd=[
                "gh",
                "pr",
                "list",
                "--head",
                head,
                "--base",
                base,
                "--state",
                "open",
                "--json",
                _PR_FIELDS,
            ],
            env=self._env,
            message=f"failed to list pull requests for {head}",
        )
        if isinstance(payload, Err):
            return payload
        return parse_pr_list(payload.value)

    def create_pr(
        self,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> Result[PullRequest, ReleaseError]:
        cmd = [
            "gh",
            "pr",
            "create",
            "--head",
            head,
            "--base",
            base,
            "--title",
            title,
            "--body",
            body,
        ]
        if self._dry_run:
            self._console.print(" ".join(cmd[:3]) + " ... (dry-run)", Style.DIM)
            return Ok(PullRequest(number=0, url="(dry-run)", head=head, base=base, title=title))

        result = self._write(cmd, message=f"failed to create release PR from {head}")
        if isinstance(result, Err):
            return result

        url = result.value.strip().splitlines()[-1] if result.value.strip() else ""
        m = _PR_URL_RE.search(url)
        if not url.startswith("https://") or m is None:
            return Err(
                ReleaseError(kind="command_failed", message="unexpected gh pr create output", hint=url)
            )
        return Ok(PullRequest(number=int(m.group(1)), url=url, head=head, base=base, title=title))

    def update_pr(
        self,
        pr: PullRequest,
        *,
        title: str,
        body: str,
    ) -> Result[PullRequest, ReleaseError]:
        cmd = ["gh", "pr", "edit", str(pr.number), "--title", title, "--body", body]
        if self._dry_run:
            self._console.print(" ".join(cmd[:4]) + " (dry-run)", Style.DIM)
            return Ok(pr)

        result = self._write(cmd, message=f"failed to update release PR #{pr.number}")
        if isinstance(result, Err):
            return result
        return Ok(PullRequest(number=pr.number, url=pr.url, head=pr.head, base=pr.base, title=title))
