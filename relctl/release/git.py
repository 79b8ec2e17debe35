"""Git side of the release state: remote tags, history, the release branch."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from relctl.core.result import Err, Ok, Result
from relctl.output.console import ConsoleProtocol, Style
from relctl.platform.process import ProcessError
from relctl.platform.process import run as run_process
from relctl.release.errors import ReleaseError, from_process_error
from relctl.release.model import Commit
from relctl.release.timeouts import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = f"%H{_FIELD_SEP}%s{_FIELD_SEP}%b{_RECORD_SEP}"


def parse_ls_remote_tags(output: str) -> frozenset[str]:
    tags: set[str] = set()
    for line in output.splitlines():
        parts = line.split("\t", 1)
        if len(parts) != 2:
            continue
        ref = parts[1].strip()
        if not ref.startswith("refs/tags/") or ref.endswith("^{}"):
            continue
        tags.add(ref[len("refs/tags/") :])
    return frozenset(tags)


def parse_log(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        fields = record.split(_FIELD_SEP)
        if len(fields) < 2:
            continue
        body = fields[2].strip() if len(fields) > 2 else ""
        commits.append(Commit(sha=fields[0].strip(), subject=fields[1].strip(), body=body))
    return commits


class GitRepository:
    """Release operations on a local checkout of the repository.

    Reads always run; writes are echoed and skipped when ``dry_run`` is set.
    """

    def __init__(
        self,
        root: Path,
        *,
        remote: str,
        author_name: str,
        author_email: str,
        console: ConsoleProtocol,
        dry_run: bool = False,
    ) -> None:
        self.root = root
        self.remote = remote
        self._author_name = author_name
        self._author_email = author_email
        self._console = console
        self._dry_run = dry_run

    def _git(self, args: list[str], *, network: bool = False) -> Result[str, ProcessError]:
        timeout = GIT_NETWORK_TIMEOUT_SECONDS if network else GIT_TIMEOUT_SECONDS
        return run_process(["git", *args], cwd=self.root, timeout=timeout)

    def _echo(self, args: list[str]) -> None:
        self._console.print("git " + " ".join(args), Style.DIM)

    def head_sha(self) -> Result[str, ReleaseError]:
        result = self._git(["rev-parse", "HEAD"])
        if isinstance(result, Err):
            return Err(from_process_error(result.error, message="failed to resolve HEAD"))
        sha = result.value.strip()
        if len(sha) != 40:
            return Err(ReleaseError(kind="command_failed", message=f"unexpected HEAD sha: {sha}"))
        return Ok(sha)

    def list_tags(self) -> Result[frozenset[str], ReleaseError]:
        result = self._git(["ls-remote", "--tags", "--refs", self.remote], network=True)
        if isinstance(result, Err):
            return Err(
                from_process_error(result.error, message=f"failed to list tags on {self.remote}")
            )
        return Ok(parse_ls_remote_tags(result.value))

    def _ensure_local_tag(self, tag: str) -> Result[None, ReleaseError]:
        ref = f"refs/tags/{tag}"
        if isinstance(self._git(["rev-parse", "-q", "--verify", ref]), Ok):
            return Ok(None)

        fetched = self._git(["fetch", "--no-tags", self.remote, f"{ref}:{ref}"], network=True)
        if isinstance(fetched, Err):
            error = from_process_error(fetched.error, message=f"failed to fetch tag {tag}")
            if error.kind == "command_failed":
                return Err(
                    ReleaseError(
                        kind=error.kind,
                        message=error.message,
                        hint="Check out the repository with full history (fetch-depth: 0).",
                    )
                )
            return Err(error)
        return Ok(None)

    def commits_since(self, tag: str, *, path: str) -> Result[list[Commit], ReleaseError]:
        ensured = self._ensure_local_tag(tag)
        if isinstance(ensured, Err):
            return ensured

        result = self._git(
            [
                "log",
                "--no-merges",
                "--reverse",
                f"--format={_LOG_FORMAT}",
                f"refs/tags/{tag}..HEAD",
                "--",
                path,
            ]
        )
        if isinstance(result, Err):
            return Err(from_process_error(result.error, message=f"failed to read history since {tag}"))
        return Ok(parse_log(result.value))

    def read_file(self, rel_path: str) -> Result[str | None, ReleaseError]:
        path = self.root / rel_path
        try:
            return Ok(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Ok(None)
        except (OSError, UnicodeDecodeError) as e:
            return Err(ReleaseError(kind="fatal", message=f"failed to read {rel_path}: {e}"))

    def _current_checkout(self) -> Result[list[str], ReleaseError]:
        branch = self._git(["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(branch, Err):
            return Err(from_process_error(branch.error, message="failed to resolve current branch"))
        name = branch.value.strip()
        if name and name != "HEAD":
            return Ok(["switch", name])

        head = self.head_sha()
        if isinstance(head, Err):
            return head
        return Ok(["switch", "--detach", head.value])

    def publish_branch(
        self,
        *,
        branch: str,
        files: Mapping[str, str],
        message: str,
    ) -> Result[None, ReleaseError]:
        rels = sorted(files)
        steps: list[tuple[list[str], bool]] = [
            (["switch", "-C", branch], False),
            (["add", "--", *rels], False),
            (
                [
                    "-c",
                    f"user.name={self._author_name}",
                    "-c",
                    f"user.email={self._author_email}",
                    "commit",
                    "-m",
                    message,
                ],
                False,
            ),
            (["push", "--force", self.remote, f"{branch}:refs/heads/{branch}"], True),
        ]

        if self._dry_run:
            for args, _ in steps:
                self._echo(args)
            for rel in rels:
                self._console.print(f"write {rel}", Style.DIM)
            return Ok(None)

        restore = self._current_checkout()
        if isinstance(restore, Err):
            return restore

        result = self._write_and_push(steps=steps, files=files)

        back = self._git(restore.value)
        if isinstance(back, Err):
            self._console.warning(f"could not restore checkout: {back.error.stderr.strip()}")
        return result

    def _write_and_push(
        self,
        *,
        steps: list[tuple[list[str], bool]],
        files: Mapping[str, str],
    ) -> Result[None, ReleaseError]:
        for i, (args, network) in enumerate(steps):
            self._echo(args)
            result = self._git(args, network=network)
            if isinstance(result, Err):
                op = args[0] if args[0] != "-c" else "commit"
                return Err(from_process_error(result.error, message=f"git {op} failed"))

            # Files are written once the release branch is checked out.
            if i == 0:
                written = self._write_files(files)
                if isinstance(written, Err):
                    return written
        return Ok(None)

    def _write_files(self, files: Mapping[str, str]) -> Result[None, ReleaseError]:
        for rel, content in files.items():
            path = self.root / rel
            self._console.print(f"write {rel}", Style.DIM)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            except OSError as e:
                return Err(ReleaseError(kind="command_failed", message=f"failed to write {rel}: {e}"))
        return Ok(None)
