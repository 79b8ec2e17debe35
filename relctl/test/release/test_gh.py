from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import pytest

from relctl.core.result import Err, Ok, Result
from relctl.output.console import MockConsole
from relctl.platform.process import ProcessError
from relctl.release import gh as gh_mod
from relctl.release.model import PullRequest


def _err(*, stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(
        ProcessError(
            command=("gh", "pr", "list"),
            returncode=returncode,
            stdout="",
            stderr=stderr,
        )
    )


def _no_sleep(seconds: float) -> None:
    del seconds


class _FakeRun:
    def __init__(self, responses: list[Result[str, ProcessError]]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []
        self.envs: list[Mapping[str, str] | None] = []

    def __call__(
        self,
        cmd: list[str],
        cwd: Path,
        *,
        extra_env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        del cwd, timeout
        self.calls.append(cmd)
        self.envs.append(extra_env)
        return self.responses.pop(0)


def _pr_json(number: int = 7) -> str:
    return json.dumps(
        [
            {
                "number": number,
                "url": f"https://github.com/acme/sdk/pull/{number}",
                "headRefName": "relctl/release",
                "baseRefName": "main",
                "title": "chore: release v1.3.0",
            }
        ]
    )


def _host(tmp_path: Path, *, dry_run: bool = False) -> gh_mod.GhHost:
    return gh_mod.GhHost(
        tmp_path,
        env={"GH_TOKEN": "ghs_secret"},
        console=MockConsole(),
        dry_run=dry_run,
    )


def test_read_retries_transient_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _FakeRun([_err(stderr="HTTP 503 Service Unavailable"), Ok(_pr_json())])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = _host(tmp_path).list_release_prs(head="relctl/release", base="main")

    assert isinstance(result, Ok)
    assert [pr.number for pr in result.value] == [7]
    assert len(fake.calls) == 2
    assert fake.envs[0] == {"GH_TOKEN": "ghs_secret"}


def test_read_gives_up_after_bounded_attempts(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    fake = _FakeRun([_err(stderr="HTTP 502 Bad Gateway") for _ in range(5)])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = _host(tmp_path).list_release_prs(head="relctl/release", base="main")

    assert isinstance(result, Err)
    assert result.error.kind == "transient"
    assert len(fake.calls) == gh_mod.READ_RETRY_ATTEMPTS


def test_read_does_not_retry_non_transient(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    fake = _FakeRun([_err(stderr="HTTP 404 Not Found")])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    monkeypatch.setattr(gh_mod, "sleep", _no_sleep)

    result = _host(tmp_path).list_release_prs(head="relctl/release", base="main")
    assert isinstance(result, Err)
    assert result.error.kind == "command_failed"
    assert len(fake.calls) == 1


def test_writes_are_not_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _FakeRun([_err(stderr="HTTP 503 Service Unavailable")])
    monkeypatch.setattr(gh_mod, "run_process", fake)

    result = _host(tmp_path).create_release(
        tag="v1.2.0", target_sha="a" * 40, title="v1.2.0", notes="notes"
    )
    assert isinstance(result, Err)
    assert result.error.kind == "transient"
    assert len(fake.calls) == 1


def test_create_release_conflict(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _FakeRun([_err(stderr="HTTP 422: Validation Failed: tag_name already exists")])
    monkeypatch.setattr(gh_mod, "run_process", fake)

    result = _host(tmp_path).create_release(
        tag="v1.2.0", target_sha="a" * 40, title="v1.2.0", notes="notes"
    )
    assert isinstance(result, Err)
    assert result.error.kind == "conflict"
    assert fake.calls[0][:5] == ["gh", "release", "create", "v1.2.0", "--target"]


def test_create_pr_parses_url(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _FakeRun([Ok("https://github.com/acme/sdk/pull/12\n")])
    monkeypatch.setattr(gh_mod, "run_process", fake)

    result = _host(tmp_path).create_pr(
        head="relctl/release", base="main", title="chore: release", body="body"
    )
    assert isinstance(result, Ok)
    assert result.value.number == 12


def test_update_pr_edits_in_place(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _FakeRun([Ok("")])
    monkeypatch.setattr(gh_mod, "run_process", fake)
    pr = PullRequest(
        number=7,
        url="https://github.com/acme/sdk/pull/7",
        head="relctl/release",
        base="main",
        title="old",
    )

    result = _host(tmp_path).update_pr(pr, title="new", body="body")
    assert isinstance(result, Ok)
    assert result.value.title == "new"
    assert fake.calls[0][:4] == ["gh", "pr", "edit", "7"]


def test_dry_run_skips_writes(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _FakeRun([])
    monkeypatch.setattr(gh_mod, "run_process", fake)

    host = _host(tmp_path, dry_run=True)
    assert isinstance(
        host.create_release(tag="v1.2.0", target_sha="a" * 40, title="v1.2.0", notes=""), Ok
    )
    assert isinstance(host.create_pr(head="h", base="main", title="t", body="b"), Ok)
    assert fake.calls == []


def test_parse_pr_list_skips_malformed_entries() -> None:
    payload = json.dumps([{"number": 1}, json.loads(_pr_json(3))[0]])
    result = gh_mod.parse_pr_list(payload)
    assert isinstance(result, Ok)
    assert [pr.number for pr in result.value] == [3]

    assert isinstance(gh_mod.parse_pr_list("{"), Err)
    assert isinstance(gh_mod.parse_pr_list("{}"), Err)


def test_ensure_gh_available(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(gh_mod.shutil, "which", lambda _: None)
    result = gh_mod.ensure_gh_available()
    assert isinstance(result, Err)
    assert result.error.kind == "tool_missing"
