from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relctl.cli.context import CLIContext
from relctl.core.config import Config
from relctl.core.errors import ErrorCode
from relctl.core.result import Ok
from relctl.output.console import MASK, MaskingConsole, MockConsole
from relctl.release.credentials import Credentials
from relctl.release.decider import ReleaseDecider
from relctl.release.errors import ReleaseError
from relctl.test.release._fakes import (
    FakeHost,
    FakePublisher,
    FakeRemote,
    FakeRepository,
    commit,
    package_config,
    pyproject,
)

TOKEN = "ghs_cli_token_value"


def _ctx(tmp_path: Path, out: MockConsole, err: MockConsole) -> CLIContext:
    credentials = Credentials(registry_env="REGISTRY_TOKEN", repo_token=TOKEN)
    return CLIContext(
        repo_root=tmp_path,
        config_path=tmp_path / "relctl.toml",
        config=Config(packages=(package_config(),)),
        credentials=credentials,
        console=MaskingConsole(out, credentials.secrets()),
        err_console=MaskingConsole(err, credentials.secrets()),
    )


def _install(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    repo: FakeRepository,
    *,
    host: FakeHost | None = None,
) -> tuple[MockConsole, MockConsole]:
    import relctl.cli.commands.release_cmd as release_cmd

    out, err = MockConsole(), MockConsole()
    ctx = _ctx(tmp_path, out, err)

    def fake_decider(c: CLIContext, *, dry_run: bool) -> ReleaseDecider:
        return ReleaseDecider(
            config=c.config,
            repo=repo,
            host=host or FakeHost(repo.remote),
            publisher=FakePublisher(repo.remote),
            credentials=c.credentials,
            console=c.console,
            dry_run=dry_run,
        )

    monkeypatch.setattr(release_cmd, "build_context", lambda **_: ctx)
    monkeypatch.setattr(release_cmd, "ensure_gh_available", lambda: Ok(None))
    monkeypatch.setattr(release_cmd, "_decider", fake_decider)
    return out, err


def test_release_reports_tags(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    import relctl.cli.commands.release_cmd as release_cmd

    repo = FakeRepository(FakeRemote(), files={"pyproject.toml": pyproject("1.2.0")})
    out, _ = _install(monkeypatch, tmp_path, repo)

    release_cmd.release(dry_run=False)

    assert "OK tagged v1.2.0" in out.messages
    assert repo.remote.tags == {"v1.2.0"}


def test_release_pr_reports_pr(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    import relctl.cli.commands.release_cmd as release_cmd

    repo = FakeRepository(
        FakeRemote(tags={"v1.2.0"}),
        files={"pyproject.toml": pyproject("1.2.0")},
        commits={"v1.2.0": [commit("fix: a")]},
    )
    out, _ = _install(monkeypatch, tmp_path, repo)

    release_cmd.run(intent="release-pr", dry_run=False)

    assert out.find("release PR created: https://github.com/acme/sdk/pull/1")
    assert "sdk-core: 1.2.0 -> 1.2.1 (patch)" in out.messages


def test_conflict_exits_with_conflict_code_and_masks_secrets(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    import relctl.cli.commands.release_cmd as release_cmd

    repo = FakeRepository(FakeRemote(), files={"pyproject.toml": pyproject("1.2.0")})
    host = FakeHost(
        repo.remote,
        fail_tags={
            "v1.2.0": ReleaseError(
                kind="conflict",
                message="failed to create release v1.2.0",
                hint=f"remote: token {TOKEN} rejected: already exists",
            )
        },
    )
    _, err = _install(monkeypatch, tmp_path, repo, host=host)

    with pytest.raises(typer.Exit) as exc:
        release_cmd.release(dry_run=False)

    assert exc.value.exit_code == int(ErrorCode.CONFLICT_ERROR)
    assert TOKEN not in err.text
    assert MASK in err.text
    assert err.has_error()


def test_run_rejects_unknown_intent() -> None:
    import relctl.cli.commands.release_cmd as release_cmd

    with pytest.raises(typer.Exit) as exc:
        release_cmd.run(intent="deploy", dry_run=False)
    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_plan_lists_packages_and_bumps(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    import relctl.cli.commands.release_cmd as release_cmd

    repo = FakeRepository(
        FakeRemote(tags={"v1.2.0"}),
        files={"pyproject.toml": pyproject("1.2.0")},
        commits={"v1.2.0": [commit("feat: a", 1), commit("fix: b", 2)]},
    )
    out, _ = _install(monkeypatch, tmp_path, repo)

    release_cmd.plan()

    assert "sdk-core 1.2.0 [v1.2.0] released" in out.messages
    assert "sdk-core: 1.2.0 -> 1.3.0 (minor, 2 commits)" in out.messages
    assert repo.remote.mutations == []
