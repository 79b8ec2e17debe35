"""Tests for relctl.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from relctl.core.config import (
    CONFIG_ENV_VAR,
    Config,
    CredentialsConfig,
    RepositoryConfig,
    RoutingConfig,
    default_config_path,
    load_config,
    load_config_or_default,
)
from relctl.core.result import Err, Ok


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "relctl.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    def test_repository(self) -> None:
        repo = RepositoryConfig()
        assert repo.main_branch == "main"
        assert repo.main_ref == "refs/heads/main"
        assert repo.remote == "origin"

    def test_routing_cancel_flags_differ_per_group(self) -> None:
        routing = RoutingConfig()
        assert routing.check_cancel_in_progress is True
        assert routing.release_pr_cancel_in_progress is False

    def test_credentials_hold_env_names_only(self) -> None:
        creds = CredentialsConfig()
        assert creds.repo_token_env == "GITHUB_TOKEN"
        assert creds.registry_token_env == "REGISTRY_TOKEN"

    def test_frozen(self) -> None:
        config = Config()
        with pytest.raises(AttributeError):
            config.packages = ()  # type: ignore[misc]


class TestLoadConfig:
    def test_full_config(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
[repository]
main_branch = "trunk"

[routing]
workflow = "build"
check_cancel_in_progress = false
release_pr_group_prefix = "release-plz"
release_pr_cancel_in_progress = true

[release_pr]
branch = "release/next"
strict_commits = true

[credentials]
registry_token_env = "CARGO_REGISTRY_TOKEN"

[workflows]
install = "pipx install relctl"

[[package]]
name = "sdk-core"
manifest = "core/pyproject.toml"
path = "core"
publish = "uv publish"
""",
        )

        result = load_config(path)
        assert isinstance(result, Ok)
        config = result.value
        assert config.repository.main_ref == "refs/heads/trunk"
        assert config.routing.workflow == "build"
        assert config.routing.check_cancel_in_progress is False
        assert config.routing.release_pr_group_prefix == "release-plz"
        assert config.routing.release_pr_cancel_in_progress is True
        assert config.release_pr.branch == "release/next"
        assert config.release_pr.strict_commits is True
        assert config.credentials.registry_token_env == "CARGO_REGISTRY_TOKEN"
        assert config.workflows.install == "pipx install relctl"

        (pkg,) = config.packages
        assert pkg.name == "sdk-core"
        assert pkg.path == "core"
        assert pkg.changelog == "CHANGELOG.md"
        assert pkg.publish == "uv publish"
        assert pkg.tag_for("1.2.0") == "v1.2.0"

    def test_multi_package_default_tag_format_is_prefixed(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
[[package]]
name = "sdk-core"
manifest = "core/pyproject.toml"

[[package]]
name = "sdk-cli"
manifest = "cli/pyproject.toml"
""",
        )
        result = load_config(path)
        assert isinstance(result, Ok)
        assert [p.tag_for("1.0.0") for p in result.value.packages] == [
            "sdk-core-v1.0.0",
            "sdk-cli-v1.0.0",
        ]

    def test_empty_changelog_disables_it(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            '[[package]]\nname = "a"\nmanifest = "pyproject.toml"\nchangelog = ""\n',
        )
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.packages[0].changelog is None

    @pytest.mark.parametrize(
        "content, needle",
        [
            ('[[package]]\nmanifest = "pyproject.toml"\n', "missing 'name'"),
            ('[[package]]\nname = "a"\n', "missing 'manifest'"),
            (
                '[[package]]\nname = "a"\nmanifest = "x"\n[[package]]\nname = "a"\nmanifest = "y"\n',
                "duplicate package name",
            ),
            (
                '[[package]]\nname = "a"\nmanifest = "x"\ntag_format = "release"\n',
                "must contain",
            ),
            (
                '[[package]]\nname = "a"\nmanifest = "x"\ntag_format = "v{version}"\n'
                '[[package]]\nname = "b"\nmanifest = "y"\ntag_format = "v{version}"\n',
                "distinct tag formats",
            ),
            ('package = "nope"\n', "array of tables"),
        ],
    )
    def test_invalid_packages(self, tmp_path: Path, content: str, needle: str) -> None:
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert needle in result.error.message

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "missing.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[repository\n"))
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_or_default_falls_back_only_for_missing_file(self, tmp_path: Path) -> None:
        assert load_config_or_default(tmp_path / "missing.toml") == Ok(Config())

    def test_or_default_keeps_parse_errors(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "[[package]]\nname = \"a\"\n")
        result = load_config_or_default(path)
        assert isinstance(result, Err)
        assert "manifest" in result.error.message


class TestDefaultConfigPath:
    def test_repo_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert default_config_path(tmp_path) == tmp_path / "relctl.toml"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "ci" / "relctl.toml"
        monkeypatch.setenv(CONFIG_ENV_VAR, str(custom))
        assert default_config_path(tmp_path) == custom
