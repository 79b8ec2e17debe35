"""Typed configuration for relctl.

The configuration lives in ``relctl.toml`` at the repository root:

    [repository]
    main_branch = "main"

    [routing]
    workflow = "ci"
    release_pr_group_prefix = "release-pr"

    [[package]]
    name = "sdk-core"
    manifest = "pyproject.toml"

Every table is optional; missing keys fall back to the defaults below.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_table, get_tables

__all__ = [
    "Config",
    "ConfigError",
    "CredentialsConfig",
    "PackageConfig",
    "ReleasePrConfig",
    "RepositoryConfig",
    "RoutingConfig",
    "WorkflowsConfig",
    "CONFIG_FILENAME",
    "CONFIG_ENV_VAR",
    "default_config_path",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILENAME = "relctl.toml"
CONFIG_ENV_VAR = "RELCTL_CONFIG"

SINGLE_PACKAGE_TAG_FORMAT = "v{version}"
MULTI_PACKAGE_TAG_FORMAT = "{name}-v{version}"


@dataclass(frozen=True, slots=True)
class ConfigError:
    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RepositoryConfig:
    main_branch: str = "main"
    remote: str = "origin"

    @property
    def main_ref(self) -> str:
        return f"refs/heads/{self.main_branch}"


@dataclass(frozen=True, slots=True)
class RoutingConfig:
    """Job routing and Run Group policy.

    The cancel flags are per group: the check group abandons superseded runs,
    the release-pr group queues them so a branch write is never interrupted.
    """

    workflow: str = "ci"
    check_cancel_in_progress: bool = True
    release_pr_group_prefix: str = "release-pr"
    release_pr_cancel_in_progress: bool = False


@dataclass(frozen=True, slots=True)
class ReleasePrConfig:
    branch: str = "relctl/release"
    title: str = "chore: release"
    # Reject commits that do not follow Conventional Commits.
    strict_commits: bool = False
    author_name: str = "github-actions[bot]"
    author_email: str = "41898282+github-actions[bot]@users.noreply.github.com"


@dataclass(frozen=True, slots=True)
class CredentialsConfig:
    """Names of the environment variables holding the secrets, never the secrets."""

    repo_token_env: str = "GITHUB_TOKEN"
    registry_token_env: str = "REGISTRY_TOKEN"


@dataclass(frozen=True, slots=True)
class WorkflowsConfig:
    # Step that makes `relctl` available inside the rendered release jobs.
    install: str = "pip install ."


@dataclass(frozen=True, slots=True)
class PackageConfig:
    name: str
    manifest: str
    tag_format: str
    path: str = "."
    changelog: str | None = "CHANGELOG.md"
    publish: str | None = None

    def tag_for(self, version: str) -> str:
        return self.tag_format.format(name=self.name, version=version)


def _empty_packages() -> tuple[PackageConfig, ...]:
    return ()


@dataclass(frozen=True, slots=True)
class Config:
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    release_pr: ReleasePrConfig = field(default_factory=ReleasePrConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    workflows: WorkflowsConfig = field(default_factory=WorkflowsConfig)
    packages: tuple[PackageConfig, ...] = field(default_factory=_empty_packages)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Build a Config from parsed TOML.

        Raises:
            ValueError: if a ``[[package]]`` entry is malformed.
        """
        repository: StrDict = get_table(data, "repository") or {}
        routing: StrDict = get_table(data, "routing") or {}
        release_pr: StrDict = get_table(data, "release_pr") or {}
        credentials: StrDict = get_table(data, "credentials") or {}
        workflows: StrDict = get_table(data, "workflows") or {}

        raw_packages = get_tables(data, "package") if "package" in data else []
        if raw_packages is None:
            raise ValueError("'package' must be an array of tables")

        return cls(
            repository=RepositoryConfig(
                main_branch=get_str(repository, "main_branch") or "main",
                remote=get_str(repository, "remote") or "origin",
            ),
            routing=RoutingConfig(
                workflow=get_str(routing, "workflow") or "ci",
                check_cancel_in_progress=_bool_or(routing, "check_cancel_in_progress", True),
                release_pr_group_prefix=get_str(routing, "release_pr_group_prefix")
                or "release-pr",
                release_pr_cancel_in_progress=_bool_or(
                    routing, "release_pr_cancel_in_progress", False
                ),
            ),
            release_pr=ReleasePrConfig(
                branch=get_str(release_pr, "branch") or "relctl/release",
                title=get_str(release_pr, "title") or "chore: release",
                strict_commits=_bool_or(release_pr, "strict_commits", False),
                author_name=get_str(release_pr, "author_name") or "github-actions[bot]",
                author_email=get_str(release_pr, "author_email")
                or "41898282+github-actions[bot]@users.noreply.github.com",
            ),
            credentials=CredentialsConfig(
                repo_token_env=get_str(credentials, "repo_token_env") or "GITHUB_TOKEN",
                registry_token_env=get_str(credentials, "registry_token_env")
                or "REGISTRY_TOKEN",
            ),
            workflows=WorkflowsConfig(install=get_str(workflows, "install") or "pip install ."),
            packages=_parse_packages(raw_packages),
        )


def _bool_or(table: Mapping[str, object], key: str, default: bool) -> bool:
    value = get_bool(table, key)
    return default if value is None else value


def _parse_packages(raw: list[StrDict]) -> tuple[PackageConfig, ...]:
    default_format = SINGLE_PACKAGE_TAG_FORMAT if len(raw) <= 1 else MULTI_PACKAGE_TAG_FORMAT

    out: list[PackageConfig] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        name = get_str(item, "name")
        if name is None:
            raise ValueError(f"package #{i + 1}: missing 'name'")
        if name in seen:
            raise ValueError(f"duplicate package name: {name}")
        seen.add(name)

        manifest = get_str(item, "manifest")
        if manifest is None:
            raise ValueError(f"package {name}: missing 'manifest'")

        tag_format = get_str(item, "tag_format") or default_format
        if "{version}" not in tag_format:
            raise ValueError(f"package {name}: tag_format must contain '{{version}}'")

        changelog: str | None = "CHANGELOG.md"
        if "changelog" in item:
            changelog = get_str(item, "changelog")

        out.append(
            PackageConfig(
                name=name,
                manifest=manifest,
                tag_format=tag_format,
                path=get_str(item, "path") or ".",
                changelog=changelog,
                publish=get_str(item, "publish"),
            )
        )

    tags = [p.tag_format for p in out]
    if len(set(tags)) != len(tags):
        raise ValueError("packages must use distinct tag formats")
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data = as_str_dict(tomllib.loads(path.read_bytes().decode("utf-8")))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def default_config_path(repo_root: Path) -> Path:
    """Resolve the config path: ``$RELCTL_CONFIG`` first, then ``relctl.toml``."""
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return repo_root / CONFIG_FILENAME


def load_config(path: Path) -> Result[Config, ConfigError]:
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config, or defaults when the file does not exist.

    A file that exists but does not parse is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
