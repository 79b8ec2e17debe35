from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from relctl.core.config import PackageConfig
from relctl.release.semver import BumpKind, SemVer


class ReleaseIntent(StrEnum):
    """What a decider run does; chosen by the caller, never inferred."""

    RELEASE = "release"
    RELEASE_PR = "release-pr"


@dataclass(frozen=True, slots=True)
class Package:
    config: PackageConfig
    version: SemVer
    tag: str
    # True when the tag for the current version is absent.
    unpublished: bool
    # Manifest table holding the version, e.g. ("project",).
    manifest_table: tuple[str, ...] = ("project",)

    @property
    def name(self) -> str:
        return self.config.name


PackageSet = tuple[Package, ...]


@dataclass(frozen=True, slots=True)
class Commit:
    sha: str
    subject: str
    body: str = ""

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass(frozen=True, slots=True)
class ConventionalCommit:
    commit: Commit
    type: str
    scope: str | None
    description: str
    breaking: bool

    @property
    def bump(self) -> BumpKind:
        if self.breaking:
            return "major"
        if self.type == "feat":
            return "minor"
        return "patch"


@dataclass(frozen=True, slots=True)
class PackageBump:
    package: Package
    commits: tuple[ConventionalCommit, ...]
    bump: BumpKind
    next_version: SemVer

    @property
    def next_tag(self) -> str:
        return self.package.config.tag_for(str(self.next_version))


@dataclass(frozen=True, slots=True)
class PullRequest:
    number: int
    url: str
    head: str
    base: str
    title: str


PrAction = Literal["created", "updated", "none"]

# "already_uploaded": the registry already holds this version, e.g. after a
# run that uploaded but failed before tagging.
PublishStatus = Literal["uploaded", "already_uploaded", "no_command"]


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    intent: ReleaseIntent
    tagged: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    bumps: tuple[PackageBump, ...] = ()
    pr_url: str | None = None
    pr_action: PrAction = "none"

    @property
    def changed(self) -> bool:
        return bool(self.tagged) or self.pr_action != "none"
