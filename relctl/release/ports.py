"""Boundaries between the decider and the external state it mutates.

The decider only talks to the repository (tags, history, release branch),
the hosting service (releases, pull requests) and the package publisher
through these protocols; ``git.py``, ``gh.py`` and ``publisher.py`` provide
the production implementations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from relctl.core.result import Result
from relctl.release.errors import ReleaseError
from relctl.release.model import Commit, Package, PublishStatus, PullRequest


class ReleaseRepository(Protocol):
    def head_sha(self) -> Result[str, ReleaseError]: ...

    def list_tags(self) -> Result[frozenset[str], ReleaseError]:
        """Tags on the remote, the source of truth for "already published"."""
        ...

    def commits_since(self, tag: str, *, path: str) -> Result[list[Commit], ReleaseError]:
        """Non-merge commits after ``tag`` touching ``path``, oldest first."""
        ...

    def read_file(self, rel_path: str) -> Result[str | None, ReleaseError]: ...

    def publish_branch(
        self,
        *,
        branch: str,
        files: Mapping[str, str],
        message: str,
    ) -> Result[None, ReleaseError]:
        """Reset ``branch`` to HEAD, commit ``files`` on it and force-push it."""
        ...


class ReleaseHost(Protocol):
    def create_release(
        self,
        *,
        tag: str,
        target_sha: str,
        title: str,
        notes: str,
    ) -> Result[None, ReleaseError]:
        """Create the tag and its release in one call."""
        ...

    def list_release_prs(self, *, head: str, base: str) -> Result[list[PullRequest], ReleaseError]:
        ...

    def create_pr(
        self,
        *,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> Result[PullRequest, ReleaseError]: ...

    def update_pr(
        self,
        pr: PullRequest,
        *,
        title: str,
        body: str,
    ) -> Result[PullRequest, ReleaseError]: ...


class Publisher(Protocol):
    def publish(self, package: Package) -> Result[PublishStatus, ReleaseError]: ...
