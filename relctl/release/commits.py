"""Conventional Commits classification.

    feat(api)!: drop legacy client      -> major (breaking)
    feat: add retry budget              -> minor
    fix: handle empty payload           -> patch
    docs: typo / non-conventional text  -> patch

A ``BREAKING CHANGE:`` (or ``BREAKING-CHANGE:``) footer also marks a commit
as breaking. Non-conventional subjects count as patch-level changes unless
strict mode is on, in which case they are a fatal error.
"""

from __future__ import annotations

import re

from relctl.core.result import Err, Ok, Result
from relctl.release.errors import ReleaseError
from relctl.release.model import Commit, ConventionalCommit
from relctl.release.semver import BumpKind

_HEADER_RE = re.compile(
    r"^(?P<type>[A-Za-z][A-Za-z0-9-]*)"
    r"(?:\((?P<scope>[^()\r\n]+)\))?"
    r"(?P<bang>!)?"
    r": (?P<description>\S.*)$"
)
_BREAKING_FOOTER_RE = re.compile(r"^BREAKING[ -]CHANGE: ", re.MULTILINE)

_BUMP_ORDER: dict[BumpKind, int] = {"patch": 0, "minor": 1, "major": 2}


def parse_commit(commit: Commit) -> ConventionalCommit | None:
    m = _HEADER_RE.match(commit.subject.strip())
    if m is None:
        return None

    breaking = m.group("bang") is not None or bool(_BREAKING_FOOTER_RE.search(commit.body))
    return ConventionalCommit(
        commit=commit,
        type=m.group("type").lower(),
        scope=m.group("scope"),
        description=m.group("description").strip(),
        breaking=breaking,
    )


def _as_other(commit: Commit) -> ConventionalCommit:
    return ConventionalCommit(
        commit=commit,
        type="other",
        scope=None,
        description=commit.subject.strip(),
        breaking=bool(_BREAKING_FOOTER_RE.search(commit.body)),
    )


def classify_commits(
    commits: list[Commit],
    *,
    strict: bool,
) -> Result[tuple[ConventionalCommit, ...], ReleaseError]:
    out: list[ConventionalCommit] = []
    rejected: list[Commit] = []
    for commit in commits:
        parsed = parse_commit(commit)
        if parsed is None:
            if strict:
                rejected.append(commit)
                continue
            parsed = _as_other(commit)
        out.append(parsed)

    if rejected:
        listed = ", ".join(f"{c.short_sha} {c.subject!r}" for c in rejected[:5])
        more = f" (+{len(rejected) - 5} more)" if len(rejected) > 5 else ""
        return Err(
            ReleaseError(
                kind="fatal",
                message=f"unparsable commit classification: {listed}{more}",
                hint="Reword the commits as Conventional Commits or disable strict_commits.",
            )
        )
    return Ok(tuple(out))


def highest_bump(commits: tuple[ConventionalCommit, ...]) -> BumpKind | None:
    best: BumpKind | None = None
    for c in commits:
        if best is None or _BUMP_ORDER[c.bump] > _BUMP_ORDER[best]:
            best = c.bump
    return best
