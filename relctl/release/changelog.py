from __future__ import annotations

import re
from datetime import date

from relctl.release.model import ConventionalCommit
from relctl.release.semver import SemVer

CHANGELOG_HEADER = (
    "# Changelog\n"
    "\n"
    "All notable changes to this project will be documented in this file.\n"
)

_GROUPS: tuple[tuple[str, str], ...] = (
    ("breaking", "Breaking changes"),
    ("feat", "Added"),
    ("fix", "Fixed"),
    ("perf", "Performance"),
    ("other", "Other"),
)

_SECTION_RE = re.compile(r"^## \[(?P<version>[^\]]+)\]", re.MULTILINE)


def _group_of(c: ConventionalCommit) -> str:
    if c.breaking:
        return "breaking"
    if c.type in {"feat", "fix", "perf"}:
        return c.type
    return "other"


def _entry(c: ConventionalCommit) -> str:
    scope = f"*({c.scope})* " if c.scope else ""
    return f"- {scope}{c.description} ({c.commit.short_sha})"


def render_section(
    *,
    version: SemVer,
    commits: tuple[ConventionalCommit, ...],
    released_on: date,
) -> str:
    lines = [f"## [{version}] - {released_on.isoformat()}"]
    for key, title in _GROUPS:
        entries = [_entry(c) for c in commits if _group_of(c) == key]
        if not entries:
            continue
        lines.append("")
        lines.append(f"### {title}")
        lines.append("")
        lines.extend(entries)
    return "\n".join(lines) + "\n"


def _section_bounds(text: str, version: str) -> tuple[int, int] | None:
    matches = list(_SECTION_RE.finditer(text))
    for i, m in enumerate(matches):
        if m.group("version") != version:
            continue
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        return (m.start(), end)
    return None


def prepend_section(existing: str | None, section: str, *, version: SemVer) -> str:
    """Insert ``section`` above the newest entry.

    An existing section for the same version is replaced, so regenerating a
    release PR never duplicates entries.
    """
    text = existing if existing and existing.strip() else CHANGELOG_HEADER
    if not text.endswith("\n"):
        text += "\n"

    bounds = _section_bounds(text, str(version))
    if bounds is not None:
        start, end = bounds
        tail = text[end:]
        return text[:start] + section + ("\n" + tail if tail else "")

    first = _SECTION_RE.search(text)
    if first is None:
        return text.rstrip("\n") + "\n\n" + section
    return text[: first.start()] + section + "\n" + text[first.start() :]


def extract_section(text: str, version: SemVer) -> str | None:
    """Return the body of the section for ``version`` (without its heading)."""
    bounds = _section_bounds(text, str(version))
    if bounds is None:
        return None
    start, end = bounds
    body = text[start:end].split("\n", 1)
    if len(body) < 2:
        return None
    return body[1].strip() or None
