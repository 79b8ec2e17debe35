"""Read and rewrite the version declared in a package manifest.

Supported manifests are TOML files declaring a static version in one of
``[project]`` (PEP 621), ``[tool.poetry]`` or ``[package]`` (Cargo). The
rewrite is textual so formatting and comments survive untouched.
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass

from relctl.core.result import Err, Ok, Result
from relctl.core.structured import get_str, get_table
from relctl.release.errors import ReleaseError
from relctl.release.semver import SemVer, parse_version

_VERSION_TABLES: tuple[tuple[str, ...], ...] = (
    ("project",),
    ("tool", "poetry"),
    ("package",),
)

_HEADER_RE = re.compile(r"^\s*\[(?P<name>[^\[\]]+)\]\s*(?:#.*)?$")
_VERSION_LINE_RE = re.compile(
    r"""^(?P<lead>\s*version\s*=\s*)(?P<q>["'])(?P<value>[^"']*)(?P=q)(?P<trail>.*)$"""
)


@dataclass(frozen=True, slots=True)
class ManifestVersion:
    table: tuple[str, ...]
    version: SemVer


def _lookup(data: Mapping[str, object], path: tuple[str, ...]) -> Mapping[str, object] | None:
    current: Mapping[str, object] | None = data
    for key in path:
        if current is None:
            return None
        current = get_table(current, key)
    return current


def read_manifest_version(text: str, *, manifest: str) -> Result[ManifestVersion, ReleaseError]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        return Err(ReleaseError(kind="fatal", message=f"invalid TOML in {manifest}: {e}"))

    for path in _VERSION_TABLES:
        table = _lookup(data, path)
        if table is None:
            continue
        raw = get_str(table, "version")
        if raw is None:
            continue
        version = parse_version(raw)
        if version is None:
            return Err(
                ReleaseError(
                    kind="fatal",
                    message=f"malformed version {raw!r} in {manifest}",
                    hint="Versions must be MAJOR.MINOR.PATCH.",
                )
            )
        return Ok(ManifestVersion(table=path, version=version))

    return Err(
        ReleaseError(
            kind="fatal",
            message=f"no static version found in {manifest}",
            hint="Declare version in [project], [tool.poetry] or [package].",
        )
    )


def write_manifest_version(
    text: str,
    *,
    manifest: str,
    table: tuple[str, ...],
    version: SemVer,
) -> Result[str, ReleaseError]:
    """Replace the ``version`` key of ``table`` and return the new text."""
    wanted = ".".join(table)
    lines = text.splitlines(keepends=True)
    in_table = False
    for i, line in enumerate(lines):
        header = _HEADER_RE.match(line)
        if header is not None:
            in_table = header.group("name").strip() == wanted
            continue
        if not in_table:
            continue

        m = _VERSION_LINE_RE.match(line.rstrip("\r\n"))
        if m is None:
            continue
        ending = line[len(line.rstrip("\r\n")) :]
        q = m.group("q")
        lines[i] = f"{m.group('lead')}{q}{version}{q}{m.group('trail')}{ending}"
        return Ok("".join(lines))

    return Err(
        ReleaseError(
            kind="fatal",
            message=f"could not locate version key of [{wanted}] in {manifest}",
            hint="Use a plain `version = \"X.Y.Z\"` line inside the table.",
        )
    )
