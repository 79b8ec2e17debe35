"""Read-only evaluation of release state.

Everything here validates before anything is mutated: a malformed manifest,
a manifest version behind an existing tag, or (in strict mode) a commit that
cannot be classified aborts the run with a ``fatal`` error.
"""

from __future__ import annotations

import re

from relctl.core.config import PackageConfig
from relctl.core.result import Err, Ok, Result
from relctl.release.commits import classify_commits, highest_bump
from relctl.release.errors import ReleaseError
from relctl.release.manifest import read_manifest_version
from relctl.release.model import Package, PackageBump, PackageSet
from relctl.release.ports import ReleaseRepository
from relctl.release.semver import SemVer, parse_version


def tag_pattern(config: PackageConfig) -> re.Pattern[str]:
    prefix, _, suffix = config.tag_format.partition("{version}")
    prefix = re.escape(prefix.format(name=config.name))
    suffix = re.escape(suffix.format(name=config.name))
    return re.compile(rf"^{prefix}(?P<version>\d+\.\d+\.\d+){suffix}$")


def tagged_versions(config: PackageConfig, tags: frozenset[str]) -> list[SemVer]:
    pattern = tag_pattern(config)
    out: list[SemVer] = []
    for tag in tags:
        m = pattern.match(tag)
        if m is None:
            continue
        version = parse_version(m.group("version"))
        if version is not None:
            out.append(version)
    return sorted(out)


def load_package(
    config: PackageConfig,
    *,
    repo: ReleaseRepository,
    tags: frozenset[str],
) -> Result[Package, ReleaseError]:
    text = repo.read_file(config.manifest)
    if isinstance(text, Err):
        return text
    if text.value is None:
        return Err(
            ReleaseError(
                kind="fatal",
                message=f"manifest not found for {config.name}: {config.manifest}",
            )
        )

    manifest = read_manifest_version(text.value, manifest=config.manifest)
    if isinstance(manifest, Err):
        return manifest
    version = manifest.value.version

    released = tagged_versions(config, tags)
    if released and released[-1] > version:
        return Err(
            ReleaseError(
                kind="fatal",
                message=(
                    f"malformed version history for {config.name}: manifest is {version} "
                    f"but {config.tag_for(str(released[-1]))} already exists"
                ),
                hint=f"Set {config.manifest} to a version at or above the latest tag.",
            )
        )

    tag = config.tag_for(str(version))
    return Ok(
        Package(
            config=config,
            version=version,
            tag=tag,
            unpublished=tag not in tags,
            manifest_table=manifest.value.table,
        )
    )


def load_package_set(
    configs: tuple[PackageConfig, ...],
    *,
    repo: ReleaseRepository,
    tags: frozenset[str],
) -> Result[PackageSet, ReleaseError]:
    if not configs:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="no packages configured",
                hint="Add at least one [[package]] table to relctl.toml.",
            )
        )

    out: list[Package] = []
    for config in configs:
        pkg = load_package(config, repo=repo, tags=tags)
        if isinstance(pkg, Err):
            return pkg
        out.append(pkg.value)
    return Ok(tuple(out))


def plan_bumps(
    packages: PackageSet,
    *,
    repo: ReleaseRepository,
    strict: bool,
) -> Result[tuple[PackageBump, ...], ReleaseError]:
    """Compute the next version of every package with unreleased commits.

    Packages whose current version is not tagged yet are skipped: their
    release is still pending and bumping again would skip a version.
    """
    out: list[PackageBump] = []
    for pkg in packages:
        if pkg.unpublished:
            continue

        commits = repo.commits_since(pkg.tag, path=pkg.config.path)
        if isinstance(commits, Err):
            return commits
        if not commits.value:
            continue

        classified = classify_commits(commits.value, strict=strict)
        if isinstance(classified, Err):
            return Err(
                ReleaseError(
                    kind=classified.error.kind,
                    message=f"{pkg.name}: {classified.error.message}",
                    hint=classified.error.hint,
                )
            )

        bump = highest_bump(classified.value)
        if bump is None:
            continue
        out.append(
            PackageBump(
                package=pkg,
                commits=classified.value,
                bump=bump,
                next_version=pkg.version.next_version(bump),
            )
        )
    return Ok(tuple(out))
