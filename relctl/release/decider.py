"""Release Decider.

Executes exactly one caller-chosen intent as a small state machine:

    idle -> evaluating -> publishing  -> done
                       -> drafting_pr -> done
                       -> done            (nothing to do)

Any failing step ends the run in ``failed``. ``evaluating`` is read-only and
performs every validation, so fatal errors never leave partial writes.
Mutations are idempotent: ``publishing`` skips packages whose tag exists and
``drafting_pr`` updates the open release PR instead of opening another one.
Nothing is rolled back on failure; a re-run resumes from the remote state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from enum import StrEnum

from relctl.core.config import Config
from relctl.core.result import Err, Ok, Result
from relctl.output.console import ConsoleProtocol, Style
from relctl.release.changelog import extract_section, prepend_section, render_section
from relctl.release.credentials import Credentials, require_registry_token, require_repo_token
from relctl.release.errors import ReleaseError
from relctl.release.evaluate import load_package_set, plan_bumps
from relctl.release.fsm import FINISH, StepFinish, StepOutcome, advance, run_state_machine
from relctl.release.manifest import write_manifest_version
from relctl.release.model import (
    Package,
    PackageBump,
    PackageSet,
    PrAction,
    PullRequest,
    ReleaseIntent,
    ReleaseOutcome,
)
from relctl.release.ports import Publisher, ReleaseHost, ReleaseRepository


class DeciderState(StrEnum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    PUBLISHING = "publishing"
    DRAFTING_PR = "drafting_pr"
    DONE = "done"
    FAILED = "failed"


def _no_files() -> dict[str, str]:
    return {}


def _no_notes() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class DeciderSession:
    intent: ReleaseIntent
    state: DeciderState = DeciderState.IDLE
    packages: PackageSet = ()
    head_sha: str | None = None
    bumps: tuple[PackageBump, ...] = ()
    # release-pr: rendered file contents keyed by repo-relative path
    files: dict[str, str] = field(default_factory=_no_files)
    # release: release notes keyed by tag
    notes: dict[str, str] = field(default_factory=_no_notes)
    outcome: ReleaseOutcome | None = None


class ReleaseDecider:
    def __init__(
        self,
        *,
        config: Config,
        repo: ReleaseRepository,
        host: ReleaseHost,
        publisher: Publisher,
        credentials: Credentials,
        console: ConsoleProtocol,
        dry_run: bool = False,
        today: date | None = None,
    ) -> None:
        self._config = config
        self._repo = repo
        self._host = host
        self._publisher = publisher
        self._credentials = credentials
        self._console = console
        self._dry_run = dry_run
        self._today = today
        self.transitions: list[DeciderState] = []

    def run(self, intent: ReleaseIntent) -> Result[ReleaseOutcome, ReleaseError]:
        initial = DeciderSession(intent=intent)
        self.transitions = [initial.state]

        final = run_state_machine(
            initial_state=initial,
            get_step=lambda s: s.state.value,
            handlers={
                DeciderState.IDLE.value: self._idle,
                DeciderState.EVALUATING.value: self._evaluating,
                DeciderState.PUBLISHING.value: self._publishing,
                DeciderState.DRAFTING_PR.value: self._drafting_pr,
                DeciderState.DONE.value: self._done,
            },
            record=self._record,
        )
        if isinstance(final, Err):
            self.transitions.append(DeciderState.FAILED)
            self._console.print(f"state: {DeciderState.FAILED}", Style.DIM)
            return final

        outcome = final.value.outcome
        if outcome is None:
            return Err(ReleaseError(kind="invalid_input", message="release finished without outcome"))
        return Ok(outcome)

    def evaluate(self, intent: ReleaseIntent) -> Result[DeciderSession, ReleaseError]:
        """Run only the read-only evaluation step."""
        outcome = self._evaluating(DeciderSession(intent=intent, state=DeciderState.EVALUATING))
        if isinstance(outcome, Err):
            return outcome
        if isinstance(outcome.value, StepFinish):
            return Err(ReleaseError(kind="invalid_input", message="evaluation finished early"))
        return Ok(outcome.value.session)

    def _record(self, session: DeciderSession) -> None:
        self.transitions.append(session.state)
        self._console.print(f"state: {session.state}", Style.DIM)

    # -- steps ------------------------------------------------------------

    def _idle(self, s: DeciderSession) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        return Ok(advance(replace(s, state=DeciderState.EVALUATING)))

    def _done(self, s: DeciderSession) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        return Ok(FINISH)

    def _evaluating(self, s: DeciderSession) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        if not self._dry_run:
            ok = require_repo_token(self._credentials, self._config.credentials)
            if isinstance(ok, Err):
                return ok

        tags = self._repo.list_tags()
        if isinstance(tags, Err):
            return tags

        packages = load_package_set(self._config.packages, repo=self._repo, tags=tags.value)
        if isinstance(packages, Err):
            return packages
        s = replace(s, packages=packages.value)

        match s.intent:
            case ReleaseIntent.RELEASE:
                return self._evaluate_release(s)
            case ReleaseIntent.RELEASE_PR:
                return self._evaluate_release_pr(s)
        return Err(ReleaseError(kind="invalid_input", message=f"unknown intent: {s.intent}"))

    def _evaluate_release(
        self, s: DeciderSession
    ) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        pending = [p for p in s.packages if p.unpublished]
        if not pending:
            return Ok(
                advance(
                    replace(
                        s,
                        state=DeciderState.DONE,
                        outcome=ReleaseOutcome(
                            intent=s.intent,
                            skipped=tuple(p.name for p in s.packages),
                        ),
                    )
                )
            )

        if not self._dry_run and any(p.config.publish for p in pending):
            ok = require_registry_token(self._credentials, self._config.credentials)
            if isinstance(ok, Err):
                return ok

        head = self._repo.head_sha()
        if isinstance(head, Err):
            return head

        notes: dict[str, str] = {}
        for pkg in pending:
            text = self._release_notes(pkg)
            if isinstance(text, Err):
                return text
            notes[pkg.tag] = text.value

        return Ok(
            advance(replace(s, state=DeciderState.PUBLISHING, head_sha=head.value, notes=notes))
        )

    def _release_notes(self, pkg: Package) -> Result[str, ReleaseError]:
        fallback = f"Release {pkg.name} {pkg.version}"
        if pkg.config.changelog is None:
            return Ok(fallback)
        text = self._repo.read_file(pkg.config.changelog)
        if isinstance(text, Err):
            return text
        if text.value is None:
            return Ok(fallback)
        return Ok(extract_section(text.value, pkg.version) or fallback)

    def _evaluate_release_pr(
        self, s: DeciderSession
    ) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        bumps = plan_bumps(
            s.packages,
            repo=self._repo,
            strict=self._config.release_pr.strict_commits,
        )
        if isinstance(bumps, Err):
            return bumps

        if not bumps.value:
            return Ok(
                advance(
                    replace(
                        s,
                        state=DeciderState.DONE,
                        outcome=ReleaseOutcome(
                            intent=s.intent,
                            skipped=tuple(p.name for p in s.packages),
                        ),
                    )
                )
            )

        files = self._render_files(bumps.value)
        if isinstance(files, Err):
            return files
        return Ok(
            advance(
                replace(s, state=DeciderState.DRAFTING_PR, bumps=bumps.value, files=files.value)
            )
        )

    def _read_current(self, files: dict[str, str], rel: str) -> Result[str | None, ReleaseError]:
        if rel in files:
            return Ok(files[rel])
        return self._repo.read_file(rel)

    def _render_files(
        self, bumps: tuple[PackageBump, ...]
    ) -> Result[dict[str, str], ReleaseError]:
        released_on = self._today or datetime.now(UTC).date()
        files: dict[str, str] = {}
        for b in bumps:
            cfg = b.package.config

            manifest = self._read_current(files, cfg.manifest)
            if isinstance(manifest, Err):
                return manifest
            if manifest.value is None:
                return Err(ReleaseError(kind="fatal", message=f"manifest vanished: {cfg.manifest}"))
            rewritten = write_manifest_version(
                manifest.value,
                manifest=cfg.manifest,
                table=b.package.manifest_table,
                version=b.next_version,
            )
            if isinstance(rewritten, Err):
                return rewritten
            files[cfg.manifest] = rewritten.value

            if cfg.changelog is None:
                continue
            existing = self._read_current(files, cfg.changelog)
            if isinstance(existing, Err):
                return existing
            section = render_section(
                version=b.next_version,
                commits=b.commits,
                released_on=released_on,
            )
            files[cfg.changelog] = prepend_section(existing.value, section, version=b.next_version)
        return Ok(files)

    def _publishing(self, s: DeciderSession) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        if s.head_sha is None:
            return Err(ReleaseError(kind="invalid_input", message="publishing without HEAD sha"))

        tagged: list[str] = []
        skipped: list[str] = []
        for pkg in s.packages:
            if not pkg.unpublished:
                skipped.append(pkg.name)
                continue

            self._console.header(f"{pkg.name} {pkg.version}")
            published = self._publisher.publish(pkg)
            if isinstance(published, Err):
                return published
            if published.value == "already_uploaded":
                self._console.warning(f"{pkg.name} {pkg.version} already in the registry; tagging only")

            created = self._host.create_release(
                tag=pkg.tag,
                target_sha=s.head_sha,
                title=pkg.tag,
                notes=s.notes.get(pkg.tag, f"Release {pkg.name} {pkg.version}"),
            )
            if isinstance(created, Err):
                return created

            self._console.success(f"released {pkg.tag}")
            tagged.append(pkg.tag)

        outcome = ReleaseOutcome(intent=s.intent, tagged=tuple(tagged), skipped=tuple(skipped))
        return Ok(advance(replace(s, state=DeciderState.DONE, outcome=outcome)))

    def _drafting_pr(self, s: DeciderSession) -> Result[StepOutcome[DeciderSession], ReleaseError]:
        cfg = self._config.release_pr
        base = self._config.repository.main_branch
        title = release_pr_title(cfg.title, s.bumps)
        body = release_pr_body(s.bumps, s.files)

        # Listed before the push so a conflict leaves the branch untouched.
        open_prs = self._host.list_release_prs(head=cfg.branch, base=base)
        if isinstance(open_prs, Err):
            return open_prs
        if len(open_prs.value) > 1:
            numbers = ", ".join(f"#{p.number}" for p in open_prs.value)
            return Err(
                ReleaseError(
                    kind="conflict",
                    message=f"multiple open release PRs from {cfg.branch}: {numbers}",
                    hint="Close all but one release PR, then re-run.",
                )
            )

        pushed = self._repo.publish_branch(branch=cfg.branch, files=s.files, message=title)
        if isinstance(pushed, Err):
            return pushed

        pr: Result[PullRequest, ReleaseError]
        action: PrAction
        if open_prs.value:
            pr = self._host.update_pr(open_prs.value[0], title=title, body=body)
            action = "updated"
        else:
            pr = self._host.create_pr(head=cfg.branch, base=base, title=title, body=body)
            action = "created"
        if isinstance(pr, Err):
            return pr

        self._console.success(f"release PR {action}: {pr.value.url}")
        outcome = ReleaseOutcome(
            intent=s.intent,
            bumps=s.bumps,
            skipped=tuple(
                p.name for p in s.packages if p.name not in {b.package.name for b in s.bumps}
            ),
            pr_url=pr.value.url,
            pr_action=action,
        )
        return Ok(advance(replace(s, state=DeciderState.DONE, outcome=outcome)))


def release_pr_title(base_title: str, bumps: tuple[PackageBump, ...]) -> str:
    if len(bumps) == 1:
        return f"{base_title} {bumps[0].next_tag}"
    return base_title


def release_pr_body(bumps: tuple[PackageBump, ...], files: dict[str, str]) -> str:
    lines = ["Merging this pull request releases:", ""]
    for b in bumps:
        lines.append(
            f"* `{b.package.name}`: {b.package.version} -> {b.next_version} ({b.bump})"
        )

    for b in bumps:
        changelog = b.package.config.changelog
        section = extract_section(files.get(changelog, ""), b.next_version) if changelog else None
        if section is None:
            continue
        lines.append("")
        lines.append(f"<details><summary>{b.package.name} {b.next_version}</summary>")
        lines.append("")
        lines.append(section)
        lines.append("")
        lines.append("</details>")
    return "\n".join(lines) + "\n"
