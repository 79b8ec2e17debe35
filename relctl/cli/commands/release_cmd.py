from __future__ import annotations

import typer

from relctl.cli._helpers import exit_on_release_error, exit_with
from relctl.cli.context import CLIContext, build_context
from relctl.core.errors import ErrorCode
from relctl.output.console import Style
from relctl.release.decider import ReleaseDecider
from relctl.release.gh import GhHost, ensure_gh_available
from relctl.release.git import GitRepository
from relctl.release.model import ReleaseIntent, ReleaseOutcome
from relctl.release.publisher import CommandPublisher


def _decider(ctx: CLIContext, *, dry_run: bool) -> ReleaseDecider:
    config = ctx.config
    repo = GitRepository(
        ctx.repo_root,
        remote=config.repository.remote,
        author_name=config.release_pr.author_name,
        author_email=config.release_pr.author_email,
        console=ctx.console,
        dry_run=dry_run,
    )
    host = GhHost(
        ctx.repo_root,
        env=ctx.credentials.gh_env(),
        console=ctx.console,
        dry_run=dry_run,
    )
    publisher = CommandPublisher(
        ctx.repo_root,
        env=ctx.credentials.publish_env(),
        console=ctx.console,
        dry_run=dry_run,
    )
    return ReleaseDecider(
        config=config,
        repo=repo,
        host=host,
        publisher=publisher,
        credentials=ctx.credentials,
        console=ctx.console,
        dry_run=dry_run,
    )


def _print_outcome(ctx: CLIContext, outcome: ReleaseOutcome, *, dry_run: bool) -> None:
    console = ctx.console
    suffix = " (dry-run)" if dry_run else ""
    console.header(f"{outcome.intent}{suffix}")

    for tag in outcome.tagged:
        console.success(f"tagged {tag}")
    for bump in outcome.bumps:
        console.print(
            f"{bump.package.name}: {bump.package.version} -> {bump.next_version} ({bump.bump})"
        )
    if outcome.pr_url is not None:
        console.success(f"release PR {outcome.pr_action}: {outcome.pr_url}")
    if outcome.skipped:
        console.print(f"unchanged: {', '.join(outcome.skipped)}", Style.DIM)
    if not outcome.changed:
        console.info("nothing to do")


def run_intent(intent: ReleaseIntent, *, dry_run: bool) -> None:
    ctx = build_context(require_config=True)
    exit_on_release_error(ensure_gh_available(), ctx)

    decider = _decider(ctx, dry_run=dry_run)
    outcome = exit_on_release_error(decider.run(intent), ctx)
    _print_outcome(ctx, outcome, dry_run=dry_run)


def release(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print mutations without running them."),
) -> None:
    """Publish every package whose current version is not tagged yet."""
    run_intent(ReleaseIntent.RELEASE, dry_run=dry_run)


def release_pr(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print mutations without running them."),
) -> None:
    """Open or update the release pull request with the next versions."""
    run_intent(ReleaseIntent.RELEASE_PR, dry_run=dry_run)


def run(
    intent: str = typer.Argument(..., help="release or release-pr"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print mutations without running them."),
) -> None:
    """Execute one release intent by name."""
    try:
        chosen = ReleaseIntent(intent.strip())
    except ValueError:
        exit_with(
            f"unknown intent: {intent}",
            code=ErrorCode.USER_ERROR,
            hint="expected one of: " + ", ".join(i.value for i in ReleaseIntent),
        )
    run_intent(chosen, dry_run=dry_run)


def plan() -> None:
    """Show package versions and pending bumps without changing anything."""
    ctx = build_context(require_config=True)
    decider = _decider(ctx, dry_run=True)
    session = exit_on_release_error(decider.evaluate(ReleaseIntent.RELEASE_PR), ctx)

    console = ctx.console
    console.header("Packages")
    for pkg in session.packages:
        status = "release pending" if pkg.unpublished else "released"
        style = Style.WARNING if pkg.unpublished else Style.SUCCESS
        console.print(f"{pkg.name} {pkg.version} [{pkg.tag}] {status}", style)

    console.header("Pending bumps")
    if not session.bumps:
        console.print("none", Style.DIM)
    for bump in session.bumps:
        console.print(
            f"{bump.package.name}: {bump.package.version} -> {bump.next_version} "
            f"({bump.bump}, {len(bump.commits)} commits)"
        )
