from __future__ import annotations

import os
from pathlib import Path

import typer

from relctl.cli._helpers import exit_with
from relctl.cli.context import build_context
from relctl.core.errors import ErrorCode
from relctl.core.result import Err
from relctl.output.console import Style
from relctl.routing.events import build_event, event_from_env
from relctl.routing.outputs import decision_outputs, write_outputs
from relctl.routing.router import route as route_event


def route(
    event: str | None = typer.Option(None, "--event", help="Event name, e.g. push."),
    ref: str | None = typer.Option(None, "--ref", help="Git ref, e.g. refs/heads/main."),
    head_ref: str | None = typer.Option(None, "--head-ref", help="Pull request head branch."),
    run_id: str | None = typer.Option(None, "--run-id", help="Workflow run id."),
    workflow: str | None = typer.Option(None, "--workflow", help="Workflow name."),
) -> None:
    """Decide which jobs an event runs and under which Run Groups."""
    ctx = build_context(require_config=False)
    env = os.environ

    if event is None and ref is None:
        built = event_from_env(env)
    else:
        built = build_event(
            event_name=event or env.get("GITHUB_EVENT_NAME", ""),
            ref=ref or env.get("GITHUB_REF", ""),
            run_id=run_id or env.get("GITHUB_RUN_ID", "0"),
            workflow=workflow or env.get("GITHUB_WORKFLOW", ctx.config.routing.workflow),
            head_ref=head_ref or env.get("GITHUB_HEAD_REF"),
        )
    if isinstance(built, Err):
        exit_with(built.error.message, code=ErrorCode.USER_ERROR, hint=built.error.hint)

    decision = route_event(
        built.value,
        repository=ctx.config.repository,
        routing=ctx.config.routing,
    )

    console = ctx.console
    console.print(f"event: {decision.event.kind} {decision.event.ref}", Style.DIM)
    if not decision.jobs:
        console.info("no jobs for this event")
    for job in decision.jobs:
        group = decision.group_for(job)
        if group is None:
            console.print(f"{job}: no run group")
            continue
        mode = "cancel" if group.cancel_in_progress else "queue"
        console.print(f"{job}: group={group.key} ({mode})")

    output_path = env.get("GITHUB_OUTPUT")
    if output_path:
        write_outputs(Path(output_path), decision_outputs(decision))
