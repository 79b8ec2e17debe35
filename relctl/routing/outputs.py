"""Serialise a routing decision into ``GITHUB_OUTPUT`` assignments."""

from __future__ import annotations

from pathlib import Path

from relctl.routing.router import Job, RoutingDecision


def _format_bool(*, value: bool) -> str:
    return "true" if value else "false"


def decision_outputs(decision: RoutingDecision) -> dict[str, str]:
    out: dict[str, str] = {
        "jobs": ",".join(job.value for job in decision.jobs),
        "run_check": _format_bool(value=decision.selects(Job.CHECK)),
        "run_release": _format_bool(value=decision.selects(Job.RELEASE)),
        "run_release_pr": _format_bool(value=decision.selects(Job.RELEASE_PR)),
    }
    for job in decision.jobs:
        group = decision.group_for(job)
        if group is None:
            continue
        prefix = job.value.replace("-", "_")
        out[f"{prefix}_group"] = group.key
        out[f"{prefix}_cancel_in_progress"] = _format_bool(value=group.cancel_in_progress)
    return out


def write_outputs(output_path: Path, outputs: dict[str, str]) -> None:
    """Append ``key=value`` lines; the runner collects them after the step."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("a", encoding="utf-8") as handle:
        for key, value in outputs.items():
            handle.write(f"{key}={value}\n")
