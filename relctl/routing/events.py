from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from relctl.core.result import Err, Ok, Result


class EventKind(StrEnum):
    """Trigger kinds, valued by their ``GITHUB_EVENT_NAME``."""

    MANUAL = "workflow_dispatch"
    PULL_REQUEST = "pull_request"
    PUSH = "push"


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    kind: EventKind
    ref: str
    run_id: str
    workflow: str
    # Only pull-request events carry a head ref.
    head_ref: str | None = None

    @property
    def branch(self) -> str | None:
        prefix = "refs/heads/"
        if self.ref.startswith(prefix):
            return self.ref[len(prefix) :]
        return None


@dataclass(frozen=True, slots=True)
class EventError:
    message: str
    hint: str | None = None


def parse_event_kind(name: str) -> Result[EventKind, EventError]:
    try:
        return Ok(EventKind(name.strip()))
    except ValueError:
        supported = ", ".join(k.value for k in EventKind)
        return Err(
            EventError(
                message=f"unsupported event: {name!r}",
                hint=f"supported events: {supported}",
            )
        )


def build_event(
    *,
    event_name: str,
    ref: str,
    run_id: str,
    workflow: str,
    head_ref: str | None = None,
) -> Result[TriggerEvent, EventError]:
    kind = parse_event_kind(event_name)
    if isinstance(kind, Err):
        return kind

    ref = ref.strip()
    if not ref:
        return Err(EventError(message="event ref is empty"))

    head = (head_ref or "").strip() or None
    if kind.value != EventKind.PULL_REQUEST:
        head = None

    return Ok(
        TriggerEvent(
            kind=kind.value,
            ref=ref,
            run_id=run_id.strip(),
            workflow=workflow.strip(),
            head_ref=head,
        )
    )


def event_from_env(environ: Mapping[str, str]) -> Result[TriggerEvent, EventError]:
    """Read the trigger event the Actions runner exposes through the environment."""
    missing = [
        var
        for var in ("GITHUB_EVENT_NAME", "GITHUB_REF", "GITHUB_RUN_ID", "GITHUB_WORKFLOW")
        if not environ.get(var)
    ]
    if missing:
        return Err(
            EventError(
                message=f"missing environment: {', '.join(missing)}",
                hint="Run inside GitHub Actions or pass --event/--ref explicitly.",
            )
        )

    return build_event(
        event_name=environ["GITHUB_EVENT_NAME"],
        ref=environ["GITHUB_REF"],
        run_id=environ["GITHUB_RUN_ID"],
        workflow=environ["GITHUB_WORKFLOW"],
        head_ref=environ.get("GITHUB_HEAD_REF"),
    )
