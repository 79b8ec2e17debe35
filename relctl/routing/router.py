"""Trigger Router: which jobs an event makes eligible, and under which Run Group.

Routing table:

    event                 check   release   release-pr
    manual dispatch       yes     yes       yes
    push to main          yes     yes       yes
    push to other ref     -       -         -
    pull request          yes     -         -

Release jobs are never eligible for pull requests, so nothing is released
from unreviewed code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from relctl.core.config import RepositoryConfig, RoutingConfig
from relctl.routing.events import EventKind, TriggerEvent
from relctl.routing.groups import RunGroup

__all__ = [
    "Job",
    "RoutingDecision",
    "check_group",
    "release_pr_group",
    "route",
]


class Job(StrEnum):
    CHECK = "check"
    RELEASE = "release"
    RELEASE_PR = "release-pr"


@dataclass(frozen=True, slots=True)
class RoutingDecision:
    event: TriggerEvent
    jobs: tuple[Job, ...]
    groups: tuple[tuple[Job, RunGroup | None], ...]

    def selects(self, job: Job) -> bool:
        return job in self.jobs

    def group_for(self, job: Job) -> RunGroup | None:
        for j, group in self.groups:
            if j == job:
                return group
        return None


def check_group(event: TriggerEvent, routing: RoutingConfig) -> RunGroup:
    # head_ref only exists for pull requests; other events get a per-run key.
    suffix = event.head_ref or event.run_id
    return RunGroup(
        key=f"{routing.workflow}-{suffix}",
        cancel_in_progress=routing.check_cancel_in_progress,
    )


def release_pr_group(event: TriggerEvent, routing: RoutingConfig) -> RunGroup:
    return RunGroup(
        key=f"{routing.release_pr_group_prefix}-{event.ref}",
        cancel_in_progress=routing.release_pr_cancel_in_progress,
    )


def _eligible_jobs(event: TriggerEvent, repository: RepositoryConfig) -> tuple[Job, ...]:
    match event.kind:
        case EventKind.PULL_REQUEST:
            return (Job.CHECK,)
        case EventKind.MANUAL:
            return (Job.CHECK, Job.RELEASE, Job.RELEASE_PR)
        case EventKind.PUSH:
            if event.ref != repository.main_ref:
                return ()
            return (Job.CHECK, Job.RELEASE, Job.RELEASE_PR)


def route(
    event: TriggerEvent,
    *,
    repository: RepositoryConfig,
    routing: RoutingConfig,
) -> RoutingDecision:
    jobs = _eligible_jobs(event, repository)

    groups: list[tuple[Job, RunGroup | None]] = []
    for job in jobs:
        match job:
            case Job.CHECK:
                groups.append((job, check_group(event, routing)))
            case Job.RELEASE_PR:
                groups.append((job, release_pr_group(event, routing)))
            case Job.RELEASE:
                groups.append((job, None))

    return RoutingDecision(event=event, jobs=jobs, groups=tuple(groups))
