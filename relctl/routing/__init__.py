"""Trigger routing: event → eligible jobs and Run Groups."""

from __future__ import annotations

from .events import EventKind, TriggerEvent, build_event, event_from_env
from .groups import Admission, RunGroup, RunGroupScheduler, RunState
from .router import Job, RoutingDecision, route

__all__ = [
    "Admission",
    "EventKind",
    "Job",
    "RoutingDecision",
    "RunGroup",
    "RunGroupScheduler",
    "RunState",
    "TriggerEvent",
    "build_event",
    "event_from_env",
    "route",
]
