"""Run Groups and their admission semantics.

A Run Group is the concurrency scope the hosting platform applies to
workflow runs sharing a key. ``RunGroupScheduler`` reproduces the platform's
rules so routing decisions can be checked without a live runner:

- at most one run per key is running;
- ``cancel_in_progress=True``: a new run cancels the running one and starts;
- ``cancel_in_progress=False``: a new run waits; only one run may wait, so a
  newer waiting run cancels an older waiting one. The running one is never
  interrupted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__ = ["Admission", "RunGroup", "RunGroupScheduler", "RunState"]


@dataclass(frozen=True, slots=True)
class RunGroup:
    key: str
    cancel_in_progress: bool


class RunState(StrEnum):
    RUNNING = "running"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class Admission:
    run_id: str
    started: bool
    cancelled: tuple[str, ...] = ()

    @property
    def queued(self) -> bool:
        return not self.started


class RunGroupScheduler:
    def __init__(self) -> None:
        self._states: dict[str, RunState] = {}
        self._run_group: dict[str, str | None] = {}
        self._running: dict[str, str] = {}
        self._pending: dict[str, str] = {}

    def state(self, run_id: str) -> RunState:
        return self._states[run_id]

    def running(self, key: str) -> str | None:
        return self._running.get(key)

    def pending(self, key: str) -> str | None:
        return self._pending.get(key)

    def submit(self, run_id: str, group: RunGroup | None) -> Admission:
        if run_id in self._states:
            raise ValueError(f"run already submitted: {run_id}")

        self._run_group[run_id] = group.key if group is not None else None
        if group is None:
            self._states[run_id] = RunState.RUNNING
            return Admission(run_id=run_id, started=True)

        current = self._running.get(group.key)
        if current is None:
            self._start(group.key, run_id)
            return Admission(run_id=run_id, started=True)

        if group.cancel_in_progress:
            cancelled = [current]
            waiting = self._pending.pop(group.key, None)
            if waiting is not None:
                cancelled.append(waiting)
            for rid in cancelled:
                self._states[rid] = RunState.CANCELLED
            self._start(group.key, run_id)
            return Admission(run_id=run_id, started=True, cancelled=tuple(cancelled))

        superseded = self._pending.get(group.key)
        if superseded is not None:
            self._states[superseded] = RunState.CANCELLED
        self._pending[group.key] = run_id
        self._states[run_id] = RunState.PENDING
        return Admission(
            run_id=run_id,
            started=False,
            cancelled=(superseded,) if superseded is not None else (),
        )

    def complete(self, run_id: str) -> str | None:
        """Finish a running run; return the id of the waiting run it releases."""
        state = self._states.get(run_id)
        if state is not RunState.RUNNING:
            raise ValueError(f"run is not running: {run_id} ({state})")

        self._states[run_id] = RunState.COMPLETED
        key = self._run_group.get(run_id)
        if key is None:
            return None

        if self._running.get(key) == run_id:
            del self._running[key]
        waiting = self._pending.pop(key, None)
        if waiting is None:
            return None
        self._start(key, waiting)
        return waiting

    def _start(self, key: str, run_id: str) -> None:
        self._running[key] = run_id
        self._states[run_id] = RunState.RUNNING
