"""Minimal step-driven state machine.

Each handler receives the current session and either advances to a new
session (whose step selects the next handler) or finishes. Every advance is
passed to ``record`` before the next step runs.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from relctl.core.result import Err, Ok, Result
from relctl.release.errors import ReleaseError

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


StepOutcome = StepAdvance[S] | StepFinish
StepHandler = Callable[[S], Result[StepOutcome[S], ReleaseError]]
RecordStep = Callable[[S], None]
GetStep = Callable[[S], str]


FINISH = StepFinish()


def advance(session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
    record: RecordStep[S],
) -> Result[S, ReleaseError]:
    """Drive handlers until one finishes; return the final session."""
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(ReleaseError(kind="invalid_input", message=f"unknown release step: {step}"))

        outcome = handler(current)
        if isinstance(outcome, Err):
            return outcome

        if isinstance(outcome.value, StepFinish):
            return Ok(current)

        current = outcome.value.session
        record(current)
