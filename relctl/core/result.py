"""Ok/Err result values.

Every operation that touches git, gh, the filesystem or the environment
returns a Result instead of raising, so callers decide explicitly how a
failure propagates (abort the run, retry, map to an exit code).

    match load_config(path):
        case Ok(config):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Union[Ok[T], Err[E]]
