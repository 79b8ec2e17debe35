"""Release error taxonomy.

- ``transient``: network/API failure; re-running the whole job is safe.
- ``conflict``: a tag or release PR exists in an unexpected state; needs a
  human to reconcile.
- ``fatal``: malformed version history or unclassifiable commits; raised
  while evaluating, before anything is mutated.
- ``command_failed``: an external command failed for an unrecognised reason.
- ``invalid_input``, ``tool_missing``, ``auth_required``: setup problems.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relctl.core.errors import ErrorCode
from relctl.platform.process import ProcessError

ReleaseErrorKind = Literal[
    "transient",
    "conflict",
    "fatal",
    "command_failed",
    "invalid_input",
    "tool_missing",
    "auth_required",
]

_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "could not resolve host",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "tls handshake timeout",
    "network is unreachable",
    "remote end hung up unexpectedly",
    "http 429",
    "http 500",
    "http 502",
    "http 503",
    "http 504",
    "rate limit",
)

_CONFLICT_MARKERS = (
    "already exists",
    "already_exists",
    "tag_name was used by",
    "file already exists",
    "! [rejected]",
    "cannot overwrite existing",
)

_AUTH_MARKERS = (
    "http 401",
    "bad credentials",
    "authentication failed",
    "gh auth login",
    "requires authentication",
)


@dataclass(frozen=True, slots=True)
class ReleaseError:
    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


def is_transient(error: ProcessError) -> bool:
    if error.timed_out:
        return True
    text = f"{error.stderr}\n{error.stdout}".lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def from_process_error(error: ProcessError, *, message: str) -> ReleaseError:
    """Classify a failed command into the release taxonomy."""
    text = f"{error.stderr}\n{error.stdout}".lower()
    hint = error.stderr.strip() or None

    if is_transient(error):
        kind: ReleaseErrorKind = "transient"
    elif any(marker in text for marker in _CONFLICT_MARKERS):
        kind = "conflict"
    elif any(marker in text for marker in _AUTH_MARKERS):
        kind = "auth_required"
    else:
        kind = "command_failed"
    return ReleaseError(kind=kind, message=message, hint=hint)


def exit_code_for(error: ReleaseError) -> ErrorCode:
    match error.kind:
        case "transient":
            return ErrorCode.TRANSIENT_ERROR
        case "conflict":
            return ErrorCode.CONFLICT_ERROR
        case "fatal" | "command_failed":
            return ErrorCode.FATAL_ERROR
        case "tool_missing" | "auth_required":
            return ErrorCode.ENV_ERROR
        case "invalid_input":
            return ErrorCode.USER_ERROR
