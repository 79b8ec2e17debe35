"""Process exit codes.

The release jobs gate the enclosing workflow through their exit status, so
these values are part of the public interface and must stay stable:

- 0: the selected intent fully succeeded
- 1: user error (bad arguments, invalid config)
- 2: environment error (missing git/gh, missing credential)
- 3: fatal release error (malformed version history, unclassifiable commits)
- 4: transient error (network/API failure, safe to re-run)
- 5: conflict (tag or release PR in an unexpected state)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    FATAL_ERROR = 3
    TRANSIENT_ERROR = 4
    CONFLICT_ERROR = 5
