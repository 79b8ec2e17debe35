"""Release Decider and its adapters (git, gh, publish command)."""

from __future__ import annotations

from .decider import DeciderSession, DeciderState, ReleaseDecider
from .errors import ReleaseError, ReleaseErrorKind, exit_code_for
from .model import Package, PackageBump, PackageSet, ReleaseIntent, ReleaseOutcome

__all__ = [
    "DeciderSession",
    "DeciderState",
    "Package",
    "PackageBump",
    "PackageSet",
    "ReleaseDecider",
    "ReleaseError",
    "ReleaseErrorKind",
    "ReleaseIntent",
    "ReleaseOutcome",
    "exit_code_for",
]
