from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

BumpKind = Literal["major", "minor", "patch"]

_VERSION_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def bump(self, kind: BumpKind) -> SemVer:
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def next_version(self, kind: BumpKind) -> SemVer:
        """Apply a change-derived bump, honouring the 0.x convention.

        Before 1.0.0 the public API is unstable: a breaking change bumps the
        minor component and a feature bumps the patch component.
        """
        if self.major == 0:
            match kind:
                case "major":
                    return self.bump("minor")
                case "minor":
                    return self.bump("patch")
        return self.bump(kind)


def parse_version(text: str) -> SemVer | None:
    """Parse ``MAJOR.MINOR.PATCH``; pre-release and build metadata are rejected."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))
