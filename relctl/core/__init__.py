"""Core primitives shared by routing, release and CLI layers."""

from __future__ import annotations

from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = ["ErrorCode", "Err", "Ok", "Result"]
