"""Console output."""

from __future__ import annotations

from .console import ConsoleProtocol, MaskingConsole, MockConsole, RichConsole, Style

__all__ = ["ConsoleProtocol", "MaskingConsole", "MockConsole", "RichConsole", "Style"]
