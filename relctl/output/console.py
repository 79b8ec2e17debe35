"""Console output abstraction.

Services print through ``ConsoleProtocol`` so they never depend on Rich
directly: ``RichConsole`` renders to the terminal (and the Actions log),
``MockConsole`` captures records for tests, and ``MaskingConsole`` wraps
either one to scrub credential values from every message.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MaskingConsole",
    "MockConsole",
    "OutputRecord",
    "MASK",
]

MASK = "***"


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # echoed commands, state transitions
    BOLD = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...


class RichConsole:
    """Production console backed by Rich."""

    def __init__(self, *, stderr: bool = False) -> None:
        # Import Rich lazily to keep it out of the import path of services.
        from rich.console import Console

        self._console = Console(stderr=stderr, highlight=False)
        self._style_map = {
            Style.DEFAULT: "",
            Style.SUCCESS: "green",
            Style.ERROR: "red bold",
            Style.WARNING: "yellow",
            Style.INFO: "cyan",
            Style.DIM: "dim",
            Style.BOLD: "bold",
            Style.HEADER: "blue bold",
        }

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = self._style_map.get(style, "")
        # markup=False: commit subjects and branch names may contain brackets.
        if rich_style:
            self._console.print(message, style=rich_style, markup=False)
        else:
            self._console.print(message, markup=False)

    def success(self, message: str) -> None:
        self._console.print("OK ", style="green", end="")
        self._console.print(message, markup=False)

    def error(self, message: str) -> None:
        self._console.print("error: ", style="red bold", end="")
        self._console.print(message, markup=False)

    def warning(self, message: str) -> None:
        self._console.print("warning: ", style="yellow", end="")
        self._console.print(message, markup=False)

    def info(self, message: str) -> None:
        self._console.print("info: ", style="cyan", end="")
        self._console.print(message, markup=False)

    def header(self, message: str) -> None:
        self._console.print()
        self._console.print(message, style="blue bold", markup=False)

    def newline(self) -> None:
        self._console.print()


class MaskingConsole:
    """Console decorator that replaces secret values with ``***``.

    Secrets shorter than four characters are ignored; masking them would
    garble ordinary output without protecting anything.
    """

    def __init__(self, inner: ConsoleProtocol, secrets: Iterable[str] = ()) -> None:
        self._inner = inner
        self._secrets: list[str] = []
        for secret in secrets:
            self.add_secret(secret)

    def add_secret(self, secret: str) -> None:
        if len(secret) < 4 or secret in self._secrets:
            return
        self._secrets.append(secret)
        # Longest first so a secret containing another is masked whole.
        self._secrets.sort(key=len, reverse=True)

    def mask(self, message: str) -> str:
        for secret in self._secrets:
            message = message.replace(secret, MASK)
        return message

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._inner.print(self.mask(message), style)

    def success(self, message: str) -> None:
        self._inner.success(self.mask(message))

    def error(self, message: str) -> None:
        self._inner.error(self.mask(message))

    def warning(self, message: str) -> None:
        self._inner.warning(self.mask(message))

    def info(self, message: str) -> None:
        self._inner.info(self.mask(message))

    def header(self, message: str) -> None:
        self._inner.header(self.mask(message))

    def newline(self) -> None:
        self._inner.newline()


@dataclass
class OutputRecord:
    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that records output instead of printing it."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"OK {message}", Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def newline(self) -> None:
        self.outputs.append(OutputRecord("", Style.DEFAULT))

    def clear(self) -> None:
        self.outputs.clear()

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
