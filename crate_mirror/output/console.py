"""Console output abstraction.

Services print progress through `ConsoleProtocol` so they never depend on
rich directly. `RichConsole` is the production backend; `MockConsole`
captures output for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    HEADER = auto()


class ConsoleProtocol(Protocol):
    """Interface for styled, human-readable progress output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...


class RichConsole:
    """Console backed by rich.

    Errors and warnings go to stderr, everything else to stdout. Messages are
    rendered as `rich.text.Text`, so brackets in git or registry output are
    never taken for markup.
    """

    _STYLES: ClassVar[dict[Style, str]] = {
        Style.DEFAULT: "",
        Style.SUCCESS: "green",
        Style.ERROR: "red bold",
        Style.WARNING: "yellow",
        Style.INFO: "cyan",
        Style.DIM: "dim",
        Style.HEADER: "blue bold",
    }

    def __init__(self, *, no_color: bool = False) -> None:
        # Import rich lazily to avoid import-time dependency
        from rich.console import Console

        self._out = Console(no_color=no_color, highlight=False)
        self._err = Console(no_color=no_color, highlight=False, stderr=True)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        from rich.text import Text

        self._out.print(Text(message, style=self._STYLES[style]))

    def success(self, message: str) -> None:
        self._labelled("OK", Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._labelled("error:", Style.ERROR, message, stderr=True)

    def warning(self, message: str) -> None:
        self._labelled("warning:", Style.WARNING, message, stderr=True)

    def info(self, message: str) -> None:
        self._labelled("info:", Style.INFO, message)

    def header(self, message: str) -> None:
        self._out.print()
        self.print(message, Style.HEADER)

    def _labelled(self, label: str, style: Style, message: str, *, stderr: bool = False) -> None:
        from rich.text import Text

        line = Text.assemble((label, self._STYLES[style]), " ", message)
        (self._err if stderr else self._out).print(line)


@dataclass(frozen=True, slots=True)
class OutputRecord:
    """One line captured by MockConsole."""

    message: str
    style: Style


_LABELS = {
    Style.SUCCESS: "OK ",
    Style.ERROR: "error: ",
    Style.WARNING: "warning: ",
    Style.INFO: "info: ",
}


@dataclass
class MockConsole:
    """Console that records every line instead of printing it.

    Labelled methods store the label with the message (`"error: ..."`), the
    way RichConsole renders them, so tests can assert on the visible text.
    """

    outputs: list[OutputRecord] = field(default_factory=list)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self._labelled(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._labelled(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._labelled(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._labelled(Style.INFO, message)

    def header(self, message: str) -> None:
        self.print(message, Style.HEADER)

    def _labelled(self, style: Style, message: str) -> None:
        self.print(f"{_LABELS[style]}{message}", style)

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        """All captured lines joined with newlines."""
        return "\n".join(self.messages)

    def with_style(self, style: Style) -> list[str]:
        return [o.message for o in self.outputs if o.style == style]

    def has_error(self) -> bool:
        return bool(self.with_style(Style.ERROR))

    def has_warning(self) -> bool:
        return bool(self.with_style(Style.WARNING))

    def find(self, substring: str) -> list[OutputRecord]:
        """Captured lines containing substring."""
        return [o for o in self.outputs if substring in o.message]
