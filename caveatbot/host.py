"""Host capability interfaces and host event types.

The editor host (terminals, documents, dialogs) is external. The recorder
sees it only through these narrow interfaces.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, Union

from .session_schema import ChangeSummary


class TerminalHandle(Protocol):
    """A host terminal. ``process_id`` may be None while the shell starts."""

    process_id: int | None


class TerminalHost(Protocol):
    """Best-effort terminal output capture."""

    def capture_output(self, terminal: TerminalHandle) -> str:
        """
        Snapshot the terminal's visible output.

        May raise or return an empty string; callers treat both as "no output".
        """
        ...


# Asked before a code change is recorded. True records it.
ConfirmChange = Callable[[ChangeSummary], bool]


@dataclass(frozen=True)
class CommandStarted:
    terminal: TerminalHandle
    command_text: str


@dataclass(frozen=True)
class CommandEnded:
    terminal: TerminalHandle
    exit_code: int | None


@dataclass(frozen=True)
class FileOpened:
    path: str
    content: str


@dataclass(frozen=True)
class FileSaved:
    path: str
    content: str


HostEvent = Union[CommandStarted, CommandEnded, FileOpened, FileSaved]


__all__ = [
    "CommandEnded",
    "CommandStarted",
    "ConfirmChange",
    "FileOpened",
    "FileSaved",
    "HostEvent",
    "TerminalHandle",
    "TerminalHost",
]
