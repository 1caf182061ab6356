"""
Recorder - wires the recording engine together and feeds it host events.

Host events are handled one at a time; each handler (including its
persistence write) finishes before the next event starts. Nothing here is
thread-safe: a multi-threaded host must serialize calls into a Recorder.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .config import NamingConfig, RecorderConfig
from .file_watcher import FileChangeWatcher
from .host import (
    CommandEnded,
    CommandStarted,
    ConfirmChange,
    FileOpened,
    FileSaved,
    HostEvent,
    TerminalHost,
)
from .naming import HeuristicNamer, LLMNamer, Namer
from .persistence import PersistenceError, SessionPersistence
from .session_lifecycle import SessionLifecycle
from .session_store import SessionStore
from .terminal_correlator import TerminalCorrelator

logger = logging.getLogger(__name__)


def build_namer(config: NamingConfig) -> Namer:
    heuristic = HeuristicNamer(max_words=config.max_words)
    if config.mode == "llm":
        return LLMNamer(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            fallback=heuristic,
        )
    return heuristic


@dataclass
class Recorder:
    """The assembled engine."""

    store: SessionStore
    lifecycle: SessionLifecycle
    terminals: TerminalCorrelator
    files: FileChangeWatcher

    @classmethod
    def from_config(
        cls,
        config: RecorderConfig | None = None,
        terminal_host: TerminalHost | None = None,
        confirm: ConfirmChange | None = None,
        namer: Namer | None = None,
        load: bool = True,
    ) -> "Recorder":
        """
        Build every component from configuration.

        Args:
            config: Settings (default: RecorderConfig.load())
            terminal_host: Output capture capability
            confirm: Code-change confirmation; ignored when
                confirm_code_changes is off
            namer: Overrides the configured namer
            load: Load persisted sessions immediately
        """
        config = config or RecorderConfig.load()

        persistence = SessionPersistence(config.storage.path)
        store = SessionStore(persistence, namer=namer or build_namer(config.naming))
        lifecycle = SessionLifecycle(store)

        terminals = TerminalCorrelator(
            emit=store.add_action,
            host=terminal_host,
            track_on_activate=config.capture.track_terminal_on_activate,
        )
        files = FileChangeWatcher(
            emit=store.add_action,
            confirm=confirm if config.capture.confirm_code_changes else None,
        )
        lifecycle.add_listener(terminals)
        lifecycle.add_listener(files)

        recorder = cls(store=store, lifecycle=lifecycle, terminals=terminals, files=files)
        if load:
            store.load()
        return recorder

    def dispatch(self, event: HostEvent) -> None:
        """Handle a single host event to completion."""
        if isinstance(event, CommandStarted):
            self.terminals.on_command_start(event.terminal, event.command_text)
        elif isinstance(event, CommandEnded):
            self.terminals.on_command_end(event.terminal, event.exit_code)
        elif isinstance(event, FileOpened):
            self.files.on_open(event.path, event.content)
        elif isinstance(event, FileSaved):
            self.files.on_save(event.path, event.content)
        else:
            raise TypeError(f"Unknown host event: {event!r}")

    def drain(self, events: Iterable[HostEvent]) -> None:
        """
        Handle events strictly in order.

        A failed write does not stop the remaining events; the first
        PersistenceError is raised once all events were handled.
        """
        first_error: PersistenceError | None = None
        for event in events:
            try:
                self.dispatch(event)
            except PersistenceError as e:
                logger.error(f"Persisting {type(event).__name__} failed: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error


__all__ = ["Recorder", "build_namer"]
