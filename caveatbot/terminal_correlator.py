"""
TerminalCorrelator - pairs terminal command-start and command-end events.

Each terminal holds at most one pending command. A second start on the same
terminal before the first end replaces the pending entry (last start wins),
and the earlier command is never recorded.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from .host import TerminalHandle, TerminalHost
from .session_schema import Action, CommandAction, ConsequenceAction, utc_now

logger = logging.getLogger(__name__)


def _handle_key(terminal: TerminalHandle) -> Hashable:
    """Dict key for a terminal handle; unhashable handles are keyed by identity."""
    try:
        hash(terminal)
    except TypeError:
        return id(terminal)
    return terminal


@dataclass(frozen=True)
class PendingCommand:
    command: str
    started_at: datetime


@dataclass(frozen=True)
class StartEvent:
    terminal_id: str
    command_text: str
    timestamp: datetime


@dataclass(frozen=True)
class EndEvent:
    terminal_id: str
    exit_code: int | None
    output: str = ""


def correlate(
    pending: Mapping[str, PendingCommand],
    event: StartEvent | EndEvent,
) -> tuple[dict[str, PendingCommand], CommandAction | None]:
    """
    Pure pairing step.

    Returns the new pending map and the command action to emit, if any.
    The input mapping is never modified.
    """
    updated = dict(pending)
    if isinstance(event, StartEvent):
        updated[event.terminal_id] = PendingCommand(event.command_text, event.timestamp)
        return updated, None

    started = updated.pop(event.terminal_id, None)
    if started is None:
        return updated, None
    action = CommandAction(
        content=started.command,
        success=event.exit_code == 0,
        output=event.output,
        timestamp=started.started_at,
    )
    return updated, action


class TerminalCorrelator:
    """
    Turns terminal start/end notifications into ``command`` actions.

    Capture is gated on two flags: ``tracking`` (user toggle, also driven by
    the lifecycle) and ``has_active_session`` (lifecycle). Events arriving
    while either is off are dropped; nothing is replayed later.
    """

    def __init__(
        self,
        emit: Callable[[Action], Any],
        host: TerminalHost | None = None,
        track_on_activate: bool = True,
    ):
        """
        Args:
            emit: Receives each recorded action (normally SessionStore.add_action)
            host: Best-effort output capture; None means output is always empty
            track_on_activate: Turn tracking on whenever a session becomes active
        """
        self._emit = emit
        self._host = host
        self._track_on_activate = track_on_activate
        self._pending: dict[str, PendingCommand] = {}
        self._terminal_ids: dict[Hashable, str] = {}
        self.tracking = False
        self.has_active_session = False

    @property
    def pending(self) -> Mapping[str, PendingCommand]:
        return MappingProxyType(self._pending)

    @property
    def recording(self) -> bool:
        return self.tracking and self.has_active_session

    # =========================================================================
    # Tracking state
    # =========================================================================

    def update_tracking_state(self, has_active_session: bool) -> None:
        """Lifecycle hook: follow the has-active-session flag."""
        self.has_active_session = has_active_session
        if has_active_session and self._track_on_activate and not self.tracking:
            self.start_tracking()
        elif not has_active_session and self.tracking:
            self.stop_tracking()

    def start_tracking(self) -> None:
        self.tracking = True
        logger.info("Terminal command tracking started")

    def stop_tracking(self) -> None:
        """Stop tracking and discard any unpaired commands."""
        self.tracking = False
        if self._pending:
            logger.debug(f"Discarding {len(self._pending)} pending terminal commands")
        self._pending.clear()
        logger.info("Terminal command tracking stopped")

    def toggle_tracking(self) -> bool:
        if self.tracking:
            self.stop_tracking()
        else:
            self.start_tracking()
        return self.tracking

    # =========================================================================
    # Correlation by terminal id
    # =========================================================================

    def on_start(self, terminal_id: str, command_text: str) -> None:
        if not self.recording:
            return
        logger.debug(f"Command started: {command_text} ({terminal_id})")
        self._pending, _ = correlate(
            self._pending, StartEvent(terminal_id, command_text, utc_now())
        )

    def on_end(
        self,
        terminal_id: str,
        exit_code: int | None,
        captured_output: str = "",
    ) -> CommandAction | None:
        """
        Pair an end event with its pending start and emit the command.

        An end with no pending start is ignored.
        """
        if not self.recording:
            return None
        self._pending, action = correlate(
            self._pending, EndEvent(terminal_id, exit_code, captured_output or "")
        )
        if action is None:
            logger.debug(f"No pending command for {terminal_id}, ignoring end event")
            return None
        self._emit(action)
        return action

    # =========================================================================
    # Host-facing entry points
    # =========================================================================

    def terminal_id(self, terminal: TerminalHandle) -> str:
        """
        Stable id for a terminal handle.

        Resolved once per handle and reused until forget_terminal: the
        process id when the host already knows it, else a random surrogate.
        A pid that appears later does not change the id.
        """
        key = _handle_key(terminal)
        resolved = self._terminal_ids.get(key)
        if resolved is None:
            process_id = getattr(terminal, "process_id", None)
            if process_id:
                resolved = f"terminal-{process_id}"
            else:
                resolved = f"terminal-{secrets.token_hex(6)}"
            self._terminal_ids[key] = resolved
        return resolved

    def forget_terminal(self, terminal: TerminalHandle) -> None:
        """Drop state for a closed terminal."""
        terminal_id = self.terminal_id(terminal)
        self._pending.pop(terminal_id, None)
        self._terminal_ids.pop(_handle_key(terminal), None)

    def on_command_start(self, terminal: TerminalHandle, command_text: str) -> None:
        self.on_start(self.terminal_id(terminal), command_text)

    def on_command_end(self, terminal: TerminalHandle, exit_code: int | None) -> CommandAction | None:
        if not self.recording:
            return None
        terminal_id = self.terminal_id(terminal)
        if terminal_id not in self._pending:
            return None
        return self.on_end(terminal_id, exit_code, self._capture(terminal))

    def record_manual(self, command_text: str, output: str = "") -> CommandAction:
        """Record a command directly, bypassing correlation."""
        action = CommandAction(content=command_text, output=output)
        self._emit(action)
        return action

    def capture_output(self, terminal: TerminalHandle) -> bool:
        """
        Record the terminal's current output as a consequence.

        Returns:
            True if non-empty output was captured and recorded
        """
        output = self._capture(terminal)
        if not output:
            return False
        self._emit(ConsequenceAction(content=output, success=True))
        return True

    def _capture(self, terminal: TerminalHandle) -> str:
        if self._host is None:
            return ""
        try:
            return self._host.capture_output(terminal) or ""
        except Exception as e:
            logger.warning(f"Failed to capture terminal output: {e}")
            return ""


__all__ = [
    "EndEvent",
    "PendingCommand",
    "StartEvent",
    "TerminalCorrelator",
    "correlate",
]
