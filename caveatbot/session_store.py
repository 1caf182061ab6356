"""
Session Store for CaveatBot.

Owns the in-memory collection of sessions. Every mutation goes through
ActionLedger and is followed by a synchronous write of the affected
session record(s) and a refresh notification.

A failed write raises PersistenceError but the in-memory change is kept:
memory is the authoritative current state.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .action_ledger import (
    ActionLedger,
    NoActiveSessionError,
    SessionNotFoundError,
)
from .naming import HeuristicNamer, Namer
from .persistence import PersistenceError, SessionPersistence
from .session_schema import (
    Action,
    ConsequenceAction,
    NoteAction,
    ScreenshotAction,
    Session,
    SessionSummary,
)

if TYPE_CHECKING:
    from pathlib import Path

    from .session_lifecycle import SessionLifecycle

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[], None]


def new_session_id() -> str:
    """Time-derived id with a random suffix so same-millisecond ids differ."""
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class SessionStore:
    """
    Manages sessions and their persisted records.

    The lifecycle binds itself via ``bind_lifecycle`` so that ``create`` can
    activate the new session and ``delete`` can close the active one.
    """

    def __init__(
        self,
        persistence: SessionPersistence,
        namer: Namer | None = None,
        ledger: ActionLedger | None = None,
    ):
        """
        Initialize session store.

        Args:
            persistence: Record reader/writer
            namer: Derives session names from descriptions (default: heuristic)
            ledger: List primitives (default: ActionLedger())
        """
        self.persistence = persistence
        self.namer = namer or HeuristicNamer()
        self.ledger = ledger or ActionLedger()
        self._sessions: dict[str, Session] = {}
        self._listeners: list[RefreshCallback] = []
        self._lifecycle: SessionLifecycle | None = None

    def bind_lifecycle(self, lifecycle: "SessionLifecycle") -> None:
        self._lifecycle = lifecycle

    @property
    def active_session_id(self) -> str | None:
        return self._lifecycle.active_session_id if self._lifecycle else None

    # =========================================================================
    # Sessions
    # =========================================================================

    def load(self) -> int:
        """
        Load every readable session record from disk.

        Malformed records are skipped (see SessionPersistence.scan).

        Returns:
            Number of sessions loaded
        """
        count = 0
        for session in self.persistence.scan():
            self._sessions[session.id] = session
            count += 1
        logger.info(f"Loaded {count} sessions from {self.persistence.sessions_dir}")
        self.refresh()
        return count

    def create(self, description: str) -> Session:
        """
        Create, persist and activate a new session.

        The in-memory session exists even if the initial write fails.

        Args:
            description: What the user is working on

        Returns:
            The new session
        """
        session = Session(
            id=new_session_id(),
            name=self.namer.name_for(description),
            description=description,
            notes=description,
        )
        self._sessions[session.id] = session
        logger.info(f"Created session {session.id} ({session.name!r})")
        try:
            self.persistence.write(session)
        finally:
            if self._lifecycle is not None:
                self._lifecycle.set_active(session.id)
            else:
                self.refresh()
        return session

    def get(self, session_id: str) -> Session:
        """
        Raises:
            SessionNotFoundError: If the session does not exist
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def session_exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def list(self) -> list[SessionSummary]:
        """Summaries of all sessions, in no particular order."""
        active_id = self.active_session_id
        return [
            SessionSummary(
                id=s.id,
                name=s.name,
                description=s.description,
                start_time=s.start_time,
                action_count=len(s.actions),
                active=s.id == active_id,
            )
            for s in self._sessions.values()
        ]

    def delete(self, session_id: str) -> None:
        """
        Delete a session from memory and disk.

        Closes the lifecycle first if this is the active session. A storage
        error is raised after the in-memory removal, which is not undone.

        Raises:
            SessionNotFoundError: If the session does not exist
            PersistenceError: If the record could not be removed
        """
        if session_id not in self._sessions:
            raise SessionNotFoundError(session_id)

        if self._lifecycle is not None and self._lifecycle.active_session_id == session_id:
            self._lifecycle.close()

        session = self._sessions.pop(session_id)
        try:
            self.persistence.delete(session_id)
        finally:
            logger.info(f"Deleted session {session_id} ({session.name!r})")
            self.refresh()

    # =========================================================================
    # Ledger mutations
    # =========================================================================

    def append_action(self, session_id: str, action: Action) -> int:
        """Append an action to a session. Returns its index."""
        session = self.get(session_id)
        index = self.ledger.append(session, action)
        self._save(session)
        return index

    def delete_action(self, session_id: str, index: int) -> Action:
        """
        Raises:
            SessionNotFoundError: If the session does not exist
            ActionNotFoundError: If the index is out of range
        """
        session = self.get(session_id)
        action = self.ledger.delete(session, index)
        self._save(session)
        return action

    def move_action(
        self,
        source_session_id: str,
        source_index: int,
        dest_session_id: str,
        dest_index: int,
    ) -> Action:
        """Move an action between (or within) sessions. See ActionLedger.move."""
        source = self.get(source_session_id)
        dest = self.get(dest_session_id)
        action = self.ledger.move(source, source_index, dest, dest_index)
        if source is dest:
            self._save(source)
        else:
            # The source may only drop the action once the destination holds it on disk
            try:
                self.persistence.write(dest)
            except PersistenceError:
                self.refresh()
                raise
            self._save(source)
        return action

    def reorder_actions(self, session_id: str, old_index: int, new_index: int) -> Action:
        session = self.get(session_id)
        action = self.ledger.reorder(session, old_index, new_index)
        self._save(session)
        return action

    # =========================================================================
    # Recording into the active session
    # =========================================================================

    def add_action(self, action: Action) -> int:
        """
        Append to the active session.

        Raises:
            NoActiveSessionError: If no session is active
        """
        session_id = self.active_session_id
        if session_id is None:
            raise NoActiveSessionError("No active recording session")
        return self.append_action(session_id, action)

    def add_note(self, text: str) -> int:
        return self.add_action(NoteAction(text=text))

    def add_consequence(self, content: str, success: bool = True) -> int:
        return self.add_action(ConsequenceAction(content=content, success=success))

    def add_screenshot(self, path: str, caption: str | None = None) -> int:
        normalized = os.path.normpath(path)
        filename = os.path.basename(normalized)
        return self.add_action(
            ScreenshotAction(
                path=normalized,
                filename=filename,
                caption=caption if caption is not None else f"Screenshot captured: {filename}",
            )
        )

    # =========================================================================
    # Export
    # =========================================================================

    def full_record(self, session_id: str) -> dict[str, Any]:
        """Complete record for downstream ingestion, same shape as on disk."""
        return self.get(session_id).to_record()

    def export_view(self, session_id: str) -> "Path":
        """Write the ``<id>-view.json`` export and return its path."""
        record = self.full_record(session_id)
        payload = {
            "sessionName": record["name"],
            "sessionDescription": record["description"],
            "startTime": record["startTime"],
            "actions": record["actions"],
        }
        return self.persistence.write_view(session_id, payload)

    # =========================================================================
    # Change notification
    # =========================================================================

    def subscribe(self, callback: RefreshCallback) -> Callable[[], None]:
        """Register a refresh callback. Returns a function that unregisters it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def refresh(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _save(self, *sessions: Session) -> None:
        try:
            for session in sessions:
                self.persistence.write(session)
        finally:
            self.refresh()


__all__ = ["SessionStore", "new_session_id"]
