"""ActionLedger - ordered list primitives over a session's actions."""

from __future__ import annotations

from .session_schema import Action, Session


class NotFoundError(LookupError):
    """Target session or action does not exist."""


class SessionNotFoundError(NotFoundError):
    """No session with the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ActionNotFoundError(NotFoundError):
    """Action index out of range for a session."""

    def __init__(self, session_id: str, index: int):
        super().__init__(f"Action {index} not found in session {session_id}")
        self.session_id = session_id
        self.index = index


class NoActiveSessionError(NotFoundError):
    """An operation needed the active session but none is active."""


class ActionLedger:
    """
    In-place mutations of ``Session.actions``.

    Every operation validates its indices before touching any list, so a
    failed call leaves all sessions unchanged. Indices are positions in the
    list as it is at call time; any mutation invalidates indices captured
    earlier.

    Persistence and change notification are the caller's job (SessionStore).
    """

    def append(self, session: Session, action: Action) -> int:
        """Append to the tail. Returns the new action's index."""
        session.actions.append(action)
        return len(session.actions) - 1

    def delete(self, session: Session, index: int) -> Action:
        """Remove and return the action at ``index``."""
        self._check_index(session, index)
        return session.actions.pop(index)

    def move(
        self,
        source: Session,
        source_index: int,
        dest: Session,
        dest_index: int,
    ) -> Action:
        """
        Move an action to another position, possibly in another session.

        ``dest_index`` is a position in the destination list before removal
        (0..len inclusive). When moving forward within one session, it is
        shifted down by one after the removal so the action lands where the
        caller pointed.
        """
        self._check_index(source, source_index)
        if dest_index < 0 or dest_index > len(dest.actions):
            raise ActionNotFoundError(dest.id, dest_index)

        same_session = source is dest
        if same_session and dest_index > source_index:
            dest_index -= 1

        action = source.actions.pop(source_index)
        dest.actions.insert(dest_index, action)
        return action

    def reorder(self, session: Session, old_index: int, new_index: int) -> Action:
        """Remove the action at ``old_index`` and reinsert it at ``new_index``."""
        self._check_index(session, old_index)
        self._check_index(session, new_index)
        action = session.actions.pop(old_index)
        session.actions.insert(new_index, action)
        return action

    @staticmethod
    def _check_index(session: Session, index: int) -> None:
        if index < 0 or index >= len(session.actions):
            raise ActionNotFoundError(session.id, index)


__all__ = [
    "ActionLedger",
    "ActionNotFoundError",
    "NoActiveSessionError",
    "NotFoundError",
    "SessionNotFoundError",
]
