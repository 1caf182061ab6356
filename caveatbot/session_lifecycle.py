"""SessionLifecycle - which single session, if any, receives captured events."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from .action_ledger import SessionNotFoundError

if TYPE_CHECKING:
    from .session_schema import Session
    from .session_store import SessionStore

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class TrackingListener(Protocol):
    """Capture component gated on the has-active-session flag."""

    def update_tracking_state(self, has_active_session: bool) -> None:
        ...


class SessionLifecycle:
    """
    Two-state machine: Inactive, or Active(session_id).

    - start(description)  -> Active(new id), from any state. The previously
      active session is not closed; it just stops receiving captures.
    - set_active(id)      -> Active(id) if the session exists.
    - close()             -> Inactive.

    Listeners are told the has-active-session flag on every transition.
    """

    def __init__(self, store: "SessionStore"):
        self._store = store
        self._active_id: str | None = None
        self._listeners: list[TrackingListener] = []
        store.bind_lifecycle(self)

    @property
    def state(self) -> LifecycleState:
        return LifecycleState.ACTIVE if self._active_id is not None else LifecycleState.INACTIVE

    @property
    def active_session_id(self) -> str | None:
        return self._active_id

    @property
    def is_active(self) -> bool:
        return self._active_id is not None

    def add_listener(self, listener: TrackingListener) -> None:
        self._listeners.append(listener)
        listener.update_tracking_state(self.is_active)

    def start(self, description: str) -> "Session":
        """Create a new session and make it the active one."""
        # SessionStore.create requests the transition through set_active.
        return self._store.create(description)

    def set_active(self, session_id: str) -> None:
        """
        Make an existing session the active one.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        if not self._store.session_exists(session_id):
            raise SessionNotFoundError(session_id)
        self._active_id = session_id
        logger.info(f"Session {session_id} is now active")
        self._notify()

    def close(self) -> None:
        """Return to Inactive. No-op when already inactive."""
        if self._active_id is None:
            return
        logger.info(f"Session {self._active_id} closed")
        self._active_id = None
        self._notify()

    def _notify(self) -> None:
        has_active = self.is_active
        for listener in self._listeners:
            listener.update_tracking_state(has_active)
        self._store.refresh()


__all__ = ["LifecycleState", "SessionLifecycle", "TrackingListener"]
