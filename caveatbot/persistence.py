"""
Session persistence for CaveatBot.

One JSON file per session in a flat directory:

    <sessions_dir>/<session_id>.json        full session record
    <sessions_dir>/<session_id>-view.json   cached view export (optional)

File names are keyed only by session id so external readers can find them.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .session_schema import Session

logger = logging.getLogger(__name__)

VIEW_SUFFIX = "-view.json"


class PersistenceError(OSError):
    """Writing or removing a session record failed."""


class SessionPersistence:
    """
    Reads and writes session records.

    Writes are synchronous and atomic (write-to-temp-then-rename), so a crash
    mid-write leaves the previous record intact.
    """

    def __init__(self, sessions_dir: Path | str):
        """
        Initialize persistence.

        Args:
            sessions_dir: Directory holding one JSON file per session
        """
        self.sessions_dir = Path(sessions_dir).expanduser()
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def record_path(self, session_id: str) -> Path:
        """Path of the session record."""
        return self.sessions_dir / f"{session_id}.json"

    def view_path(self, session_id: str) -> Path:
        """Path of the cached view export."""
        return self.sessions_dir / f"{session_id}{VIEW_SUFFIX}"

    def exists(self, session_id: str) -> bool:
        return self.record_path(session_id).exists()

    def write(self, session: Session) -> Path:
        """
        Atomically write a session record.

        Raises:
            PersistenceError: If the record could not be written
        """
        target = self.record_path(session.id)
        self._atomic_write(target, session.to_json())
        logger.debug(f"Saved session {session.id} ({len(session.actions)} actions)")
        return target

    def write_view(self, session_id: str, payload: dict[str, Any]) -> Path:
        """Write the view export for a session."""
        target = self.view_path(session_id)
        self._atomic_write(target, json.dumps(payload, indent=2))
        return target

    def read(self, session_id: str) -> Session:
        """
        Read a single session record.

        Raises:
            FileNotFoundError: If no record exists
            ValidationError: If the record is malformed
        """
        return Session.from_json(self.record_path(session_id).read_text(encoding="utf-8"))

    def delete(self, session_id: str) -> None:
        """
        Remove a session record and its view export.

        Missing files are not an error.

        Raises:
            PersistenceError: If a file exists but could not be removed
        """
        for path in (self.record_path(session_id), self.view_path(session_id)):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise PersistenceError(f"Failed to delete {path}: {e}") from e

    def scan(self) -> Iterator[Session]:
        """
        Yield every readable session in the directory.

        Each file is parsed independently; a malformed or unreadable record is
        logged and skipped so the remaining sessions still load.
        """
        for path in sorted(self.sessions_dir.glob("*.json")):
            if path.name.endswith(VIEW_SUFFIX):
                continue
            try:
                session = Session.from_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError, ValueError) as e:
                logger.warning(f"Skipping malformed session file {path.name}: {e}")
                continue
            yield session

    def _atomic_write(self, target: Path, text: str) -> None:
        try:
            fd, temp_path = tempfile.mkstemp(
                suffix=".tmp",
                prefix="session_",
                dir=self.sessions_dir,
            )
        except OSError as e:
            raise PersistenceError(f"Failed to write {target}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(temp_path, target)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise PersistenceError(f"Failed to write {target}: {e}") from e


__all__ = ["PersistenceError", "SessionPersistence", "VIEW_SUFFIX"]
