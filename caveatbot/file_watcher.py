"""FileChangeWatcher - line diffs of saved files, recorded after user confirmation."""

from __future__ import annotations

import difflib
import logging
import os
from collections.abc import Callable, Iterable
from typing import Any

from .host import ConfirmChange
from .session_schema import Action, ChangeSummary, CodeChangeAction, DiffHunk, HunkKind

logger = logging.getLogger(__name__)


def diff_hunks(old: str, new: str) -> list[DiffHunk]:
    """
    Line-granularity diff of two snapshots.

    A replaced block yields its removal hunk followed by its addition hunk.
    Hunk text keeps the original line endings.
    """
    old_lines = old.splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    hunks: list[DiffHunk] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag in ("replace", "delete"):
            hunks.append(DiffHunk(kind=HunkKind.REMOVAL, text="".join(old_lines[i1:i2])))
        if tag in ("replace", "insert"):
            hunks.append(DiffHunk(kind=HunkKind.ADDITION, text="".join(new_lines[j1:j2])))
    return hunks


def summarize_change(path: str, hunks: list[DiffHunk]) -> ChangeSummary:
    """File name, kind and first line of the first hunk."""
    first = hunks[0]
    return ChangeSummary(
        file=path,
        filename=os.path.basename(path) or path,
        change_kind="Added" if first.kind == HunkKind.ADDITION else "Removed",
        first_line=first.text.split("\n")[0].strip(),
    )


def _accept_all(summary: ChangeSummary) -> bool:
    return True


class FileChangeWatcher:
    """
    Caches the last seen content of each file and records diffs on save.

    The cache is refreshed on every open and save whether or not tracking
    is on, so re-enabling tracking never produces a diff spanning the time
    it was off.
    """

    def __init__(
        self,
        emit: Callable[[Action], Any],
        confirm: ConfirmChange | None = None,
    ):
        """
        Args:
            emit: Receives each recorded action (normally SessionStore.add_action)
            confirm: Asked before recording; None records every change
        """
        self._emit = emit
        self._confirm = confirm or _accept_all
        self._contents: dict[str, str] = {}
        self.tracking = False
        self.has_active_session = False

    @property
    def recording(self) -> bool:
        return self.tracking and self.has_active_session

    def cached(self, path: str) -> str | None:
        return self._contents.get(path)

    def update_tracking_state(self, has_active_session: bool) -> None:
        """Lifecycle hook: tracking follows the has-active-session flag."""
        self.has_active_session = has_active_session
        self.tracking = has_active_session

    def start_tracking(self) -> None:
        self.tracking = True

    def stop_tracking(self) -> None:
        self.tracking = False

    def prime(self, documents: Iterable[tuple[str, str]]) -> None:
        """Cache documents that were already open at startup."""
        for path, content in documents:
            self._contents[path] = content

    def on_open(self, path: str, content: str) -> None:
        self._contents[path] = content

    def on_save(self, path: str, new_content: str) -> CodeChangeAction | None:
        """
        Diff against the cached snapshot and maybe record the change.

        Returns:
            The recorded action, or None if nothing was recorded
        """
        old_content = self._contents.get(path)
        try:
            if old_content is None:
                return None
            return self._handle_change(path, old_content, new_content)
        finally:
            self._contents[path] = new_content

    def _handle_change(self, path: str, old: str, new: str) -> CodeChangeAction | None:
        if old == new:
            return None
        hunks = diff_hunks(old, new)
        if not hunks or not self.recording:
            return None

        summary = summarize_change(path, hunks)
        if not self._confirm(summary):
            logger.debug(f"Code change in {summary.filename} declined")
            return None
        # The confirmation callback may have closed the session.
        if not self.recording:
            return None

        action = CodeChangeAction(
            file=path,
            hunks=hunks,
            summary=f"Changed {summary.message}",
        )
        self._emit(action)
        return action


__all__ = ["FileChangeWatcher", "diff_hunks", "summarize_change"]
