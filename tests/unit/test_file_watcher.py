"""Tests for FileChangeWatcher and line diffing."""

from unittest.mock import MagicMock

import pytest

from caveatbot.file_watcher import FileChangeWatcher, diff_hunks, summarize_change
from caveatbot.session_schema import CodeChangeAction, HunkKind


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def watcher(emitted):
    """Watcher with an active session and auto-accept."""
    w = FileChangeWatcher(emit=emitted.append)
    w.update_tracking_state(True)
    return w


class TestDiffHunks:
    """Tests for diff_hunks."""

    def test_identical(self):
        assert diff_hunks("a\nb\n", "a\nb\n") == []

    def test_addition(self):
        hunks = diff_hunks("a\nc\n", "a\nb\nc\n")
        assert [(h.kind, h.text) for h in hunks] == [("addition", "b\n")]

    def test_removal(self):
        hunks = diff_hunks("a\nb\nc\n", "a\nc\n")
        assert [(h.kind, h.text) for h in hunks] == [("removal", "b\n")]

    def test_replacement_is_removal_then_addition(self):
        hunks = diff_hunks("x = 1\ny = 2\n", "x = 10\ny = 2\n")
        assert [(h.kind, h.text) for h in hunks] == [
            ("removal", "x = 1\n"),
            ("addition", "x = 10\n"),
        ]

    def test_contiguous_lines_grouped(self):
        hunks = diff_hunks("", "one\ntwo\nthree\n")
        assert len(hunks) == 1
        assert hunks[0].text == "one\ntwo\nthree\n"

    def test_summarize_change(self):
        hunks = diff_hunks("a\n", "a\n  return token  \nmore\n")
        summary = summarize_change("/repo/src/auth.py", hunks)
        assert summary.filename == "auth.py"
        assert summary.change_kind == "Added"
        assert summary.first_line == "return token"


class TestFileChangeWatcher:
    """Tests for save handling."""

    def test_first_save_only_caches(self, watcher, emitted):
        """Without a baseline there is nothing to diff."""
        assert watcher.on_save("/f.py", "x\n") is None
        assert emitted == []
        assert watcher.cached("/f.py") == "x\n"

    def test_identical_save_records_nothing(self, watcher, emitted):
        watcher.on_open("/f.py", "x\n")
        assert watcher.on_save("/f.py", "x\n") is None
        assert emitted == []

    def test_change_recorded_with_all_hunks(self, watcher, emitted):
        watcher.on_open("/repo/f.py", "a\nb\n")
        action = watcher.on_save("/repo/f.py", "a\nB\nc\n")

        assert emitted == [action]
        assert isinstance(action, CodeChangeAction)
        assert action.file == "/repo/f.py"
        assert [h.kind for h in action.hunks] == [HunkKind.REMOVAL, HunkKind.ADDITION]
        assert action.summary == 'Changed f.py: Removed "b"'
        assert watcher.cached("/repo/f.py") == "a\nB\nc\n"

    def test_successive_saves_diff_against_last_save(self, watcher, emitted):
        watcher.on_open("/f.py", "1\n")
        watcher.on_save("/f.py", "1\n2\n")
        watcher.on_save("/f.py", "1\n2\n3\n")
        assert [a.hunks[0].text for a in emitted] == ["2\n", "3\n"]

    def test_declined_change_not_recorded(self, emitted):
        """Declining discards the change but the cache still moves on."""
        confirm = MagicMock(return_value=False)
        w = FileChangeWatcher(emit=emitted.append, confirm=confirm)
        w.update_tracking_state(True)
        w.on_open("/f.py", "old\n")

        assert w.on_save("/f.py", "new\n") is None

        summary = confirm.call_args.args[0]
        assert summary.filename == "f.py"
        assert summary.change_kind == "Removed"
        assert summary.first_line == "old"
        assert emitted == []
        assert w.cached("/f.py") == "new\n"

    def test_not_recorded_without_active_session(self, emitted):
        confirm = MagicMock(return_value=True)
        w = FileChangeWatcher(emit=emitted.append, confirm=confirm)
        w.on_open("/f.py", "old\n")
        w.on_save("/f.py", "new\n")
        confirm.assert_not_called()
        assert emitted == []

    def test_cache_updates_while_tracking_off(self, watcher, emitted):
        """Re-enabling tracking does not produce a diff spanning the gap."""
        watcher.on_open("/f.py", "v1\n")
        watcher.stop_tracking()
        watcher.on_save("/f.py", "v2\n")
        watcher.start_tracking()
        watcher.on_save("/f.py", "v2\nv3\n")

        assert len(emitted) == 1
        assert [(h.kind, h.text) for h in emitted[0].hunks] == [("addition", "v3\n")]

    def test_session_closed_during_confirmation(self, emitted):
        """A change confirmed after the session closed is dropped."""
        w = FileChangeWatcher(emit=emitted.append)

        def confirm_and_close(summary):
            w.update_tracking_state(False)
            return True

        w._confirm = confirm_and_close
        w.update_tracking_state(True)
        w.on_open("/f.py", "a\n")
        assert w.on_save("/f.py", "b\n") is None
        assert emitted == []

    def test_prime(self, watcher):
        watcher.prime([("/a.py", "A"), ("/b.py", "B")])
        assert watcher.cached("/a.py") == "A"
        assert watcher.cached("/b.py") == "B"
