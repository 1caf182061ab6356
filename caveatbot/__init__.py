"""CaveatBot: record a developer's work session as an ordered action ledger.

Shell commands paired with their outcomes, file diffs, notes and screenshots
are captured into the active session and persisted one JSON file per session.
"""

__version__ = "0.0.1"

# Records
from .session_schema import (
    Action,
    ActionType,
    ChangeSummary,
    CodeChangeAction,
    CommandAction,
    ConsequenceAction,
    DiffHunk,
    HunkKind,
    NoteAction,
    ScreenshotAction,
    Session,
    SessionSummary,
)

# Engine
from .action_ledger import (
    ActionLedger,
    ActionNotFoundError,
    NoActiveSessionError,
    NotFoundError,
    SessionNotFoundError,
)
from .persistence import PersistenceError, SessionPersistence
from .session_store import SessionStore
from .session_lifecycle import LifecycleState, SessionLifecycle
from .terminal_correlator import TerminalCorrelator, correlate
from .file_watcher import FileChangeWatcher, diff_hunks
from .recorder import Recorder

# Collaborators & Config
from .naming import HeuristicNamer, LLMError, LLMNamer
from .config import RecorderConfig, default_config

__all__ = [
    # Records
    "Action",
    "ActionType",
    "ChangeSummary",
    "CodeChangeAction",
    "CommandAction",
    "ConsequenceAction",
    "DiffHunk",
    "HunkKind",
    "NoteAction",
    "ScreenshotAction",
    "Session",
    "SessionSummary",
    # Engine
    "ActionLedger",
    "ActionNotFoundError",
    "NoActiveSessionError",
    "NotFoundError",
    "SessionNotFoundError",
    "PersistenceError",
    "SessionPersistence",
    "SessionStore",
    "LifecycleState",
    "SessionLifecycle",
    "TerminalCorrelator",
    "correlate",
    "FileChangeWatcher",
    "diff_hunks",
    "Recorder",
    # Collaborators & Config
    "HeuristicNamer",
    "LLMError",
    "LLMNamer",
    "RecorderConfig",
    "default_config",
]
