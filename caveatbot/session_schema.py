"""
Session schema models for CaveatBot.

Pydantic models for the per-session record written to
<sessions_dir>/<session_id>.json. The on-disk keys (including the camelCase
``startTime``) are consumed by an external ingestion pipeline, so the
serialized shape must stay stable.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Timezone-aware current time used for every recorded timestamp."""
    return datetime.now(timezone.utc)


class ActionType(str, Enum):
    """Kinds of recorded action."""

    COMMAND = "command"
    CONSEQUENCE = "consequence"
    NOTE = "note"
    CODE_CHANGE = "codeChange"
    SCREENSHOT = "screenshot"


class HunkKind(str, Enum):
    """Direction of a diff hunk."""

    ADDITION = "addition"
    REMOVAL = "removal"


class DiffHunk(BaseModel):
    """A contiguous run of added or removed lines."""

    kind: HunkKind
    text: str

    model_config = {"use_enum_values": True}


class CommandAction(BaseModel):
    """A shell command paired with its outcome."""

    type: Literal["command"] = "command"
    timestamp: datetime = Field(default_factory=utc_now)
    success: bool | None = True
    content: str
    output: str = ""


class ConsequenceAction(BaseModel):
    """A recorded outcome, usually captured terminal output."""

    type: Literal["consequence"] = "consequence"
    timestamp: datetime = Field(default_factory=utc_now)
    success: bool | None = True
    content: str


class NoteAction(BaseModel):
    """Free-text note."""

    type: Literal["note"] = "note"
    timestamp: datetime = Field(default_factory=utc_now)
    success: bool | None = True
    text: str


class CodeChangeAction(BaseModel):
    """Line diff of a saved file."""

    type: Literal["codeChange"] = "codeChange"
    timestamp: datetime = Field(default_factory=utc_now)
    success: bool | None = True
    file: str
    hunks: list[DiffHunk] = Field(default_factory=list)
    summary: str = ""


class ScreenshotAction(BaseModel):
    """A screenshot file attached to the session."""

    type: Literal["screenshot"] = "screenshot"
    timestamp: datetime = Field(default_factory=utc_now)
    success: bool | None = True
    path: str
    filename: str
    caption: str = ""


Action = Annotated[
    Union[CommandAction, ConsequenceAction, NoteAction, CodeChangeAction, ScreenshotAction],
    Field(discriminator="type"),
]


class Session(BaseModel):
    """
    A user-declared unit of work and its ordered action ledger.

    ``id`` is frozen: assigning to it after construction raises a
    ``ValidationError``.
    """

    id: str = Field(frozen=True)
    name: str
    description: str = ""
    start_time: datetime = Field(default_factory=utc_now, alias="startTime")
    notes: str = ""
    actions: list[Action] = Field(default_factory=list)

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    def to_record(self) -> dict[str, Any]:
        """JSON-ready record in the persisted layout."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, text: str) -> "Session":
        return cls.model_validate_json(text)


class SessionSummary(BaseModel):
    """Lightweight listing entry for the presentation layer."""

    id: str
    name: str
    description: str
    start_time: datetime
    action_count: int
    active: bool = False


class ChangeSummary(BaseModel):
    """What the user is asked to confirm before a code change is recorded."""

    file: str
    filename: str
    change_kind: Literal["Added", "Removed"]
    first_line: str

    @property
    def message(self) -> str:
        return f'{self.filename}: {self.change_kind} "{self.first_line}"'


__all__ = [
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
    "utc_now",
]
