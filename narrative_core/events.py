"""Notice and transition-record models.

Notices are what the engine has to say about a transition: a rule fired, a
route expired, a command was not understood. They are immutable facts handed
to presentation alongside the snapshot; presentation decides how to render
them.

Codes are stable machine identifiers (``route.not_found``); messages are the
default human-readable wording.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import NarrativeState


class NoticeKind(str, Enum):
    """Tone / channel a notice belongs to."""
    SYSTEM = "system"
    WELCOME = "welcome"
    INPUT = "input"
    HULL = "hull"
    DIRECTIVE = "directive"
    FIDELITY = "fidelity"
    PME = "pme"
    SHOCK = "shock"
    DEPRECATED = "deprecated"
    SHELL = "shell"
    ERROR = "error"
    DIAGNOSTIC = "diagnostic"
    LITERARY = "literary"
    ARCHIVE = "archive"


class Notice(BaseModel):
    """A single engine-produced message."""
    kind: NoticeKind = Field(description="Channel / tone of the notice")
    code: str = Field(description="Stable machine-readable identifier")
    message: str = Field(default="", description="Default wording")
    tick: int = Field(default=0, description="Tick the notice was produced on")
    data: dict[str, Any] = Field(default_factory=dict, description="Structured details")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


def notice(kind: NoticeKind, code: str, message: str, tick: int = 0, **data: Any) -> Notice:
    """Shorthand constructor used throughout the story engines."""
    return Notice(kind=kind, code=code, message=message, tick=tick, data=data)


class CommandOutcome(BaseModel):
    """Result of interpreting one line of user input."""
    state: NarrativeState
    notices: tuple[Notice, ...] = ()
    recognized: bool = True
    command: Optional[str] = Field(default=None, description="Dispatcher command applied, if any")

    model_config = ConfigDict(frozen=True)


class TickRecord(BaseModel):
    """One scheduler tick: the resulting snapshot plus its announcements."""
    tick: int
    state: NarrativeState
    notices: tuple[Notice, ...] = ()

    model_config = ConfigDict(frozen=True)
