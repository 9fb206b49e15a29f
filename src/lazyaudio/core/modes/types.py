"""
Mode definition types.

A mode is either *primary* (mutually exclusive, at most one active) or
*overlay* (layered on top of the primary mode, any number active).
Definitions are immutable once registered; the registry swaps in a
copy when an overlay's ``enabled`` flag changes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, FrozenSet, Optional, Union


class ModeType(str, Enum):
    PRIMARY = "primary"
    OVERLAY = "overlay"


class ModeLayout(str, Enum):
    DEFAULT = "default"
    FLOATING = "floating"


class ModeKind(Enum):
    MEETING = "meeting"
    INTERVIEWER = "interviewer"
    INTERVIEWEE = "interviewee"
    INPUT_METHOD = "input-method"
    CUSTOM = "custom"


class BuiltinModeId:
    MEETING = "meeting"
    INTERVIEWER = "interviewer"
    INTERVIEWEE = "interviewee"
    INPUT_METHOD = "input-method"


@dataclass(frozen=True)
class ModeCapabilities:
    """External resources a mode needs while it is active."""

    system_audio: bool = False
    microphone: bool = False
    ai: bool = False
    markers: bool = False

    def required(self) -> FrozenSet[str]:
        return frozenset(
            name
            for name in ("system_audio", "microphone", "ai", "markers")
            if getattr(self, name)
        )


# Hooks may be plain callables or coroutine functions.
LifecycleHook = Callable[[], Optional[Awaitable[None]]]
SessionHook = Callable[[str], Optional[Awaitable[None]]]


@dataclass(frozen=True)
class ModeHooks:
    on_activate: Optional[LifecycleHook] = None
    on_deactivate: Optional[LifecycleHook] = None
    on_session_start: Optional[SessionHook] = None
    on_session_end: Optional[SessionHook] = None


@dataclass(frozen=True)
class MeetingOptions:
    generate_summary: bool = True
    extract_action_items: bool = True


@dataclass(frozen=True)
class InterviewerOptions:
    track_questions: bool = True
    candidate_notes: bool = True


@dataclass(frozen=True)
class IntervieweeOptions:
    suggest_answers: bool = True
    always_on_top: bool = True


@dataclass(frozen=True)
class InputMethodOptions:
    auto_insert: bool = True
    max_duration_seconds: int = 60


ModeOptions = Union[MeetingOptions, InterviewerOptions, IntervieweeOptions, InputMethodOptions]

_KIND_BY_OPTIONS = {
    MeetingOptions: ModeKind.MEETING,
    InterviewerOptions: ModeKind.INTERVIEWER,
    IntervieweeOptions: ModeKind.INTERVIEWEE,
    InputMethodOptions: ModeKind.INPUT_METHOD,
}


@dataclass(frozen=True)
class ModeDefinition:
    id: str
    name: str
    type: ModeType
    description: str = ""
    icon: str = ""
    layout: ModeLayout = ModeLayout.DEFAULT
    capabilities: ModeCapabilities = field(default_factory=ModeCapabilities)
    hooks: Optional[ModeHooks] = None
    enabled: bool = True
    shortcut: Optional[str] = None
    options: Optional[ModeOptions] = None

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ValueError("mode id must be a non-empty string")
        if self.shortcut and self.type != ModeType.OVERLAY:
            raise ValueError(f'Only overlay modes may declare a shortcut ("{self.id}")')

    @property
    def kind(self) -> ModeKind:
        if self.options is None:
            return ModeKind.CUSTOM
        return _KIND_BY_OPTIONS.get(type(self.options), ModeKind.CUSTOM)

    @property
    def is_primary(self) -> bool:
        return self.type == ModeType.PRIMARY

    @property
    def is_overlay(self) -> bool:
        return self.type == ModeType.OVERLAY
