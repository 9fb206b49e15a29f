"""Built-in mode definitions."""

from typing import Dict, List, Mapping, Optional

from ...utils.logger import get_logger
from .registry import ModeRegistry
from .types import (
    BuiltinModeId,
    InputMethodOptions,
    IntervieweeOptions,
    InterviewerOptions,
    MeetingOptions,
    ModeCapabilities,
    ModeDefinition,
    ModeHooks,
    ModeLayout,
    ModeType,
)

logger = get_logger(__name__)

INPUT_METHOD_SHORTCUT = "CommandOrControl+Shift+Space"


def _logging_hooks(label: str) -> ModeHooks:
    return ModeHooks(
        on_activate=lambda: logger.info(f"[{label}] activated"),
        on_deactivate=lambda: logger.info(f"[{label}] deactivated"),
    )


def builtin_modes(hooks: Optional[Mapping[str, ModeHooks]] = None) -> List[ModeDefinition]:
    """
    Build the built-in definitions.

    Args:
        hooks: Optional per-mode hook overrides keyed by mode id. Modes
            without an override get hooks that only log.
    """
    hooks = hooks or {}

    def hooks_for(mode_id: str, label: str) -> ModeHooks:
        return hooks.get(mode_id) or _logging_hooks(label)

    return [
        ModeDefinition(
            id=BuiltinModeId.MEETING,
            name="Meeting",
            description="Record meetings and generate summaries and action items",
            icon="📝",
            type=ModeType.PRIMARY,
            layout=ModeLayout.DEFAULT,
            capabilities=ModeCapabilities(
                system_audio=True, microphone=True, ai=True, markers=True
            ),
            hooks=hooks_for(BuiltinModeId.MEETING, "MeetingMode"),
            options=MeetingOptions(),
        ),
        ModeDefinition(
            id=BuiltinModeId.INTERVIEWER,
            name="Interviewer",
            description="Record interviews, track questions and assess candidates",
            icon="👔",
            type=ModeType.PRIMARY,
            layout=ModeLayout.DEFAULT,
            capabilities=ModeCapabilities(
                system_audio=True, microphone=True, ai=True, markers=True
            ),
            hooks=hooks_for(BuiltinModeId.INTERVIEWER, "InterviewerMode"),
            options=InterviewerOptions(),
        ),
        ModeDefinition(
            id=BuiltinModeId.INTERVIEWEE,
            name="Interviewee",
            description="Transcribe interview questions live with AI answer suggestions",
            icon="🎯",
            type=ModeType.PRIMARY,
            layout=ModeLayout.FLOATING,
            capabilities=ModeCapabilities(system_audio=True, ai=True),
            hooks=hooks_for(BuiltinModeId.INTERVIEWEE, "IntervieweeMode"),
            options=IntervieweeOptions(),
        ),
        ModeDefinition(
            id=BuiltinModeId.INPUT_METHOD,
            name="Input Method",
            description="Voice input summoned by a global shortcut",
            icon="⌨️",
            type=ModeType.OVERLAY,
            layout=ModeLayout.FLOATING,
            capabilities=ModeCapabilities(microphone=True),
            hooks=hooks_for(BuiltinModeId.INPUT_METHOD, "InputMethodMode"),
            enabled=True,
            shortcut=INPUT_METHOD_SHORTCUT,
            options=InputMethodOptions(),
        ),
    ]


def register_builtin_modes(
    registry: ModeRegistry, hooks: Optional[Dict[str, ModeHooks]] = None
) -> None:
    for mode in builtin_modes(hooks):
        registry.register(mode)
    logger.info(f"Registered built-in modes: {[m.id for m in registry.list()]}")
