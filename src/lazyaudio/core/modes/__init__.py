from .builtin import INPUT_METHOD_SHORTCUT, builtin_modes, register_builtin_modes
from .hooks import invoke_hook
from .orchestrator import ModeOrchestrator, ModeResult
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
    ModeKind,
    ModeLayout,
    ModeType,
)

__all__ = [
    "BuiltinModeId",
    "INPUT_METHOD_SHORTCUT",
    "InputMethodOptions",
    "IntervieweeOptions",
    "InterviewerOptions",
    "MeetingOptions",
    "ModeCapabilities",
    "ModeDefinition",
    "ModeHooks",
    "ModeKind",
    "ModeLayout",
    "ModeOrchestrator",
    "ModeRegistry",
    "ModeResult",
    "ModeType",
    "builtin_modes",
    "invoke_hook",
    "register_builtin_modes",
]
