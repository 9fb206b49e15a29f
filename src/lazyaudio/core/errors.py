"""Exception types shared by the mode and session subsystems."""

from typing import Optional


class LazyAudioError(Exception):
    """Base class for LazyAudio core errors."""


class ModeError(LazyAudioError):
    """Base class for errors raised or reported by mode operations."""

    def __init__(self, mode_id: str, message: str):
        super().__init__(message)
        self.mode_id = mode_id


class ModeNotFoundError(ModeError):
    """Reported when a mode id is not registered."""

    def __init__(self, mode_id: str):
        super().__init__(mode_id, f'Mode "{mode_id}" does not exist')


class InvalidModeTypeError(ModeError):
    """Reported when a mode is used in a role its type does not allow."""

    def __init__(self, mode_id: str, expected: str, actual: str):
        super().__init__(mode_id, f'Mode "{mode_id}" is {actual}, expected {expected}')
        self.expected = expected
        self.actual = actual


class ModeDisabledError(ModeError):
    """Reported when activating an overlay whose enabled flag is cleared."""

    def __init__(self, mode_id: str):
        super().__init__(mode_id, f'Overlay mode "{mode_id}" is disabled')


class BusyError(ModeError):
    """Reported when a transition is requested while another is in flight."""

    def __init__(self, mode_id: str, in_flight: Optional[str] = None):
        detail = f" (in flight: {in_flight})" if in_flight else ""
        super().__init__(
            mode_id, f'Cannot switch to "{mode_id}" while a switch is running{detail}'
        )


class ModeActiveError(ModeError):
    """Raised when unregistering a mode that is currently active."""

    def __init__(self, mode_id: str):
        super().__init__(mode_id, f'Mode "{mode_id}" is active and cannot be removed')


class HookFailure(ModeError):
    """A lifecycle hook raised or did not finish within its timeout."""

    def __init__(self, mode_id: str, hook_name: str, reason: str):
        super().__init__(mode_id, f'Hook {hook_name} of mode "{mode_id}" failed: {reason}')
        self.hook_name = hook_name
        self.reason = reason


class SessionError(LazyAudioError):
    """Base class for session tracking errors."""


class SessionNotFoundError(SessionError):
    def __init__(self, session_id: str):
        super().__init__(f'Session "{session_id}" does not exist')
        self.session_id = session_id


class SessionExistsError(SessionError):
    def __init__(self, session_id: str):
        super().__init__(f'Session "{session_id}" already exists')
        self.session_id = session_id


class InvalidSessionTransitionError(SessionError):
    def __init__(self, session_id: str, current: str, target: str):
        super().__init__(
            f'Session "{session_id}" cannot move from {current} to {target}'
        )
        self.session_id = session_id
        self.current = current
        self.target = target


class SessionBackendError(SessionError):
    """Raised by a session backend when a command cannot be carried out."""
