"""
In-memory tracker of open recording sessions.

Pure bookkeeping: no hooks, no backend calls. Duration and state updates
for unknown ids are ignored because they arrive from timers that may
race with session removal.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from ...utils.logger import get_logger
from ..errors import SessionExistsError, SessionNotFoundError

logger = get_logger(__name__)


class SessionState(str, Enum):
    CREATED = "created"
    RECORDING = "recording"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.ERROR)

    @property
    def is_active(self) -> bool:
        return self in (SessionState.RECORDING, SessionState.PAUSED)

    def can_transition_to(self, target: "SessionState") -> bool:
        return target in _TRANSITIONS[self]

    @classmethod
    def from_backend(cls, status: str) -> "SessionState":
        """Map a backend status string (any case) onto a state; unknown values become CREATED."""
        try:
            return cls(status.strip().lower())
        except ValueError:
            return cls.CREATED


_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.CREATED: frozenset({SessionState.RECORDING, SessionState.ERROR}),
    SessionState.RECORDING: frozenset(
        {SessionState.PAUSED, SessionState.COMPLETED, SessionState.ERROR}
    ),
    SessionState.PAUSED: frozenset(
        {SessionState.RECORDING, SessionState.COMPLETED, SessionState.ERROR}
    ),
    SessionState.COMPLETED: frozenset(),
    SessionState.ERROR: frozenset(),
}


@dataclass
class SessionInfo:
    id: str
    mode_id: str
    state: SessionState = SessionState.CREATED
    start_time_ms: int = 0
    duration_ms: int = 0
    title: Optional[str] = None


class SessionTracker:
    """
    Holds the open sessions in insertion order plus the focused one.

    Invariant: ``current_session_id`` is None or the id of a tracked session.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._sessions: List[SessionInfo] = []
        self._current_session_id: Optional[str] = None
        self.on_change = on_change

    @property
    def sessions(self) -> List[SessionInfo]:
        return list(self._sessions)

    @property
    def current_session_id(self) -> Optional[str]:
        return self._current_session_id

    @property
    def current_session(self) -> Optional[SessionInfo]:
        if self._current_session_id is None:
            return None
        return self.get(self._current_session_id)

    @property
    def has_recording_session(self) -> bool:
        return any(s.state == SessionState.RECORDING for s in self._sessions)

    @property
    def has_paused_session(self) -> bool:
        return any(s.state == SessionState.PAUSED for s in self._sessions)

    @property
    def has_active_session(self) -> bool:
        return any(s.state.is_active for s in self._sessions)

    @property
    def recording_session(self) -> Optional[SessionInfo]:
        recording = [s for s in self._sessions if s.state == SessionState.RECORDING]
        if len(recording) > 1:
            logger.warning(
                f"{len(recording)} sessions claim to be recording: "
                f"{[s.id for s in recording]}"
            )
        return recording[0] if recording else None

    def get(self, session_id: str) -> Optional[SessionInfo]:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def sessions_for_mode(self, mode_id: str) -> List[SessionInfo]:
        return [s for s in self._sessions if s.mode_id == mode_id]

    def add_session(self, session: SessionInfo) -> None:
        if self.get(session.id) is not None:
            raise SessionExistsError(session.id)
        self._sessions.append(session)
        if self._current_session_id is None:
            self._current_session_id = session.id
        self._changed()

    def update_session_state(self, session_id: str, state: SessionState) -> None:
        session = self.get(session_id)
        if session is None:
            logger.debug(f"Ignoring state update for unknown session {session_id}")
            return
        session.state = state
        self._changed()

    def update_session_duration(self, session_id: str, duration_ms: int) -> None:
        session = self.get(session_id)
        if session is None:
            logger.debug(f"Ignoring duration update for unknown session {session_id}")
            return
        session.duration_ms = duration_ms
        self._changed()

    def remove_session(self, session_id: str) -> None:
        session = self.get(session_id)
        if session is not None:
            self._sessions.remove(session)
        if self._current_session_id == session_id:
            self._current_session_id = self._sessions[0].id if self._sessions else None
        self._changed()

    def set_current_session(self, session_id: Optional[str]) -> None:
        """
        Focus a session, or clear focus with None.

        Raises:
            SessionNotFoundError: If the id is not tracked.
        """
        if session_id is not None and self.get(session_id) is None:
            raise SessionNotFoundError(session_id)
        self._current_session_id = session_id
        self._changed()

    def clear_sessions(self) -> None:
        self._sessions = []
        self._current_session_id = None
        self._changed()

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
