"""
Session backend contract and an in-process implementation.

The native recording pipeline owns real sessions; the core talks to it
through ``SessionBackend``. ``LocalSessionBackend`` keeps sessions in
memory and records the microphone through ``AudioRecorder``, which
appends blocks straight into the owning session's chunk list.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol

import numpy as np

from ...utils.logger import get_logger
from ..errors import SessionBackendError, SessionNotFoundError

if TYPE_CHECKING:
    from ..audio.recorder import AudioRecorder

logger = get_logger(__name__)


@dataclass
class SessionConfig:
    mode_id: str
    name: Optional[str] = None
    audio_sources: List[str] = field(default_factory=list)
    enable_recording: bool = True
    use_microphone: bool = True
    use_system_audio: bool = False


@dataclass
class BackendSessionInfo:
    id: str
    mode_id: str
    status: str
    created_at: str  # ISO format datetime
    duration_ms: int
    name: Optional[str] = None


class SessionBackend(Protocol):
    async def create(self, config: SessionConfig) -> str: ...

    async def start(self, session_id: str) -> None: ...

    async def pause(self, session_id: str) -> None: ...

    async def resume(self, session_id: str) -> None: ...

    async def stop(self, session_id: str) -> None: ...

    async def delete(self, session_id: str) -> None: ...

    async def list_active(self) -> List[BackendSessionInfo]: ...

    def duration_ms(self, session_id: str) -> int: ...


@dataclass
class _LocalSession:
    id: str
    config: SessionConfig
    created_at: str
    status: str = "created"
    accumulated_ms: int = 0
    running_since: Optional[float] = None
    chunks: List[np.ndarray] = field(default_factory=list)

    def current_duration_ms(self) -> int:
        running = 0
        if self.running_since is not None:
            running = int((time.monotonic() - self.running_since) * 1000)
        return self.accumulated_ms + running


class LocalSessionBackend:
    """
    In-process session backend.

    Only one session may hold the microphone at a time.
    """

    def __init__(self, recorder: Optional["AudioRecorder"] = None):
        self._recorder = recorder
        self._sessions: Dict[str, _LocalSession] = {}
        self._microphone_owner: Optional[str] = None

    async def create(self, config: SessionConfig) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = _LocalSession(
            id=session_id,
            config=config,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.debug(f"Created session {session_id} for mode {config.mode_id}")
        return session_id

    async def start(self, session_id: str) -> None:
        session = self._require(session_id, "created")
        self._begin_running(session)

    async def pause(self, session_id: str) -> None:
        session = self._require(session_id, "recording")
        self._end_running(session)
        session.status = "paused"

    async def resume(self, session_id: str) -> None:
        session = self._require(session_id, "paused")
        self._begin_running(session)

    async def stop(self, session_id: str) -> None:
        session = self._require(session_id, "recording", "paused")
        if session.status == "recording":
            self._end_running(session)
        session.status = "completed"

    async def delete(self, session_id: str) -> None:
        session = self._get(session_id)
        if session.status in ("recording", "paused"):
            raise SessionBackendError(f"Cannot delete active session {session_id}")
        del self._sessions[session_id]

    async def list_active(self) -> List[BackendSessionInfo]:
        return [
            BackendSessionInfo(
                id=s.id,
                mode_id=s.config.mode_id,
                status=s.status,
                created_at=s.created_at,
                duration_ms=s.current_duration_ms(),
                name=s.config.name,
            )
            for s in self._sessions.values()
            if s.status not in ("completed", "error")
        ]

    def duration_ms(self, session_id: str) -> int:
        return self._get(session_id).current_duration_ms()

    def get_audio(self, session_id: str) -> Optional[np.ndarray]:
        session = self._get(session_id)
        if not session.chunks:
            return None
        return np.concatenate(session.chunks, axis=0)

    def _get(self, session_id: str) -> _LocalSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _require(self, session_id: str, *statuses: str) -> _LocalSession:
        session = self._get(session_id)
        if session.status not in statuses:
            raise SessionBackendError(
                f"Session {session_id} is {session.status}, expected {' or '.join(statuses)}"
            )
        return session

    def _wants_microphone(self, session: _LocalSession) -> bool:
        config = session.config
        return self._recorder is not None and config.enable_recording and config.use_microphone

    def _begin_running(self, session: _LocalSession) -> None:
        if self._wants_microphone(session):
            if self._microphone_owner not in (None, session.id):
                raise SessionBackendError(
                    f"Microphone is in use by session {self._microphone_owner}"
                )
            if not self._recorder.start(session.chunks.append):
                raise SessionBackendError(
                    self._recorder.last_error or "Failed to start recording"
                )
            self._microphone_owner = session.id

        session.running_since = time.monotonic()
        session.status = "recording"

    def _end_running(self, session: _LocalSession) -> None:
        if session.running_since is not None:
            session.accumulated_ms = session.current_duration_ms()
            session.running_since = None

        if self._microphone_owner == session.id:
            self._recorder.stop()
            self._microphone_owner = None
