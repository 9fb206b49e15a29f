"""
Session lifecycle controller.

Sends commands to the session backend, mirrors the results into the
SessionTracker, and runs the owning mode's session hooks. Operations
return a success flag and keep the failure text in ``last_error``.
"""

import time
from datetime import datetime
from typing import Optional

from ...utils.logger import get_logger
from ..errors import HookFailure, InvalidSessionTransitionError
from ..modes.hooks import invoke_hook
from ..modes.registry import ModeRegistry
from ..settings.config import HOOK_TIMEOUT_SECONDS
from .backend import SessionBackend, SessionConfig
from .tracker import SessionInfo, SessionState, SessionTracker

logger = get_logger(__name__)


class SessionController:

    def __init__(
        self,
        tracker: SessionTracker,
        backend: SessionBackend,
        registry: ModeRegistry,
        hook_timeout: Optional[float] = HOOK_TIMEOUT_SECONDS,
    ):
        self.tracker = tracker
        self.backend = backend
        self.registry = registry
        self.hook_timeout = hook_timeout

        self._is_loading = False
        self._last_error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    async def create_session(
        self,
        mode_id: str,
        name: Optional[str] = None,
        config: Optional[SessionConfig] = None,
    ) -> Optional[str]:
        """
        Create a backend session and start tracking it.

        Args:
            mode_id: Mode the session is opened under
            name: Optional display title
            config: Audio configuration; derived from the mode capabilities if omitted

        Returns:
            The new session id, or None on failure.
        """
        if not self.registry.has(mode_id):
            self._last_error = f'Mode "{mode_id}" does not exist'
            logger.error(self._last_error)
            return None

        if config is None:
            mode = self.registry.get(mode_id)
            config = SessionConfig(
                mode_id=mode_id,
                name=name,
                use_microphone=mode.capabilities.microphone,
                use_system_audio=mode.capabilities.system_audio,
            )

        self._begin()
        try:
            session_id = await self.backend.create(config)
        except Exception as e:
            self._fail(f"Failed to create session: {e}")
            return None
        finally:
            self._is_loading = False

        self.tracker.add_session(
            SessionInfo(
                id=session_id,
                mode_id=mode_id,
                state=SessionState.CREATED,
                start_time_ms=int(time.time() * 1000),
                duration_ms=0,
                title=name,
            )
        )
        logger.info(f"Session {session_id} created for mode {mode_id}")
        return session_id

    async def start_session(self, session_id: str) -> bool:
        if not await self._transition(session_id, SessionState.RECORDING, self.backend.start):
            return False
        await self._run_session_hook(session_id, "on_session_start")
        return True

    async def pause_session(self, session_id: str) -> bool:
        return await self._transition(session_id, SessionState.PAUSED, self.backend.pause)

    async def resume_session(self, session_id: str) -> bool:
        return await self._transition(session_id, SessionState.RECORDING, self.backend.resume)

    async def stop_session(self, session_id: str) -> bool:
        if not await self._transition(session_id, SessionState.COMPLETED, self.backend.stop):
            return False
        self.tracker.update_session_duration(session_id, self._safe_duration(session_id))
        await self._run_session_hook(session_id, "on_session_end")
        return True

    async def delete_session(self, session_id: str) -> bool:
        session = self.tracker.get(session_id)
        if session is not None and session.state.is_active:
            self._last_error = f"Cannot delete active session {session_id}"
            logger.error(self._last_error)
            return False

        self._begin()
        try:
            await self.backend.delete(session_id)
        except Exception as e:
            self._fail(f"Failed to delete session: {e}")
            return False
        finally:
            self._is_loading = False

        self.tracker.remove_session(session_id)
        logger.info(f"Session {session_id} deleted")
        return True

    async def refresh_active_sessions(self) -> None:
        try:
            sessions = await self.backend.list_active()
        except Exception as e:
            logger.error(f"Failed to refresh active sessions: {e}")
            return

        previous_current = self.tracker.current_session_id
        self.tracker.clear_sessions()
        for info in sessions:
            self.tracker.add_session(
                SessionInfo(
                    id=info.id,
                    mode_id=info.mode_id,
                    state=SessionState.from_backend(info.status),
                    start_time_ms=_parse_timestamp_ms(info.created_at),
                    duration_ms=info.duration_ms,
                    title=info.name,
                )
            )
        if previous_current is not None and self.tracker.get(previous_current):
            self.tracker.set_current_session(previous_current)

    def tick_durations(self) -> None:
        """Refresh the duration of every recording session from the backend."""
        for session in self.tracker.sessions:
            if session.state != SessionState.RECORDING:
                continue
            self.tracker.update_session_duration(
                session.id, self._safe_duration(session.id, session.duration_ms)
            )

    def set_current_session(self, session_id: Optional[str]) -> None:
        self.tracker.set_current_session(session_id)

    async def _transition(self, session_id, target: SessionState, command) -> bool:
        session = self.tracker.get(session_id)
        if session is None:
            self._last_error = f'Session "{session_id}" does not exist'
            logger.error(self._last_error)
            return False

        if not session.state.can_transition_to(target):
            error = InvalidSessionTransitionError(
                session_id, session.state.value, target.value
            )
            self._last_error = str(error)
            logger.error(self._last_error)
            return False

        self._begin()
        try:
            await command(session_id)
        except Exception as e:
            self._fail(f"Failed to move session {session_id} to {target.value}: {e}")
            return False
        finally:
            self._is_loading = False

        self.tracker.update_session_state(session_id, target)
        logger.info(f"Session {session_id} -> {target.value}")
        return True

    async def _run_session_hook(self, session_id: str, hook_name: str) -> None:
        session = self.tracker.get(session_id)
        mode = self.registry.get(session.mode_id) if session else None
        if mode is None:
            return
        try:
            await invoke_hook(mode, hook_name, session_id, timeout=self.hook_timeout)
        except HookFailure as e:
            logger.warning(f"{e} (ignored)")

    def _safe_duration(self, session_id: str, fallback: int = 0) -> int:
        try:
            return self.backend.duration_ms(session_id)
        except Exception as e:
            logger.debug(f"No duration for session {session_id}: {e}")
            return fallback

    def _begin(self) -> None:
        self._is_loading = True
        self._last_error = None

    def _fail(self, message: str) -> None:
        self._last_error = message
        logger.error(message)


def _parse_timestamp_ms(iso_string: str) -> int:
    try:
        return int(datetime.fromisoformat(iso_string).timestamp() * 1000)
    except (TypeError, ValueError):
        return 0
