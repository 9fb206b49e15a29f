"""Application runtime."""

import asyncio
import signal
import sys
from typing import Coroutine, Dict, List, Optional, Set

from PySide6 import QtAsyncio
from PySide6.QtCore import QObject, QTimer
from PySide6.QtWidgets import QApplication

from lazyaudio import __app_name__, __version__
from lazyaudio.core.audio import SoundDeviceAudioService, missing_capabilities
from lazyaudio.core.errors import ModeError
from lazyaudio.core.input import GlobalHotkeyDispatcher
from lazyaudio.core.modes import (
    BuiltinModeId,
    ModeHooks,
    ModeOrchestrator,
    ModeRegistry,
    register_builtin_modes,
)
from lazyaudio.core.sessions import (
    LocalSessionBackend,
    SessionController,
    SessionState,
    SessionTracker,
)
from lazyaudio.core.settings import StateStore, get_last_mode, get_settings, set_last_mode
from lazyaudio.core.settings.config import SESSION_TICK_INTERVAL_MS
from lazyaudio.ui.tray import SystemTray, TrayStatus
from lazyaudio.utils.formatters import format_duration_ms
from lazyaudio.utils.logger import get_logger, shutdown_logging

logger = get_logger(__name__)


class LazyAudioApp(QObject):

    def __init__(
        self,
        state_store: Optional[StateStore] = None,
        audio_service: Optional[SoundDeviceAudioService] = None,
    ):
        super().__init__()

        self._settings = get_settings()
        self._state_store = state_store or StateStore()
        self._audio = audio_service or SoundDeviceAudioService()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()
        self._input_session_id: Optional[str] = None

        self._registry = ModeRegistry()
        register_builtin_modes(self._registry, hooks=self._builtin_hooks())
        for mode_id in self._settings.disabled_overlays:
            if self._registry.has(mode_id):
                self._registry.set_enabled(mode_id, False)

        self._orchestrator = ModeOrchestrator(
            self._registry,
            hook_timeout=self._settings.hook_timeout,
            on_primary_changed=self._on_primary_changed,
            on_overlays_changed=self._on_overlays_changed,
            on_error=self._on_mode_error,
        )
        self._tracker = SessionTracker(on_change=self._refresh_session_display)
        self._sessions = SessionController(
            self._tracker,
            LocalSessionBackend(self._audio.recorder),
            self._registry,
            hook_timeout=self._settings.hook_timeout,
        )

        self._tray = SystemTray(__app_name__)
        self._hotkeys = GlobalHotkeyDispatcher(
            self._registry, overrides=self._settings.overlay_shortcuts
        )
        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(SESSION_TICK_INTERVAL_MS)
        self._tick_timer.timeout.connect(self._sessions.tick_durations)

        self._tray.primary_mode_requested.connect(self._on_primary_mode_requested)
        self._tray.overlay_toggle_requested.connect(self._on_overlay_toggle_requested)
        self._tray.quit_requested.connect(self._quit)
        self._hotkeys.shortcut_triggered.connect(self._on_overlay_toggle_requested)

    def _builtin_hooks(self) -> Dict[str, ModeHooks]:
        hooks = {
            mode_id: ModeHooks(
                on_activate=lambda mode_id=mode_id: self._check_capabilities(mode_id),
                on_deactivate=lambda mode_id=mode_id: logger.info(f"[{mode_id}] deactivated"),
            )
            for mode_id in (
                BuiltinModeId.MEETING,
                BuiltinModeId.INTERVIEWER,
                BuiltinModeId.INTERVIEWEE,
            )
        }
        hooks[BuiltinModeId.INPUT_METHOD] = ModeHooks(
            on_activate=self._open_input_session,
            on_deactivate=self._close_input_session,
        )
        return hooks

    def _check_capabilities(self, mode_id: str) -> None:
        mode = self._registry.get(mode_id)
        missing = missing_capabilities(mode, self._audio)
        if missing:
            message = f"{mode.name}: no audio source for {', '.join(sorted(missing))}"
            logger.warning(message)
            self._tray.show_message(__app_name__, message, error=True)
        else:
            logger.info(f"[{mode_id}] activated")

    async def _open_input_session(self) -> None:
        session_id = await self._sessions.create_session(
            BuiltinModeId.INPUT_METHOD, name="Voice input"
        )
        if session_id is None:
            raise RuntimeError(self._sessions.last_error or "Could not create session")

        if not await self._sessions.start_session(session_id):
            error = self._sessions.last_error or "Could not start recording"
            await self._sessions.delete_session(session_id)
            raise RuntimeError(error)

        self._input_session_id = session_id

    async def _close_input_session(self) -> None:
        session_id, self._input_session_id = self._input_session_id, None
        if session_id is None:
            return
        await self._sessions.stop_session(session_id)
        await self._sessions.delete_session(session_id)

    def _on_primary_changed(self, previous_id: Optional[str], mode_id: str) -> None:
        self._tray.set_current_mode(mode_id)
        try:
            set_last_mode(self._state_store, mode_id)
        except OSError as e:
            logger.warning(f"Could not remember last mode: {e}")

    def _on_overlays_changed(self, mode_ids: List[str]) -> None:
        self._tray.set_active_overlays(mode_ids)

    def _on_mode_error(self, error: ModeError) -> None:
        self._tray.show_message(__app_name__, str(error), error=True)
        self._tray.set_current_mode(self._orchestrator.current_primary_mode_id)
        self._tray.set_active_overlays(list(self._orchestrator.active_overlay_ids))

    def _on_primary_mode_requested(self, mode_id: str) -> None:
        current = self._orchestrator.current_primary_mode_id
        if mode_id != current and current is not None:
            blocking = [
                s for s in self._tracker.sessions_for_mode(current) if s.state.is_active
            ]
            if blocking:
                self._tray.show_message(
                    __app_name__, "Stop the current recording before switching modes"
                )
                self._tray.set_current_mode(current)
                return
        self._spawn(self._orchestrator.switch_primary_mode(mode_id))

    def _on_overlay_toggle_requested(self, mode_id: str) -> None:
        self._spawn(self._orchestrator.toggle_overlay(mode_id))

    def _refresh_session_display(self) -> None:
        session = self._tracker.recording_session or self._tracker.current_session
        if session is None:
            self._tray.set_session_text("No session")
        else:
            mode = self._registry.get(session.mode_id)
            label = session.title or (mode.name if mode else session.mode_id)
            self._tray.set_session_text(f"{label} {format_duration_ms(session.duration_ms)}")

        if self._tracker.has_recording_session:
            self._tray.set_status(TrayStatus.RECORDING)
            if not self._tick_timer.isActive():
                self._tick_timer.start()
        else:
            self._tick_timer.stop()
            if self._tracker.has_paused_session:
                self._tray.set_status(TrayStatus.PAUSED)
            else:
                self._tray.set_status(TrayStatus.IDLE)

    def _spawn(self, coro: Coroutine) -> None:
        if self._loop is None:
            self._loop = asyncio.get_event_loop()
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background task failed: {error}", exc_info=error)

    async def _restore_last_mode(self) -> None:
        last_mode = get_last_mode(self._state_store)
        if last_mode is None:
            return
        if not self._registry.has(last_mode):
            logger.warning(f"Last used mode {last_mode} is no longer available")
            set_last_mode(self._state_store, None)
            return
        logger.info(f"Restoring last used mode: {last_mode}")
        await self._orchestrator.switch_primary_mode(last_mode)

    def _quit(self) -> None:
        self._spawn(self._shutdown())

    async def _shutdown(self) -> None:
        logger.info("Shutting down application")
        self._hotkeys.stop()
        self._tick_timer.stop()

        await self._orchestrator.shutdown()
        for session in self._tracker.sessions:
            if session.state in (SessionState.RECORDING, SessionState.PAUSED):
                await self._sessions.stop_session(session.id)

        self._tray.hide()
        logger.info("Application shutdown complete")
        shutdown_logging()
        QApplication.quit()

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        logger.info(f"Starting {__app_name__} v{__version__}")
        logger.info(
            f"Settings: language={self._settings.language}, theme={self._settings.theme}"
        )

        self._tray.set_modes(
            self._orchestrator.available_primary_modes,
            self._orchestrator.available_overlay_modes,
        )
        self._tray.show()

        await self._restore_last_mode()

        for mode_id, shortcut in self._hotkeys.bindings.items():
            logger.info(f"Starting hotkey listener: {shortcut.to_display_string()} -> {mode_id}")
        self._hotkeys.start()

        logger.info("Application initialization complete")


def main():
    app = QApplication(sys.argv)
    app.setApplicationName(__app_name__)
    app.setQuitOnLastWindowClosed(False)
    signal.signal(signal.SIGINT, lambda *args: QApplication.quit())

    lazy_app = LazyAudioApp()
    QtAsyncio.run(lazy_app.run(), keep_running=True, quit_qapp=True)


if __name__ == "__main__":
    main()
