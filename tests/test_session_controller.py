"""Tests for SessionController."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lazyaudio.core.errors import SessionBackendError
from lazyaudio.core.modes import ModeHooks
from lazyaudio.core.sessions import (
    BackendSessionInfo,
    LocalSessionBackend,
    SessionConfig,
    SessionController,
    SessionInfo,
    SessionState,
    SessionTracker,
)


@pytest.fixture
def tracker():
    return SessionTracker()


@pytest.fixture
def controller(tracker, registry):
    return SessionController(tracker, LocalSessionBackend(), registry, hook_timeout=1.0)


def failing_backend(**overrides):
    backend = MagicMock()
    backend.create = AsyncMock(return_value="s1")
    for name in ("start", "pause", "resume", "stop", "delete"):
        setattr(backend, name, AsyncMock())
    backend.list_active = AsyncMock(return_value=[])
    backend.duration_ms.return_value = 0
    for name, error in overrides.items():
        getattr(backend, name).side_effect = error
    return backend


class TestCreateSession:
    @pytest.mark.asyncio
    async def test_create_tracks_session(self, controller, tracker):
        session_id = await controller.create_session("meeting", name="Standup")

        assert session_id is not None
        session = tracker.get(session_id)
        assert session.mode_id == "meeting"
        assert session.state == SessionState.CREATED
        assert session.title == "Standup"
        assert session.start_time_ms > 0
        assert tracker.current_session_id == session_id

    @pytest.mark.asyncio
    async def test_create_unknown_mode(self, controller, tracker):
        assert await controller.create_session("missing") is None
        assert "does not exist" in controller.last_error
        assert tracker.sessions == []

    @pytest.mark.asyncio
    async def test_config_derived_from_capabilities(self, tracker, registry):
        backend = failing_backend()
        controller = SessionController(tracker, backend, registry)

        await controller.create_session("meeting")

        config = backend.create.await_args.args[0]
        assert config.mode_id == "meeting"
        assert config.use_microphone is True
        assert config.use_system_audio is True

    @pytest.mark.asyncio
    async def test_explicit_config_passed_through(self, tracker, registry):
        backend = failing_backend()
        controller = SessionController(tracker, backend, registry)
        config = SessionConfig(mode_id="meeting", use_microphone=False)

        await controller.create_session("meeting", config=config)

        assert backend.create.await_args.args[0] is config

    @pytest.mark.asyncio
    async def test_backend_failure(self, tracker, registry):
        backend = failing_backend(create=SessionBackendError("disk full"))
        controller = SessionController(tracker, backend, registry)

        assert await controller.create_session("meeting") is None
        assert "disk full" in controller.last_error
        assert controller.is_loading is False
        assert tracker.sessions == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_pause_resume_stop(self, controller, tracker, registry):
        session_id = await controller.create_session("meeting")
        hooks = registry.get("meeting").hooks

        assert await controller.start_session(session_id)
        assert tracker.get(session_id).state == SessionState.RECORDING
        hooks.on_session_start.assert_awaited_once_with(session_id)

        assert await controller.pause_session(session_id)
        assert tracker.get(session_id).state == SessionState.PAUSED

        assert await controller.resume_session(session_id)
        assert tracker.get(session_id).state == SessionState.RECORDING

        assert await controller.stop_session(session_id)
        assert tracker.get(session_id).state == SessionState.COMPLETED
        hooks.on_session_end.assert_awaited_once_with(session_id)
        assert controller.last_error is None

    @pytest.mark.asyncio
    async def test_invalid_transition_rejected(self, controller, tracker):
        session_id = await controller.create_session("meeting")

        assert not await controller.pause_session(session_id)
        assert "cannot move" in controller.last_error
        assert tracker.get(session_id).state == SessionState.CREATED

    @pytest.mark.asyncio
    async def test_unknown_session(self, controller):
        assert not await controller.start_session("ghost")
        assert "does not exist" in controller.last_error

    @pytest.mark.asyncio
    async def test_backend_failure_keeps_state(self, tracker, registry):
        backend = failing_backend(start=SessionBackendError("device busy"))
        controller = SessionController(tracker, backend, registry)
        session_id = await controller.create_session("meeting")

        assert not await controller.start_session(session_id)
        assert "device busy" in controller.last_error
        assert tracker.get(session_id).state == SessionState.CREATED
        registry.get("meeting").hooks.on_session_start.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_session_hook_failure_is_ignored(self, tracker, registry, make_mode):
        registry.register(
            make_mode(
                "interviewer",
                hooks=ModeHooks(on_session_start=AsyncMock(side_effect=RuntimeError("ai down"))),
            )
        )
        controller = SessionController(tracker, LocalSessionBackend(), registry)
        session_id = await controller.create_session("interviewer")

        assert await controller.start_session(session_id)
        assert tracker.get(session_id).state == SessionState.RECORDING


class TestDeleteSession:
    @pytest.mark.asyncio
    async def test_delete_completed(self, controller, tracker):
        session_id = await controller.create_session("meeting")
        await controller.start_session(session_id)
        await controller.stop_session(session_id)

        assert await controller.delete_session(session_id)
        assert tracker.get(session_id) is None
        assert tracker.current_session_id is None

    @pytest.mark.asyncio
    async def test_delete_active_rejected(self, controller, tracker):
        session_id = await controller.create_session("meeting")
        await controller.start_session(session_id)

        assert not await controller.delete_session(session_id)
        assert tracker.get(session_id) is not None

    @pytest.mark.asyncio
    async def test_delete_backend_failure(self, tracker, registry):
        backend = failing_backend(delete=SessionBackendError("locked"))
        controller = SessionController(tracker, backend, registry)
        session_id = await controller.create_session("meeting")

        assert not await controller.delete_session(session_id)
        assert tracker.get(session_id) is not None


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_rebuilds_tracker(self, tracker, registry):
        backend = failing_backend()
        backend.list_active.return_value = [
            BackendSessionInfo(
                id="a",
                mode_id="meeting",
                status="RECORDING",
                created_at="2024-01-01T00:00:00+00:00",
                duration_ms=1500,
                name="Weekly",
            ),
            BackendSessionInfo(
                id="b",
                mode_id="interviewer",
                status="paused",
                created_at="not a date",
                duration_ms=0,
            ),
        ]
        tracker.add_session(SessionInfo(id="stale", mode_id="meeting"))
        tracker.add_session(SessionInfo(id="b", mode_id="interviewer"))
        tracker.set_current_session("b")
        controller = SessionController(tracker, backend, registry)

        await controller.refresh_active_sessions()

        assert [s.id for s in tracker.sessions] == ["a", "b"]
        assert tracker.get("a").state == SessionState.RECORDING
        assert tracker.get("a").start_time_ms == 1704067200000
        assert tracker.get("a").title == "Weekly"
        assert tracker.get("b").state == SessionState.PAUSED
        assert tracker.get("b").start_time_ms == 0
        assert tracker.current_session_id == "b"

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_tracker(self, tracker, registry):
        backend = failing_backend(list_active=SessionBackendError("offline"))
        tracker.add_session(SessionInfo(id="s1", mode_id="meeting"))
        controller = SessionController(tracker, backend, registry)

        await controller.refresh_active_sessions()

        assert [s.id for s in tracker.sessions] == ["s1"]


class TestDurations:
    def test_tick_updates_recording_sessions_only(self, tracker, registry):
        backend = failing_backend()
        backend.duration_ms.return_value = 3000
        tracker.add_session(SessionInfo(id="rec", mode_id="meeting", state=SessionState.RECORDING))
        tracker.add_session(
            SessionInfo(id="pause", mode_id="meeting", state=SessionState.PAUSED, duration_ms=100)
        )
        controller = SessionController(tracker, backend, registry)

        controller.tick_durations()

        assert tracker.get("rec").duration_ms == 3000
        assert tracker.get("pause").duration_ms == 100

    def test_tick_keeps_duration_on_error(self, tracker, registry):
        backend = failing_backend()
        backend.duration_ms.side_effect = SessionBackendError("gone")
        tracker.add_session(
            SessionInfo(id="rec", mode_id="meeting", state=SessionState.RECORDING, duration_ms=900)
        )
        controller = SessionController(tracker, backend, registry)

        controller.tick_durations()

        assert tracker.get("rec").duration_ms == 900
