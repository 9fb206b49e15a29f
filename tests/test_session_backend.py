"""
Tests for LocalSessionBackend.

The recorder is mocked to avoid requiring audio hardware.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

from lazyaudio.core.errors import SessionBackendError, SessionNotFoundError
from lazyaudio.core.sessions import LocalSessionBackend, SessionConfig


@pytest.fixture
def recorder():
    recorder = MagicMock()

    def start(sink):
        sink(np.zeros((1600, 1), dtype=np.float32))
        return True

    recorder.start.side_effect = start
    recorder.last_error = None
    return recorder


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_full_lifecycle(self):
        backend = LocalSessionBackend()
        session_id = await backend.create(SessionConfig(mode_id="meeting", name="Weekly"))

        await backend.start(session_id)
        await backend.pause(session_id)
        await backend.resume(session_id)
        await backend.stop(session_id)

        assert await backend.list_active() == []
        await backend.delete(session_id)
        with pytest.raises(SessionNotFoundError):
            backend.duration_ms(session_id)

    @pytest.mark.asyncio
    async def test_list_active_reports_status(self):
        backend = LocalSessionBackend()
        session_id = await backend.create(SessionConfig(mode_id="meeting", name="Weekly"))
        await backend.start(session_id)

        [info] = await backend.list_active()

        assert info.id == session_id
        assert info.mode_id == "meeting"
        assert info.status == "recording"
        assert info.name == "Weekly"
        assert info.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_wrong_state_rejected(self):
        backend = LocalSessionBackend()
        session_id = await backend.create(SessionConfig(mode_id="meeting"))

        with pytest.raises(SessionBackendError):
            await backend.pause(session_id)
        with pytest.raises(SessionBackendError):
            await backend.stop(session_id)

    @pytest.mark.asyncio
    async def test_unknown_session(self):
        backend = LocalSessionBackend()
        with pytest.raises(SessionNotFoundError):
            await backend.start("missing")

    @pytest.mark.asyncio
    async def test_delete_active_rejected(self):
        backend = LocalSessionBackend()
        session_id = await backend.create(SessionConfig(mode_id="meeting"))
        await backend.start(session_id)

        with pytest.raises(SessionBackendError):
            await backend.delete(session_id)

    @pytest.mark.asyncio
    async def test_paused_duration_is_frozen(self):
        backend = LocalSessionBackend()
        session_id = await backend.create(SessionConfig(mode_id="meeting"))
        await backend.start(session_id)
        await backend.pause(session_id)

        first = backend.duration_ms(session_id)
        assert backend.duration_ms(session_id) == first


class TestMicrophone:
    @pytest.mark.asyncio
    async def test_recording_collects_audio(self, recorder):
        backend = LocalSessionBackend(recorder)
        session_id = await backend.create(SessionConfig(mode_id="input-method"))

        await backend.start(session_id)
        await backend.stop(session_id)

        recorder.start.assert_called_once()
        recorder.stop.assert_called_once()
        audio = backend.get_audio(session_id)
        assert audio.shape == (1600, 1)

    @pytest.mark.asyncio
    async def test_audio_kept_across_pause(self, recorder):
        backend = LocalSessionBackend(recorder)
        session_id = await backend.create(SessionConfig(mode_id="meeting"))

        await backend.start(session_id)
        await backend.pause(session_id)
        await backend.resume(session_id)
        await backend.stop(session_id)

        assert backend.get_audio(session_id).shape == (3200, 1)

    @pytest.mark.asyncio
    async def test_sessions_keep_separate_audio(self, recorder):
        backend = LocalSessionBackend(recorder)
        first = await backend.create(SessionConfig(mode_id="meeting"))
        second = await backend.create(SessionConfig(mode_id="input-method"))

        await backend.start(first)
        await backend.pause(first)
        await backend.start(second)
        await backend.stop(second)

        assert backend.get_audio(first).shape == (1600, 1)
        assert backend.get_audio(second).shape == (1600, 1)

    @pytest.mark.asyncio
    async def test_microphone_held_by_one_session(self, recorder):
        backend = LocalSessionBackend(recorder)
        first = await backend.create(SessionConfig(mode_id="meeting"))
        second = await backend.create(SessionConfig(mode_id="input-method"))
        await backend.start(first)

        with pytest.raises(SessionBackendError, match="in use"):
            await backend.start(second)

        await backend.pause(first)
        await backend.start(second)

    @pytest.mark.asyncio
    async def test_session_without_microphone_skips_recorder(self, recorder):
        backend = LocalSessionBackend(recorder)
        session_id = await backend.create(
            SessionConfig(mode_id="interviewee", use_microphone=False, use_system_audio=True)
        )

        await backend.start(session_id)

        recorder.start.assert_not_called()
        assert backend.get_audio(session_id) is None

    @pytest.mark.asyncio
    async def test_recorder_failure_raises(self, recorder):
        recorder.start.side_effect = None
        recorder.start.return_value = False
        recorder.last_error = "Audio device error: busy"
        backend = LocalSessionBackend(recorder)
        session_id = await backend.create(SessionConfig(mode_id="meeting"))

        with pytest.raises(SessionBackendError, match="busy"):
            await backend.start(session_id)

        [info] = await backend.list_active()
        assert info.status == "created"
