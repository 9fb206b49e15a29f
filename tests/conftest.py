"""
Shared fixtures for mode and session tests.

Hooks are AsyncMocks so tests can assert on awaited calls.
"""
from unittest.mock import AsyncMock

import pytest

from lazyaudio.core.modes import (
    ModeCapabilities,
    ModeDefinition,
    ModeHooks,
    ModeRegistry,
    ModeType,
)


def _make_mode(mode_id, mode_type=ModeType.PRIMARY, hooks=None, **kwargs):
    if hooks is None:
        hooks = ModeHooks(
            on_activate=AsyncMock(),
            on_deactivate=AsyncMock(),
            on_session_start=AsyncMock(),
            on_session_end=AsyncMock(),
        )
    return ModeDefinition(
        id=mode_id,
        name=mode_id.replace("-", " ").title(),
        type=mode_type,
        hooks=hooks,
        **kwargs,
    )


@pytest.fixture
def make_mode():
    """Factory for mode definitions with AsyncMock hooks."""
    return _make_mode


@pytest.fixture
def registry():
    """Registry with two primary modes and two overlay modes."""
    registry = ModeRegistry()
    registry.register(
        _make_mode("meeting", capabilities=ModeCapabilities(system_audio=True, microphone=True))
    )
    registry.register(_make_mode("interviewer"))
    registry.register(
        _make_mode(
            "input-method",
            ModeType.OVERLAY,
            shortcut="Ctrl+Shift+Space",
            capabilities=ModeCapabilities(microphone=True),
        )
    )
    registry.register(_make_mode("notes", ModeType.OVERLAY))
    return registry
