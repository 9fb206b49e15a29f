"""
Tests for shortcut parsing and the global hotkey dispatcher.

Key presses are fed to the dispatcher directly; pynput is not started.
"""

from unittest.mock import patch

import pytest

from lazyaudio.core.input import GlobalHotkeyDispatcher, Shortcut
from lazyaudio.core.input.hotkey import _PynputKeyboardImpl
from lazyaudio.core.modes import ModeType


class TestShortcut:
    def test_parse_simple(self):
        shortcut = Shortcut.parse("Ctrl+Shift+A")
        assert shortcut.modifiers == frozenset({"ctrl", "shift"})
        assert shortcut.key == "a"

    @pytest.mark.parametrize(
        "platform,expected",
        [("darwin", "cmd"), ("win32", "ctrl"), ("linux", "ctrl")],
    )
    def test_command_or_control(self, platform, expected):
        shortcut = Shortcut.parse("CommandOrControl+Shift+Space", platform=platform)
        assert shortcut.modifiers == frozenset({expected, "shift"})
        assert shortcut.key == "space"

    def test_aliases(self):
        shortcut = Shortcut.parse("Option + Control + K")
        assert shortcut.modifiers == frozenset({"alt", "ctrl"})

    @pytest.mark.parametrize("accelerator", ["", "+", "Hyper+A", "Ctrl+Shift"])
    def test_invalid(self, accelerator):
        with pytest.raises(ValueError):
            Shortcut.parse(accelerator)

    def test_matches(self):
        shortcut = Shortcut.parse("Ctrl+Space", platform="linux")
        assert shortcut.matches({"ctrl", "space"})
        assert shortcut.matches({"ctrl", "shift", "space"})
        assert not shortcut.matches({"space"})
        assert not shortcut.matches({"ctrl"})

    def test_display_string(self):
        shortcut = Shortcut.parse("Shift+Ctrl+Space", platform="linux")
        assert shortcut.to_display_string() == "Ctrl + Shift + Space"


class TestGlobalHotkeyDispatcher:
    def test_bindings_from_overlay_modes(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry)

        assert list(dispatcher.bindings) == ["input-method"]
        assert dispatcher.bindings["input-method"].key == "space"

    def test_overrides(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry, overrides={"notes": "Alt+N"})

        assert set(dispatcher.bindings) == {"input-method", "notes"}
        assert dispatcher.bindings["notes"] == Shortcut(frozenset({"alt"}), "n")

    def test_invalid_override_skipped(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry, overrides={"input-method": "Hyper+X"})
        assert dispatcher.bindings == {}

    def test_disabled_overlay_not_bound(self, registry):
        registry.set_enabled("input-method", False)
        dispatcher = GlobalHotkeyDispatcher(registry)
        assert dispatcher.bindings == {}

    def test_primary_modes_never_bound(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry, overrides={"meeting": "Alt+M"})
        assert "meeting" not in dispatcher.bindings
        assert registry.get("meeting").type == ModeType.PRIMARY

    def test_pressed_emits_once_per_press(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry)
        triggered = []

        def on_triggered(mode_id):
            triggered.append(mode_id)

        dispatcher.shortcut_triggered.connect(on_triggered)

        dispatcher.handle_pressed({"ctrl"})
        dispatcher.handle_pressed({"ctrl", "shift"})
        dispatcher.handle_pressed({"ctrl", "shift", "space"})
        dispatcher.handle_pressed({"ctrl", "shift", "space"})
        assert triggered == ["input-method"]

        dispatcher.handle_pressed({"ctrl", "shift"})
        dispatcher.handle_pressed({"ctrl", "shift", "space"})
        assert triggered == ["input-method", "input-method"]

    def test_rebind_resets_bindings(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry)
        registry.set_enabled("input-method", False)

        dispatcher.rebind()

        assert dispatcher.bindings == {}

    def test_key_state_delivered_through_signal(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry)
        triggered = []
        dispatcher.shortcut_triggered.connect(triggered.append)

        dispatcher.keys_changed.emit(frozenset({"ctrl", "shift"}))
        dispatcher.keys_changed.emit(frozenset({"ctrl", "shift", "space"}))

        assert triggered == ["input-method"]

    def test_listener_publishes_held_keys(self, registry):
        dispatcher = GlobalHotkeyDispatcher(registry)
        published = []
        dispatcher.keys_changed.connect(published.append)
        impl = _PynputKeyboardImpl(dispatcher)

        with patch.object(_PynputKeyboardImpl, "_key_name", side_effect=lambda key: key):
            impl._on_press("ctrl")
            impl._on_press("space")
            impl._on_release("ctrl")

        assert published == [
            frozenset({"ctrl"}),
            frozenset({"ctrl", "space"}),
            frozenset({"space"}),
        ]
