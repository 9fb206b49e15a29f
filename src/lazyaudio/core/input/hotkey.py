"""
Global shortcut dispatcher for overlay modes.

Shortcuts use the accelerator syntax of the desktop shell
(``CommandOrControl+Shift+Space``). Uses pynput for key capture.
"""

import sys
from dataclasses import dataclass
from typing import AbstractSet, Dict, FrozenSet, Mapping, Optional, Set

from PySide6.QtCore import QObject, Signal

from ...utils.logger import get_logger
from ..modes.registry import ModeRegistry

logger = get_logger(__name__)

_MODIFIER_ALIASES = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "cmd": "cmd",
    "command": "cmd",
    "meta": "cmd",
    "super": "cmd",
}


@dataclass(frozen=True)
class Shortcut:
    modifiers: FrozenSet[str]
    key: str

    @classmethod
    def parse(cls, accelerator: str, platform: Optional[str] = None) -> "Shortcut":
        """
        Parse an accelerator string.

        ``CommandOrControl`` resolves to cmd on macOS and ctrl elsewhere.

        Raises:
            ValueError: If the string has no key or an unknown modifier.
        """
        platform = platform or sys.platform
        parts = [p.strip().lower() for p in accelerator.split("+") if p.strip()]
        if not parts:
            raise ValueError(f"Empty shortcut: {accelerator!r}")

        *modifier_parts, key = parts
        modifiers: Set[str] = set()
        for part in modifier_parts:
            if part in ("commandorcontrol", "cmdorctrl"):
                modifiers.add("cmd" if platform == "darwin" else "ctrl")
            elif part in _MODIFIER_ALIASES:
                modifiers.add(_MODIFIER_ALIASES[part])
            else:
                raise ValueError(f"Unknown modifier {part!r} in {accelerator!r}")

        if key in _MODIFIER_ALIASES:
            raise ValueError(f"Shortcut {accelerator!r} has no trigger key")

        return cls(frozenset(modifiers), key)

    def matches(self, pressed: AbstractSet[str]) -> bool:
        return self.key in pressed and self.modifiers <= pressed

    def to_display_string(self) -> str:
        order = ["ctrl", "cmd", "alt", "shift"]
        parts = [m.capitalize() for m in order if m in self.modifiers]
        parts.append(self.key.capitalize())
        return " + ".join(parts)


class GlobalHotkeyDispatcher(QObject):
    """
    Maps global key combinations to overlay mode ids.

    Key state from the listener thread arrives through ``keys_changed``, a
    queued connection, so bindings and fired state are only touched on the
    thread that owns the dispatcher.

    Signals:
        shortcut_triggered: Emitted with the mode id when its shortcut is pressed
        keys_changed: Emitted by the key listener with the currently held keys
    """

    shortcut_triggered = Signal(str)
    keys_changed = Signal(object)

    def __init__(
        self,
        registry: ModeRegistry,
        overrides: Optional[Mapping[str, str]] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self._registry = registry
        self._bindings: Dict[str, Shortcut] = {}
        self._fired: Set[str] = set()
        self._impl: Optional[_PynputKeyboardImpl] = None
        self.keys_changed.connect(self.handle_pressed)
        self.rebind(overrides)

    @property
    def bindings(self) -> Dict[str, Shortcut]:
        return dict(self._bindings)

    def rebind(self, overrides: Optional[Mapping[str, str]] = None) -> None:
        """Rebuild bindings from the enabled overlay modes in the registry."""
        overrides = overrides or {}
        bindings: Dict[str, Shortcut] = {}
        for mode in self._registry.list_overlay_modes():
            accelerator = overrides.get(mode.id) or mode.shortcut
            if not accelerator or not mode.enabled:
                continue
            try:
                bindings[mode.id] = Shortcut.parse(accelerator)
            except ValueError as e:
                logger.warning(f"Ignoring shortcut for {mode.id}: {e}")
                continue
            logger.info(f"Bound {bindings[mode.id].to_display_string()} -> {mode.id}")
        self._bindings = bindings
        self._fired.clear()

    def handle_pressed(self, pressed: AbstractSet[str]) -> None:
        """Emit for every binding that just became satisfied."""
        for mode_id, shortcut in self._bindings.items():
            if shortcut.matches(pressed):
                if mode_id not in self._fired:
                    self._fired.add(mode_id)
                    logger.debug(f"Shortcut for {mode_id} triggered")
                    self.shortcut_triggered.emit(mode_id)
            else:
                self._fired.discard(mode_id)

    def start(self) -> None:
        if self._impl is None:
            self._impl = _PynputKeyboardImpl(self)
        self._impl.start()

    def stop(self) -> None:
        if self._impl is not None:
            self._impl.stop()


class _PynputKeyboardImpl:
    """
    Pynput-based key tracking. Runs on the pynput listener thread and only
    publishes the held keys through the dispatcher's ``keys_changed`` signal.
    """

    def __init__(self, dispatcher: GlobalHotkeyDispatcher):
        self._dispatcher = dispatcher
        self._keyboard_listener = None
        self._pressed: Set[str] = set()

    @staticmethod
    def _key_name(key) -> Optional[str]:
        from pynput import keyboard

        if isinstance(key, keyboard.KeyCode):
            return key.char.lower() if key.char else None

        name = getattr(key, "name", None)
        if not name:
            return None
        for suffix in ("_l", "_r", "_gr"):
            if name.endswith(suffix):
                name = name[: -len(suffix)]
        return _MODIFIER_ALIASES.get(name, name)

    def _on_press(self, key) -> None:
        name = self._key_name(key)
        if name is None:
            return
        self._pressed.add(name)
        self._dispatcher.keys_changed.emit(frozenset(self._pressed))

    def _on_release(self, key) -> None:
        name = self._key_name(key)
        if name is None:
            return
        self._pressed.discard(name)
        self._dispatcher.keys_changed.emit(frozenset(self._pressed))

    def start(self) -> None:
        from pynput import keyboard

        self._keyboard_listener = keyboard.Listener(
            on_press=self._on_press, on_release=self._on_release
        )
        self._keyboard_listener.start()

        if hasattr(self._keyboard_listener, "IS_TRUSTED"):
            logger.info(
                f"Keyboard listener IS_TRUSTED: {self._keyboard_listener.IS_TRUSTED}"
            )
            if not self._keyboard_listener.IS_TRUSTED:
                logger.warning(
                    "Hotkey listener is NOT TRUSTED. Accessibility permissions not granted."
                )

    def stop(self) -> None:
        if self._keyboard_listener:
            self._keyboard_listener.stop()
            self._keyboard_listener = None
        self._pressed.clear()
