from .hotkey import GlobalHotkeyDispatcher, Shortcut

__all__ = ["GlobalHotkeyDispatcher", "Shortcut"]
