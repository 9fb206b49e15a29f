from .settings import Settings, ThemeMode, get_config_dir, get_data_dir, get_settings
from .state_store import LAST_MODE_KEY, StateStore, get_last_mode, set_last_mode

__all__ = [
    "LAST_MODE_KEY",
    "Settings",
    "StateStore",
    "ThemeMode",
    "get_config_dir",
    "get_data_dir",
    "get_last_mode",
    "get_settings",
    "set_last_mode",
]
