"""
Settings management with JSON persistence.

Handles loading, saving, and validating application settings.
Uses platformdirs for cross-platform directory resolution.
"""

import json
from pathlib import Path
from typing import Dict, List, Literal, Optional

from platformdirs import user_config_path, user_data_path
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...utils.logger import get_logger
from .config import HOOK_TIMEOUT_SECONDS

logger = get_logger(__name__)

APP_NAME = "lazyaudio"

ThemeMode = Literal["light", "dark", "system"]


def get_config_dir() -> Path:
    return user_config_path(APP_NAME, ensure_exists=True)


def get_data_dir() -> Path:
    return user_data_path(APP_NAME, ensure_exists=True)


class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=False)

    schema_version: int = 1
    language: str = "zh-CN"
    theme: ThemeMode = "system"

    hook_timeout_seconds: float = Field(default=HOOK_TIMEOUT_SECONDS, ge=0)
    overlay_shortcuts: Dict[str, str] = Field(default_factory=dict)
    disabled_overlays: List[str] = Field(default_factory=list)

    start_minimized: bool = False
    onboarding_completed: bool = False

    @field_validator("language")
    @classmethod
    def language_not_empty(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("language must be a non-empty string")
        return v

    @field_validator("overlay_shortcuts")
    @classmethod
    def shortcuts_not_empty(cls, v):
        for mode_id, shortcut in v.items():
            if not shortcut or not shortcut.strip():
                raise ValueError(f"shortcut for {mode_id} must be a non-empty string")
        return v

    @property
    def hook_timeout(self) -> Optional[float]:
        return self.hook_timeout_seconds or None

    @classmethod
    def load(cls) -> "Settings":
        config_file = get_config_dir() / "settings.json"

        if not config_file.exists():
            return cls()

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise TypeError("settings file must contain a JSON object")

            # Filter to valid keys only
            valid_keys = cls.model_fields.keys()
            filtered_data = {k: v for k, v in data.items() if k in valid_keys}

            return cls._load_with_fallbacks(filtered_data)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Could not load settings: {e}. Using defaults.", exc_info=True)
            return cls()

    @classmethod
    def _load_with_fallbacks(cls, data: dict) -> "Settings":
        """Load settings with field-level fallback to defaults on validation errors."""
        defaults = cls()
        result_data = {}

        for field_name in cls.model_fields:
            if field_name in data:
                try:
                    validated = cls.model_validate(
                        {**defaults.model_dump(), field_name: data[field_name]}
                    )
                    result_data[field_name] = getattr(validated, field_name)
                except Exception:
                    default_val = getattr(defaults, field_name)
                    logger.warning(
                        f"Invalid {field_name} {data[field_name]!r}, resetting to {default_val}"
                    )
                    result_data[field_name] = default_val
            else:
                result_data[field_name] = getattr(defaults, field_name)

        return cls.model_construct(**result_data)

    def save(self) -> None:
        config_file = get_config_dir() / "settings.json"

        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)

    def reset_to_defaults(self) -> None:
        default = Settings()
        for key, value in default.model_dump().items():
            setattr(self, key, value)


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.load()
    return _settings_instance
