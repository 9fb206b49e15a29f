"""
Catalog of mode definitions.

The registry is plain storage: it never drives transitions. Whoever
tracks active modes can install an unregister guard so an active mode
cannot be removed out from under it.
"""

import dataclasses
from typing import Callable, Dict, List, Optional

from ...utils.logger import get_logger
from ..errors import ModeActiveError, ModeNotFoundError
from .types import ModeDefinition, ModeType

logger = get_logger(__name__)


class ModeRegistry:

    def __init__(self):
        self._modes: Dict[str, ModeDefinition] = {}
        self._unregister_guards: List[Callable[[str], bool]] = []

    def register(self, mode: ModeDefinition) -> None:
        if mode.id in self._modes:
            logger.warning(f'Mode "{mode.id}" already registered, overwriting')
        self._modes[mode.id] = mode
        logger.info(f"Registered mode: {mode.id}")

    def unregister(self, mode_id: str) -> None:
        """
        Remove a mode from the catalog. Unknown ids are ignored.

        Raises:
            ModeActiveError: If an installed guard reports the mode as active.
        """
        if mode_id not in self._modes:
            return
        if any(guard(mode_id) for guard in self._unregister_guards):
            raise ModeActiveError(mode_id)
        del self._modes[mode_id]
        logger.info(f"Unregistered mode: {mode_id}")

    def add_unregister_guard(self, guard: Callable[[str], bool]) -> None:
        self._unregister_guards.append(guard)

    def get(self, mode_id: str) -> Optional[ModeDefinition]:
        return self._modes.get(mode_id)

    def has(self, mode_id: str) -> bool:
        return mode_id in self._modes

    def list(self) -> List[ModeDefinition]:
        return list(self._modes.values())

    def list_by_type(self, mode_type: ModeType) -> List[ModeDefinition]:
        return [mode for mode in self._modes.values() if mode.type == mode_type]

    def list_primary_modes(self) -> List[ModeDefinition]:
        return self.list_by_type(ModeType.PRIMARY)

    def list_overlay_modes(self) -> List[ModeDefinition]:
        return self.list_by_type(ModeType.OVERLAY)

    def set_enabled(self, mode_id: str, enabled: bool) -> ModeDefinition:
        mode = self._modes.get(mode_id)
        if mode is None:
            raise ModeNotFoundError(mode_id)
        if mode.enabled != enabled:
            mode = dataclasses.replace(mode, enabled=enabled)
            self._modes[mode_id] = mode
            logger.info(f"Mode {mode_id} {'enabled' if enabled else 'disabled'}")
        return mode

    def find_by_shortcut(self, shortcut: str) -> Optional[ModeDefinition]:
        wanted = shortcut.replace(" ", "").lower()
        for mode in self._modes.values():
            if mode.shortcut and mode.shortcut.replace(" ", "").lower() == wanted:
                return mode
        return None

    def __contains__(self, mode_id: object) -> bool:
        return mode_id in self._modes

    def __len__(self) -> int:
        return len(self._modes)
