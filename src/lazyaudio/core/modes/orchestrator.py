"""
Mode orchestration state machine.

Tracks the single active primary mode and the ordered list of active
overlay modes, and runs lifecycle hooks around every transition.

Hook failures are handled by two different policies:

* best-effort (primary activate/deactivate, overlay deactivate): the
  failure is logged and the transition still completes.
* guarded (overlay activate): the failure rolls the activation back and
  is reported to the caller.

All state mutations happen between awaits, so a single event loop needs
no locking. ``is_switching`` rejects overlapping primary switches.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple, Union

from ...utils.logger import get_logger
from ..errors import (
    BusyError,
    HookFailure,
    InvalidModeTypeError,
    ModeDisabledError,
    ModeError,
    ModeNotFoundError,
)
from ..settings.config import HOOK_TIMEOUT_SECONDS
from .hooks import invoke_hook
from .registry import ModeRegistry
from .types import ModeDefinition, ModeType

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModeResult:
    """Outcome of an orchestrator operation; truthy on success."""

    success: bool
    error: Optional[ModeError] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls) -> "ModeResult":
        return cls(True)

    @classmethod
    def failed(cls, error: ModeError) -> "ModeResult":
        return cls(False, error)


class ModeOrchestrator:
    """
    Drives primary mode switches and overlay activation.

    Example:
        registry = ModeRegistry()
        register_builtin_modes(registry)
        orchestrator = ModeOrchestrator(registry)
        await orchestrator.switch_primary_mode("meeting")
        await orchestrator.toggle_overlay("input-method")
    """

    def __init__(
        self,
        registry: ModeRegistry,
        hook_timeout: Optional[float] = HOOK_TIMEOUT_SECONDS,
        on_primary_changed: Optional[Callable[[Optional[str], str], None]] = None,
        on_overlays_changed: Optional[Callable[[List[str]], None]] = None,
        on_error: Optional[Callable[[ModeError], None]] = None,
    ):
        """
        Args:
            registry: Catalog used to resolve mode ids
            hook_timeout: Seconds allowed per hook; None or 0 disables the bound
            on_primary_changed: Called with (previous_id, new_id) once a switch commits
            on_overlays_changed: Called with the active overlay ids after each change
            on_error: Called with the error of every failed switch or activation
        """
        self._registry = registry
        self.hook_timeout = hook_timeout
        self.on_primary_changed = on_primary_changed
        self.on_overlays_changed = on_overlays_changed
        self.on_error = on_error

        self._current_primary_mode_id: Optional[str] = None
        self._active_overlay_ids: List[str] = []
        self._activating_overlays: Set[str] = set()
        self._deactivating_overlays: Set[str] = set()
        self._is_switching = False
        self._switch_target: Optional[str] = None

        registry.add_unregister_guard(self.is_active)

    @property
    def registry(self) -> ModeRegistry:
        return self._registry

    @property
    def current_primary_mode_id(self) -> Optional[str]:
        return self._current_primary_mode_id

    @property
    def active_overlay_ids(self) -> Tuple[str, ...]:
        return tuple(self._active_overlay_ids)

    @property
    def is_switching(self) -> bool:
        return self._is_switching

    @property
    def current_primary_mode(self) -> Optional[ModeDefinition]:
        if self._current_primary_mode_id is None:
            return None
        return self._registry.get(self._current_primary_mode_id)

    @property
    def available_primary_modes(self) -> List[ModeDefinition]:
        return self._registry.list_primary_modes()

    @property
    def available_overlay_modes(self) -> List[ModeDefinition]:
        return self._registry.list_overlay_modes()

    @property
    def active_overlays(self) -> List[ModeDefinition]:
        modes = (self._registry.get(mode_id) for mode_id in self._active_overlay_ids)
        return [mode for mode in modes if mode is not None]

    def is_active(self, mode_id: str) -> bool:
        return (
            mode_id == self._current_primary_mode_id
            or mode_id in self._active_overlay_ids
        )

    async def switch_primary_mode(self, mode_id: str) -> ModeResult:
        target = self._resolve(mode_id, ModeType.PRIMARY)
        if isinstance(target, ModeError):
            return self._reject(target)

        if self._is_switching:
            return self._reject(BusyError(mode_id, self._switch_target))

        if mode_id == self._current_primary_mode_id:
            return ModeResult.ok()

        self._is_switching = True
        self._switch_target = mode_id
        previous_id = self._current_primary_mode_id
        try:
            previous = self.current_primary_mode
            if previous is not None:
                await self._run_best_effort_hook(previous, "on_deactivate")

            self._current_primary_mode_id = mode_id
            logger.info(f"Switched primary mode: {previous_id} -> {mode_id}")
            self._notify_primary_changed(previous_id, mode_id)

            await self._run_best_effort_hook(target, "on_activate")
        finally:
            self._is_switching = False
            self._switch_target = None

        return ModeResult.ok()

    async def activate_overlay(self, mode_id: str) -> ModeResult:
        mode = self._resolve(mode_id, ModeType.OVERLAY)
        if isinstance(mode, ModeError):
            return self._reject(mode)

        if mode_id in self._active_overlay_ids:
            return ModeResult.ok()

        if not mode.enabled:
            return self._reject(ModeDisabledError(mode_id))

        if mode_id in self._activating_overlays:
            return self._reject(BusyError(mode_id, mode_id))

        self._activating_overlays.add(mode_id)
        try:
            await self._run_guarded_hook(mode, "on_activate")
        except HookFailure as e:
            logger.error(f"Overlay {mode_id} not activated: {e}")
            return self._reject(e)
        finally:
            self._activating_overlays.discard(mode_id)

        if mode_id not in self._active_overlay_ids:
            self._active_overlay_ids.append(mode_id)
            logger.info(f"Activated overlay mode: {mode_id}")
            self._notify_overlays()
        return ModeResult.ok()

    async def deactivate_overlay(self, mode_id: str) -> ModeResult:
        mode = self._resolve(mode_id, ModeType.OVERLAY)
        if isinstance(mode, ModeError):
            return self._reject(mode)

        if mode_id not in self._active_overlay_ids:
            return ModeResult.ok()

        if mode_id in self._deactivating_overlays:
            return ModeResult.ok()

        self._deactivating_overlays.add(mode_id)
        try:
            await self._run_best_effort_hook(mode, "on_deactivate")
        finally:
            self._deactivating_overlays.discard(mode_id)

        if mode_id in self._active_overlay_ids:
            self._active_overlay_ids.remove(mode_id)
            logger.info(f"Deactivated overlay mode: {mode_id}")
            self._notify_overlays()
        return ModeResult.ok()

    async def toggle_overlay(self, mode_id: str) -> ModeResult:
        if mode_id in self._active_overlay_ids:
            return await self.deactivate_overlay(mode_id)
        return await self.activate_overlay(mode_id)

    async def shutdown(self) -> None:
        """Deactivate every overlay, then the primary mode. Hook failures are logged."""
        for mode_id in list(reversed(self._active_overlay_ids)):
            await self.deactivate_overlay(mode_id)

        current = self.current_primary_mode
        if current is not None and not self._is_switching:
            await self._run_best_effort_hook(current, "on_deactivate")
            self._current_primary_mode_id = None
            logger.info(f"Primary mode {current.id} deactivated on shutdown")

    def _resolve(
        self, mode_id: str, expected: ModeType
    ) -> Union[ModeDefinition, ModeError]:
        mode = self._registry.get(mode_id)
        if mode is None:
            return ModeNotFoundError(mode_id)
        if mode.type != expected:
            return InvalidModeTypeError(mode_id, expected.value, mode.type.value)
        return mode

    def _reject(self, error: ModeError) -> ModeResult:
        if not isinstance(error, HookFailure):
            logger.error(str(error))
        if self.on_error:
            self.on_error(error)
        return ModeResult.failed(error)

    async def _run_best_effort_hook(self, mode: ModeDefinition, hook_name: str) -> bool:
        try:
            await invoke_hook(mode, hook_name, timeout=self.hook_timeout)
        except HookFailure as e:
            logger.warning(f"{e} (ignored)")
            return False
        return True

    async def _run_guarded_hook(self, mode: ModeDefinition, hook_name: str) -> None:
        await invoke_hook(mode, hook_name, timeout=self.hook_timeout)

    def _notify_primary_changed(self, previous_id: Optional[str], mode_id: str) -> None:
        if not self.on_primary_changed:
            return
        try:
            self.on_primary_changed(previous_id, mode_id)
        except Exception as e:
            logger.error(f"on_primary_changed callback failed: {e}", exc_info=True)

    def _notify_overlays(self) -> None:
        if not self.on_overlays_changed:
            return
        try:
            self.on_overlays_changed(list(self._active_overlay_ids))
        except Exception as e:
            logger.error(f"on_overlays_changed callback failed: {e}", exc_info=True)
