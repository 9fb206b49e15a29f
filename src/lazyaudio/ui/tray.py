"""
System tray icon and menu using PySide6.

Shows the recording status, lets the user pick the primary mode and
toggle overlay modes, and pops transient notifications.
"""

from enum import Enum, auto
from typing import Dict, Iterable, List, Optional

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QIcon, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QMenu, QSystemTrayIcon

from ..core.modes.types import ModeDefinition


class TrayStatus(Enum):
    """Status indicators for the tray icon."""
    IDLE = auto()        # No session recording
    RECORDING = auto()   # A session is recording
    PAUSED = auto()      # A session is paused
    ERROR = auto()       # Last operation failed


class SystemTray(QObject):
    """
    System tray icon with mode menus.

    Signals:
        primary_mode_requested: Emitted with a mode id when a primary mode is picked
        overlay_toggle_requested: Emitted with a mode id when an overlay is toggled
        quit_requested: Emitted when user clicks "Quit"
    """

    primary_mode_requested = Signal(str)
    overlay_toggle_requested = Signal(str)
    quit_requested = Signal()

    def __init__(self, app_name: str, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._app_name = app_name
        self._status = TrayStatus.IDLE
        self._primary_actions: Dict[str, QAction] = {}
        self._overlay_actions: Dict[str, QAction] = {}

        self._tray_icon = QSystemTrayIcon(self)
        self._menu = QMenu()

        self._status_action = QAction("Ready", self._menu)
        self._status_action.setEnabled(False)
        self._menu.addAction(self._status_action)

        self._session_action = QAction("No session", self._menu)
        self._session_action.setEnabled(False)
        self._menu.addAction(self._session_action)

        self._menu.addSeparator()
        self._modes_menu = self._menu.addMenu("Mode")
        self._primary_group = QActionGroup(self._modes_menu)
        self._primary_group.setExclusive(True)
        self._overlays_menu = self._menu.addMenu("Overlays")

        self._menu.addSeparator()
        quit_action = QAction("Quit", self._menu)
        quit_action.triggered.connect(self.quit_requested.emit)
        self._menu.addAction(quit_action)

        self._tray_icon.setContextMenu(self._menu)
        self._update_icon()

    def show(self) -> None:
        self._tray_icon.show()

    def hide(self) -> None:
        self._tray_icon.hide()

    def set_modes(
        self, primary_modes: Iterable[ModeDefinition], overlay_modes: Iterable[ModeDefinition]
    ) -> None:
        """Rebuild the mode menus."""
        self._modes_menu.clear()
        self._overlays_menu.clear()
        for action in self._primary_group.actions():
            self._primary_group.removeAction(action)
        self._primary_actions.clear()
        self._overlay_actions.clear()

        for mode in primary_modes:
            action = QAction(f"{mode.icon} {mode.name}".strip(), self._modes_menu)
            action.setCheckable(True)
            action.setToolTip(mode.description)
            action.triggered.connect(
                lambda _checked=False, mode_id=mode.id: self.primary_mode_requested.emit(mode_id)
            )
            self._primary_group.addAction(action)
            self._modes_menu.addAction(action)
            self._primary_actions[mode.id] = action

        for mode in overlay_modes:
            label = f"{mode.icon} {mode.name}".strip()
            if mode.shortcut:
                label = f"{label}\t{mode.shortcut}"
            action = QAction(label, self._overlays_menu)
            action.setCheckable(True)
            action.setEnabled(mode.enabled)
            action.triggered.connect(
                lambda _checked=False, mode_id=mode.id: self.overlay_toggle_requested.emit(mode_id)
            )
            self._overlays_menu.addAction(action)
            self._overlay_actions[mode.id] = action

    def set_current_mode(self, mode_id: Optional[str]) -> None:
        for action_id, action in self._primary_actions.items():
            action.setChecked(action_id == mode_id)

    def set_active_overlays(self, mode_ids: List[str]) -> None:
        for action_id, action in self._overlay_actions.items():
            action.setChecked(action_id in mode_ids)

    def set_session_text(self, text: str) -> None:
        self._session_action.setText(text)

    def set_status(self, status: TrayStatus, message: str = "") -> None:
        """Update the tray status and icon."""
        self._status = status
        self._update_icon()

        status_texts = {
            TrayStatus.IDLE: "Ready",
            TrayStatus.RECORDING: "🔴 Recording...",
            TrayStatus.PAUSED: "⏸ Paused",
            TrayStatus.ERROR: f"Error: {message}",
        }
        self._status_action.setText(status_texts.get(status, "Unknown"))

    def show_message(self, title: str, message: str, error: bool = False) -> None:
        icon = QSystemTrayIcon.Warning if error else QSystemTrayIcon.Information
        self._tray_icon.showMessage(title, message, icon, 4000)

    def _update_icon(self) -> None:
        """Update the tray icon based on current status."""
        status_colors: Dict[TrayStatus, QColor] = {
            TrayStatus.IDLE: QColor("#4CAF50"),       # Green
            TrayStatus.RECORDING: QColor("#F44336"),  # Red
            TrayStatus.PAUSED: QColor("#FF9800"),     # Orange
            TrayStatus.ERROR: QColor("#F44336"),      # Red
        }

        status_tooltips: Dict[TrayStatus, str] = {
            TrayStatus.IDLE: f"{self._app_name} - Ready",
            TrayStatus.RECORDING: f"{self._app_name} - Recording",
            TrayStatus.PAUSED: f"{self._app_name} - Paused",
            TrayStatus.ERROR: f"{self._app_name} - Error",
        }

        size = 22
        pixmap = QPixmap(size, size)
        pixmap.fill(Qt.transparent)

        painter = QPainter(pixmap)
        painter.setRenderHint(QPainter.Antialiasing)

        color = status_colors.get(self._status, QColor("#808080"))
        painter.setBrush(QBrush(color))
        painter.setPen(QPen(color.darker(120), 1))

        margin = 2
        painter.drawEllipse(margin, margin, size - 2 * margin, size - 2 * margin)

        # For error state, add an X overlay
        if self._status == TrayStatus.ERROR:
            painter.setPen(QPen(QColor("#FFFFFF"), 2))
            inner_margin = 6
            painter.drawLine(inner_margin, inner_margin, size - inner_margin, size - inner_margin)
            painter.drawLine(size - inner_margin, inner_margin, inner_margin, size - inner_margin)

        painter.end()

        self._tray_icon.setIcon(QIcon(pixmap))
        self._tray_icon.setToolTip(status_tooltips.get(self._status, self._app_name))
