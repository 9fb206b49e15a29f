"""
Audio/device service consumed by modes that declare audio capabilities.

The mode core only needs to know whether a capability can be satisfied;
capture itself stays behind this interface.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Set

import numpy as np

from ...utils.logger import get_logger
from ..modes.types import ModeDefinition
from .recorder import AudioDevice, AudioRecorder

logger = get_logger(__name__)


@dataclass
class AudioSource:
    id: str
    name: str
    kind: str  # "microphone" or "system"


class AudioService(Protocol):
    def list_audio_sources(self) -> List[AudioSource]: ...

    def list_microphones(self) -> List[AudioDevice]: ...

    def start_capture(self, device: Optional[str] = None) -> bool: ...

    def stop_capture(self) -> Optional[np.ndarray]: ...


class SoundDeviceAudioService:
    """AudioService backed by sounddevice input devices."""

    def __init__(self, recorder: Optional[AudioRecorder] = None):
        self._recorder = recorder or AudioRecorder()
        self._chunks: List[np.ndarray] = []
        self._capturing = False

    @property
    def recorder(self) -> AudioRecorder:
        return self._recorder

    @property
    def is_capturing(self) -> bool:
        return self._recorder.is_recording

    @property
    def last_error(self) -> Optional[str]:
        return self._recorder.last_error

    def list_audio_sources(self) -> List[AudioSource]:
        return [
            AudioSource(
                id=str(device.index),
                name=device.name,
                kind="system" if device.is_loopback else "microphone",
            )
            for device in AudioRecorder.list_devices()
        ]

    def list_microphones(self) -> List[AudioDevice]:
        return [d for d in AudioRecorder.list_devices() if not d.is_loopback]

    def start_capture(self, device: Optional[str] = None) -> bool:
        """Capture from ``device`` (a source id or device name) into an internal buffer."""
        if device is not None:
            self._recorder.device = device
        self._chunks = []
        started = self._recorder.start(self._chunks.append)
        if not started:
            logger.error(f"Capture failed: {self._recorder.last_error}")
        self._capturing = started
        return started

    def stop_capture(self) -> Optional[np.ndarray]:
        """Stop a capture started here; a stream owned by a session is left running."""
        if not self._capturing:
            return None
        self._capturing = False
        self._recorder.stop()
        chunks, self._chunks = self._chunks, []
        if not chunks:
            return None
        return np.concatenate(chunks, axis=0)


def missing_capabilities(mode: ModeDefinition, service: AudioService) -> Set[str]:
    """Return the audio capabilities of ``mode`` the service cannot provide."""
    missing: Set[str] = set()
    caps = mode.capabilities
    if not (caps.microphone or caps.system_audio):
        return missing

    try:
        sources = service.list_audio_sources()
    except Exception as e:
        logger.warning(f"Could not enumerate audio sources: {e}")
        sources = []

    kinds = {source.kind for source in sources}
    if caps.microphone and "microphone" not in kinds:
        missing.add("microphone")
    if caps.system_audio and "system" not in kinds:
        missing.add("system_audio")
    return missing
