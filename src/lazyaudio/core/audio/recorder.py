"""
Microphone capture over sounddevice.

The recorder holds no audio. Each block read from the input stream is
handed to the sink given to ``start``, so every consumer (a recording
session, an ad-hoc capture) owns its own buffer.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
import sounddevice as sd

# Name fragments used by loopback drivers that expose system output as an input.
LOOPBACK_MARKERS = ("monitor", "loopback", "stereo mix", "blackhole", "soundflower")

ChunkSink = Callable[[np.ndarray], None]


@dataclass
class AudioDevice:
    name: str
    index: int
    channels: int
    default_sample_rate: float

    @property
    def is_loopback(self) -> bool:
        lowered = self.name.lower()
        return any(marker in lowered for marker in LOOPBACK_MARKERS)


class AudioRecorder:
    """
    A single shared input stream.

    Only one sink can be attached at a time; ``start`` refuses a second
    consumer until ``stop`` releases the stream.
    """

    def __init__(self, sample_rate: int = 16000, channels: int = 1, device: Optional[str] = None):
        self.sample_rate = sample_rate
        self.channels = channels
        self.device = device  # device name or input index as a string

        self._stream: Optional[sd.InputStream] = None
        self._sink: Optional[ChunkSink] = None
        self._last_error: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def start(self, sink: ChunkSink) -> bool:
        """Open the input stream and feed every block to ``sink``."""
        if self._stream is not None:
            self._last_error = "Microphone is already capturing"
            return False

        self._last_error = None
        self._sink = sink
        try:
            stream = sd.InputStream(
                samplerate=float(self.sample_rate),
                channels=self.channels,
                device=self._resolve_device(),
                callback=self._on_block,
            )
            stream.start()
        except (sd.PortAudioError, OSError, ValueError) as e:
            self._sink = None
            self._last_error = f"Could not open input device: {e}"
            return False

        self._stream = stream
        return True

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        self._sink = None
        if stream is not None:
            stream.stop()
            stream.close()

    def _on_block(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        sink = self._sink
        if sink is not None:
            sink(indata.copy())

    def _resolve_device(self) -> Optional[int]:
        if self.device is None:
            return None
        if self.device.isdigit():
            return int(self.device)
        matches = [d.index for d in self.list_devices() if d.name == self.device]
        return matches[0] if matches else None

    @staticmethod
    def list_devices() -> List[AudioDevice]:
        """Input-capable devices, in sounddevice index order."""
        return [
            AudioDevice(
                name=info["name"],
                index=index,
                channels=info["max_input_channels"],
                default_sample_rate=info["default_samplerate"],
            )
            for index, info in enumerate(sd.query_devices())
            if info["max_input_channels"] > 0
        ]
