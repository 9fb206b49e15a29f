from .recorder import AudioDevice, AudioRecorder
from .service import AudioService, AudioSource, SoundDeviceAudioService, missing_capabilities

__all__ = [
    "AudioDevice",
    "AudioRecorder",
    "AudioService",
    "AudioSource",
    "SoundDeviceAudioService",
    "missing_capabilities",
]
