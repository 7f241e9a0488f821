"""
Exceptions raised at the edges of the app (wiring, devices, files).

The detection and ducking core never raises: bad input is treated as
silence, bad settings are clamped and sink failures are logged.
"""


class AmbientVoiceError(Exception):
    """Base exception for ambient voice errors"""
    pass


class ConfigurationError(AmbientVoiceError):
    """Config file exists but cannot be parsed"""
    pass


class ContainerInitializationError(AmbientVoiceError):
    """A component could not be built while wiring the app"""
    pass


class AudioError(AmbientVoiceError):
    """Microphone or output stream could not be opened"""
    pass


class PlaybackError(AudioError):
    """Track is missing, unreadable or empty"""
    pass
