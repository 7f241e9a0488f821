"""sounddevice stream factories"""

import structlog

from ambient_voice.core.exceptions import AudioError

logger = structlog.get_logger()


def _sounddevice():
    # PortAudio is loaded on import; keep it out of module import time so
    # the detector and controller work on machines without audio devices.
    try:
        import sounddevice as sd
    except OSError as e:
        raise AudioError(f"PortAudio not available: {e}") from e
    return sd


def open_input_stream(**kwargs):
    """Create (not start) a sounddevice.InputStream."""
    return _sounddevice().InputStream(**kwargs)


def open_output_stream(**kwargs):
    """Create (not start) a sounddevice.OutputStream."""
    return _sounddevice().OutputStream(**kwargs)
