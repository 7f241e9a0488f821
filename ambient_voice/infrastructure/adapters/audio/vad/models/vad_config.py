# ambient_voice/infrastructure/adapters/audio/vad/models/vad_config.py

"""VAD configuration model."""

from dataclasses import dataclass, field
from typing import Optional

from ambient_voice.core.config.settings import clamp_setting, clamp_duration_ms

MIN_THRESHOLD = 0.001
MAX_THRESHOLD = 0.1


@dataclass
class VADConfig:
    """
    Configuration for energy-based voice activity detection.
    Defaults match the behaviour of the desktop app (300 ms to start,
    1 s of silence to stop).
    """

    # ========================================
    # Switch
    # ========================================
    enabled: bool = True

    # ========================================
    # Threshold tracking
    # ========================================
    threshold: float = 0.01  # Base threshold, floor of the adaptive one
    smoothing_factor: float = 0.8  # EMA weight of the previous value
    history_length: int = 10  # Rolling average window (frames)
    sensitivity_multiplier: float = 1.5  # Rolling average -> threshold

    # ========================================
    # Hysteresis (ms)
    # ========================================
    min_speech_duration_ms: int = 300
    silence_timeout_ms: int = 1000

    # ========================================
    # Optional metadata
    # ========================================
    name: Optional[str] = field(default=None)

    def clamp(self) -> "VADConfig":
        """
        Clamp every value into its valid range (in place).
        Out-of-range values are logged, never rejected.
        """
        self.threshold = clamp_setting("vad_threshold", self.threshold, MIN_THRESHOLD, MAX_THRESHOLD, 0.01)
        self.smoothing_factor = clamp_setting("smoothing_factor", self.smoothing_factor, 0.01, 0.99, 0.8)
        self.history_length = int(clamp_setting("history_length", self.history_length, 1, 1000, 10))
        self.sensitivity_multiplier = clamp_setting(
            "sensitivity_multiplier", self.sensitivity_multiplier, 0.0, 100.0, 1.5
        )
        self.min_speech_duration_ms = clamp_duration_ms("min_speech_duration_ms", self.min_speech_duration_ms, 300)
        self.silence_timeout_ms = clamp_duration_ms("silence_timeout_ms", self.silence_timeout_ms, 1000)
        self.enabled = bool(self.enabled)
        return self

    def to_dict(self) -> dict:
        """Export config as dictionary."""
        return {
            'enabled': self.enabled,
            'threshold': self.threshold,
            'smoothing_factor': self.smoothing_factor,
            'history_length': self.history_length,
            'sensitivity_multiplier': self.sensitivity_multiplier,
            'min_speech_duration_ms': self.min_speech_duration_ms,
            'silence_timeout_ms': self.silence_timeout_ms,
        }
