"""Typed settings for audio, ducking and playback"""

import math
from dataclasses import dataclass, field
from typing import Optional

import structlog

logger = structlog.get_logger()


def clamp_setting(name: str, value, low: float, high: float, default: float) -> float:
    """
    Clamp a numeric setting into [low, high].

    Out-of-range values are never rejected: they are moved to the nearest
    bound and a warning is logged. Non-numeric or NaN values fall back to
    the default.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("config_value_invalid", setting=name, value=value, using=default)
        return default

    if math.isnan(number):
        logger.warning("config_value_invalid", setting=name, value=value, using=default)
        return default

    clamped = min(high, max(low, number))
    if clamped != number:
        logger.warning(
            "config_value_clamped",
            setting=name,
            value=number,
            clamped=clamped,
            bounds=(low, high)
        )
    return clamped


def clamp_duration_ms(name: str, value, default: int) -> int:
    """Durations must be positive whole milliseconds (minimum 1 ms)."""
    return int(round(clamp_setting(name, value, 1, float("inf"), default)))


@dataclass
class AudioConfig:
    """Capture configuration"""
    sample_rate: int = 16000
    channels: int = 1
    block_size: int = 4096  # 256 ms @ 16 kHz
    input_device: Optional[int] = None
    output_device: Optional[int] = None
    output_sample_rate: int = 44100

    @property
    def block_duration_ms(self) -> float:
        """Length of one capture block in milliseconds."""
        return self.block_size * 1000 / self.sample_rate


@dataclass
class DuckingConfig:
    """
    Ducking configuration.

    ducking_factor: fraction of the pre-duck gain kept during speech
    fade_duration_ms: length of each duck/restore fade
    fade_steps: number of fixed steps a fade is split into
    """
    ducking_factor: float = 0.2
    fade_duration_ms: int = 100
    fade_steps: int = 20

    def clamp(self) -> "DuckingConfig":
        """Clamp every value into its valid range (in place)."""
        self.ducking_factor = clamp_setting("ducking_factor", self.ducking_factor, 0.1, 1.0, 0.2)
        self.fade_duration_ms = clamp_duration_ms("fade_duration_ms", self.fade_duration_ms, 100)
        self.fade_steps = int(clamp_setting("fade_steps", self.fade_steps, 1, 1000, 20))
        return self

    def to_dict(self) -> dict:
        return {
            'ducking_factor': self.ducking_factor,
            'fade_duration_ms': self.fade_duration_ms,
            'fade_steps': self.fade_steps
        }


@dataclass
class PlaybackConfig:
    """Background music configuration"""
    volume: float = 0.5
    style: str = "ambient"
    track_path: Optional[str] = None
    tone_level: float = 0.1  # tone sinks play at volume * tone_level
    tone_frequencies: dict = field(default_factory=lambda: {
        'ambient': 220.0,
        'piano': 261.63,
        'nature': 110.0,
        'focus': 40.0,
        'electronic': 440.0,
    })

    def frequency_for(self, style: str) -> float:
        """Oscillator frequency for a style (unknown styles use ambient)."""
        return self.tone_frequencies.get(style, self.tone_frequencies.get('ambient', 220.0))
