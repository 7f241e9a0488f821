# ambient_voice/infrastructure/adapters/audio/vad/functionality/threshold_tracker.py

"""Adaptive threshold - EMA smoothed energy with a rolling-average floor."""

from collections import deque
from typing import NamedTuple

import structlog

from ..models import MIN_THRESHOLD, MAX_THRESHOLD
from ambient_voice.core.config.settings import clamp_setting

logger = structlog.get_logger()


class ThresholdUpdate(NamedTuple):
    """Result of one tracker update."""
    smoothed_energy: float
    threshold: float

    @property
    def above_threshold(self) -> bool:
        return self.smoothed_energy > self.threshold


class ThresholdTracker:
    """
    Tracks smoothed energy and derives a dynamic decision threshold.

    Per frame:
    - smoothed = a * smoothed + (1 - a) * energy
    - history keeps the last N smoothed values (oldest evicted)
    - threshold = max(base_threshold, mean(history) * sensitivity_multiplier)

    The base threshold stops the adaptive floor from reaching zero in
    silence; the rolling average lets it follow ambient noise.
    """

    def __init__(
            self,
            base_threshold: float = 0.01,
            smoothing_factor: float = 0.8,
            history_length: int = 10,
            sensitivity_multiplier: float = 1.5
    ):
        """
        Args:
            base_threshold: Threshold floor (clamped to 0.001-0.1)
            smoothing_factor: EMA weight of the previous value (clamped to 0.01-0.99)
            history_length: Rolling average capacity (frames)
            sensitivity_multiplier: Rolling average multiplier (clamped to 0-100)
        """
        self.base_threshold = clamp_setting(
            "vad_threshold", base_threshold, MIN_THRESHOLD, MAX_THRESHOLD, 0.01
        )
        self.smoothing_factor = clamp_setting("smoothing_factor", smoothing_factor, 0.01, 0.99, 0.8)
        self.sensitivity_multiplier = clamp_setting(
            "sensitivity_multiplier", sensitivity_multiplier, 0.0, 100.0, 1.5
        )
        self.history: deque = deque(maxlen=max(1, int(history_length)))
        self.smoothed_energy = 0.0
        self.threshold = self.base_threshold

    @property
    def history_length(self) -> int:
        return self.history.maxlen

    @property
    def rolling_average(self) -> float:
        """Mean of the history (0.0 when empty)."""
        if not self.history:
            return 0.0
        return sum(self.history) / len(self.history)

    def update(self, energy: float) -> ThresholdUpdate:
        """
        Feed one energy sample.

        Args:
            energy: RMS energy of the current frame

        Returns:
            (smoothed_energy, threshold)
        """
        a = self.smoothing_factor
        self.smoothed_energy = a * self.smoothed_energy + (1 - a) * energy

        self.history.append(self.smoothed_energy)

        self.threshold = max(
            self.base_threshold,
            self.rolling_average * self.sensitivity_multiplier
        )
        return ThresholdUpdate(self.smoothed_energy, self.threshold)

    def set_base_threshold(self, threshold: float) -> float:
        """Set base threshold (clamped). Returns the applied value."""
        self.base_threshold = clamp_setting(
            "vad_threshold", threshold, MIN_THRESHOLD, MAX_THRESHOLD, self.base_threshold
        )
        logger.info("vad_threshold_set", threshold=self.base_threshold)
        return self.base_threshold

    def set_history_length(self, length: int) -> None:
        """Resize the history, keeping the newest values."""
        self.history = deque(self.history, maxlen=max(1, int(length)))

    def reset(self) -> None:
        """Drop smoothed energy and history (new session)."""
        self.smoothed_energy = 0.0
        self.history.clear()
        self.threshold = self.base_threshold

    def get_statistics(self) -> dict:
        return {
            'smoothed_energy': round(self.smoothed_energy, 6),
            'threshold': round(self.threshold, 6),
            'base_threshold': self.base_threshold,
            'rolling_average': round(self.rolling_average, 6),
            'history_size': len(self.history),
            'history_length': self.history_length
        }
