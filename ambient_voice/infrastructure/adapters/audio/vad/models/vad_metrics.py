# ambient_voice/infrastructure/adapters/audio/vad/models/vad_metrics.py

"""VAD session metrics model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class VADMetrics:
    """
    Metrics for one VAD session.
    Detailed statistics about detection quality and real-time cost.
    """

    # ========================================
    # Timing
    # ========================================
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    # ========================================
    # Frame statistics
    # ========================================
    total_frames: int = 0  # All processed frames
    above_threshold_frames: int = 0  # smoothed energy > threshold
    empty_frames: int = 0  # Zero-length frames (treated as silence)

    # ========================================
    # Episodes
    # ========================================
    speech_episodes: int = 0  # SPEECH_STARTED count
    completed_episodes: int = 0  # SPEECH_ENDED count
    false_starts: int = 0  # Pending speech that fell back to silence

    # ========================================
    # Energy statistics
    # ========================================
    energy_sum: float = 0.0
    peak_energy: float = 0.0
    last_threshold: float = 0.0

    # ========================================
    # Performance
    # ========================================
    processing_time_ms: float = 0.0  # Total time spent in the pipeline
    max_frame_time_ms: float = 0.0  # Slowest single frame

    # ========================================
    # Computed properties
    # ========================================

    @property
    def duration_seconds(self) -> float:
        """Session length in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return (datetime.now() - self.start_time).total_seconds()

    @property
    def avg_energy(self) -> float:
        """Mean raw energy over all frames."""
        if self.total_frames == 0:
            return 0.0
        return self.energy_sum / self.total_frames

    @property
    def activity_ratio(self) -> float:
        """
        Share of frames above threshold (0.0-1.0).
        High values in a quiet room mean the base threshold is too low.
        """
        if self.total_frames == 0:
            return 0.0
        return self.above_threshold_frames / self.total_frames

    @property
    def avg_frame_time_ms(self) -> float:
        """Average pipeline cost per frame."""
        if self.total_frames == 0:
            return 0.0
        return self.processing_time_ms / self.total_frames

    @property
    def false_start_rate(self) -> float:
        """False starts per attempted episode."""
        attempts = self.speech_episodes + self.false_starts
        if attempts == 0:
            return 0.0
        return self.false_starts / attempts

    # ========================================
    # Export
    # ========================================

    def to_dict(self) -> dict:
        """Export for logging and analytics."""
        return {
            'duration_s': round(self.duration_seconds, 2),
            'total_frames': self.total_frames,
            'above_threshold_frames': self.above_threshold_frames,
            'empty_frames': self.empty_frames,
            'activity_ratio': round(self.activity_ratio, 3),
            'speech_episodes': self.speech_episodes,
            'completed_episodes': self.completed_episodes,
            'false_starts': self.false_starts,
            'false_start_rate': round(self.false_start_rate, 3),
            'avg_energy': round(self.avg_energy, 6),
            'peak_energy': round(self.peak_energy, 6),
            'last_threshold': round(self.last_threshold, 6),
            'avg_frame_time_ms': round(self.avg_frame_time_ms, 4),
            'max_frame_time_ms': round(self.max_frame_time_ms, 4),
        }

    def __str__(self) -> str:
        """Human-readable summary."""
        return (
            f"VAD: {self.duration_seconds:.1f}s, "
            f"frames={self.total_frames}, "
            f"episodes={self.speech_episodes}, "
            f"false_starts={self.false_starts}"
        )
