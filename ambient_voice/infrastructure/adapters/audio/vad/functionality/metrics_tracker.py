# ambient_voice/infrastructure/adapters/audio/vad/functionality/metrics_tracker.py

"""Metrics tracking for a VAD session."""

from datetime import datetime

from ..models import VADMetrics, SpeechEvent


class MetricsTracker:
    """
    Tracks metrics while frames are processed.
    Cheap enough to run inside the capture callback.
    """

    def __init__(self):
        """Initialize metrics tracker."""
        self.metrics = VADMetrics()

    def update_frame(
            self,
            energy: float,
            threshold: float,
            above_threshold: bool,
            is_empty: bool,
            processing_time_ms: float
    ) -> None:
        """
        Update metrics for a single frame.

        Args:
            energy: Raw RMS energy
            threshold: Threshold used for this frame
            above_threshold: Smoothed energy exceeded threshold
            is_empty: Frame had no samples
            processing_time_ms: Time spent in the pipeline
        """
        m = self.metrics
        m.total_frames += 1

        if above_threshold:
            m.above_threshold_frames += 1
        if is_empty:
            m.empty_frames += 1

        m.energy_sum += energy
        m.peak_energy = max(m.peak_energy, energy)
        m.last_threshold = threshold

        m.processing_time_ms += processing_time_ms
        m.max_frame_time_ms = max(m.max_frame_time_ms, processing_time_ms)

    def record_event(self, event: SpeechEvent) -> None:
        """Count an emitted speech event."""
        if event == SpeechEvent.SPEECH_STARTED:
            self.metrics.speech_episodes += 1
        elif event == SpeechEvent.SPEECH_ENDED:
            self.metrics.completed_episodes += 1

    def record_false_start(self) -> None:
        """Pending speech fell back to silence."""
        self.metrics.false_starts += 1

    def finalize(self) -> VADMetrics:
        """
        Finalize metrics and return.

        Returns:
            Finalized VADMetrics
        """
        self.metrics.end_time = datetime.now()
        return self.metrics

    def get_current_metrics(self) -> VADMetrics:
        """
        Get current metrics snapshot without finalizing.

        Returns:
            Current VADMetrics (not finalized)
        """
        return self.metrics
