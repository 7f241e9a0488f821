"""Audio sink port"""

from abc import ABC, abstractmethod


class IAudioSink(ABC):
    """
    Gain-controllable audio output.

    Implemented by whatever is currently producing sound (a looped track or
    a synthesized tone). The ducking controller only talks to this interface.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable sink name (for logs)"""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True while the sink is producing sound"""
        pass

    @abstractmethod
    def get_gain(self) -> float:
        """Current gain (0.0-1.0)"""
        pass

    @abstractmethod
    def set_gain(self, gain: float) -> None:
        """
        Set gain immediately.

        Args:
            gain: New gain, clamped to 0.0-1.0
        """
        pass

    @abstractmethod
    def ramp_gain(self, target: float, duration_ms: int) -> None:
        """
        Schedule a smooth transition from the current gain to target.

        A ramp issued while another is in flight supersedes it and starts
        from the current (possibly partial) gain.

        Args:
            target: Target gain (0.0-1.0)
            duration_ms: Fade duration in milliseconds
        """
        pass
