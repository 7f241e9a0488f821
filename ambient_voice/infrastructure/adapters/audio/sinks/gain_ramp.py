# ambient_voice/infrastructure/adapters/audio/sinks/gain_ramp.py

"""Gain ramps - fixed-step fades executed off the capture path."""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

logger = structlog.get_logger()

DEFAULT_STEPS = 20

GainSetter = Callable[[float], None]


@dataclass
class GainRamp:
    """One fade from start_gain to end_gain."""
    start_gain: float
    end_gain: float
    duration_ms: float
    steps: int = DEFAULT_STEPS
    start_time: float = field(default_factory=time.monotonic)

    @property
    def step_interval_s(self) -> float:
        """Delay between two steps (seconds)."""
        return self.duration_ms / 1000 / self.steps

    def value_at_step(self, step: int) -> float:
        """
        Gain after `step` steps (1..steps). The last step lands exactly on
        end_gain.
        """
        if step >= self.steps:
            return self.end_gain
        progress = step / self.steps
        return self.start_gain + (self.end_gain - self.start_gain) * progress


class RampHandle:
    """Running ramp; cancel() abandons the remaining steps."""

    def __init__(self, ramp: GainRamp):
        self.ramp = ramp
        self._cancelled = threading.Event()
        self._finished = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the ramp finished or was cancelled."""
        return self._finished.wait(timeout)

    def wait_interval(self) -> bool:
        """Sleep one step. Returns False if cancelled meanwhile."""
        return not self._cancelled.wait(self.ramp.step_interval_s)

    def mark_finished(self) -> None:
        self._finished.set()


class ThreadedRampRunner:
    """
    Runs each ramp on a daemon thread: `steps` gain updates spaced
    duration/steps apart. Never touches the capture callback.
    """

    def start(self, handle: RampHandle, apply: GainSetter) -> RampHandle:
        thread = threading.Thread(
            target=self._run,
            args=(handle, apply),
            name="gain-ramp",
            daemon=True
        )
        handle._thread = thread
        thread.start()
        return handle

    def _run(self, handle: RampHandle, apply: GainSetter) -> None:
        ramp = handle.ramp
        try:
            for step in range(1, ramp.steps + 1):
                if not handle.wait_interval():
                    return
                apply(ramp.value_at_step(step))
        except Exception as e:
            logger.error("gain_ramp_error", error=str(e), target=ramp.end_gain)
        finally:
            handle.mark_finished()
