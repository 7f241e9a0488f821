# ambient_voice/application/services/ducking_controller.py

"""Ducking Controller - lowers background audio while the user speaks."""

import threading
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import structlog

from ambient_voice.core.config.settings import DuckingConfig, clamp_setting, clamp_duration_ms
from ambient_voice.core.ports.i_audio_sink import IAudioSink
from ambient_voice.infrastructure.adapters.audio.vad import SpeechEvent

logger = structlog.get_logger()


@dataclass
class DuckTarget:
    """A registered sink and its gain from before the duck (None = not ducked)."""
    sink: IAudioSink
    pre_duck_gain: Optional[float] = None
    restoring_to: Optional[float] = None  # restore fade target while it runs
    restore_deadline: float = 0.0

    @property
    def is_ducked(self) -> bool:
        return self.pre_duck_gain is not None


class DuckingController:
    """
    Reacts to speech events by fading registered sinks down and back up.

    - SPEECH_STARTED: snapshot each active sink's gain, ramp to gain * factor
    - SPEECH_ENDED: ramp each ducked sink back to its snapshot
    - Repeated starts/ends are no-ops (is_ducked flag)
    - A sink registered mid-duck is ducked at attach time
    - A sink failing is logged and skipped; the others still fade
    """

    def __init__(self, config: Optional[DuckingConfig] = None):
        self.config = (config or DuckingConfig()).clamp()

        self._targets: Dict[int, DuckTarget] = {}
        self._is_ducked = False
        self._lock = threading.RLock()

        self.duck_count = 0
        self.restore_count = 0
        self.sink_failures = 0

        logger.info("ducking_controller_initialized", config=self.config.to_dict())

    @property
    def is_ducked(self) -> bool:
        return self._is_ducked

    @property
    def ducking_factor(self) -> float:
        return self.config.ducking_factor

    @property
    def fade_duration_ms(self) -> int:
        return self.config.fade_duration_ms

    # ========================================
    # Sink registration
    # ========================================

    def register_sink(self, sink: IAudioSink) -> None:
        """
        Attach a sink. If speech is in progress it is ducked right away.
        """
        with self._lock:
            if id(sink) in self._targets:
                return

            target = DuckTarget(sink=sink)
            self._targets[id(sink)] = target
            logger.info("sink_registered", sink=sink.name, inherits_duck=self._is_ducked)

            if self._is_ducked:
                self._duck(target)

    def unregister_sink(self, sink: IAudioSink) -> None:
        """Detach a sink. Its duck snapshot is dropped, not restored."""
        with self._lock:
            target = self._targets.pop(id(sink), None)
            if target is not None:
                logger.info("sink_unregistered", sink=sink.name, was_ducked=target.is_ducked)

    def get_targets(self) -> List[DuckTarget]:
        with self._lock:
            return list(self._targets.values())

    def get_target(self, sink: IAudioSink) -> Optional[DuckTarget]:
        with self._lock:
            return self._targets.get(id(sink))

    # ========================================
    # Speech events
    # ========================================

    def handle_event(self, event: SpeechEvent) -> None:
        """Speech listener entry point."""
        if event == SpeechEvent.SPEECH_STARTED:
            self.on_speech_started()
        elif event == SpeechEvent.SPEECH_ENDED:
            self.on_speech_ended()

    def on_speech_started(self) -> None:
        with self._lock:
            if self._is_ducked:
                return

            self._is_ducked = True
            self.duck_count += 1
            logger.info("ducking_started", sinks=len(self._targets),
                        factor=self.config.ducking_factor)

            for target in list(self._targets.values()):
                if not self._sink_is_active(target.sink):
                    continue
                self._duck(target)

    def on_speech_ended(self) -> None:
        with self._lock:
            if not self._is_ducked:
                return

            self._is_ducked = False
            self.restore_count += 1
            logger.info("ducking_restoring", sinks=len(self._targets))

            for target in list(self._targets.values()):
                if target.pre_duck_gain is None:
                    continue
                restore_to = target.pre_duck_gain
                target.pre_duck_gain = None
                target.restoring_to = restore_to
                target.restore_deadline = time.monotonic() + self.config.fade_duration_ms / 1000
                try:
                    target.sink.ramp_gain(restore_to, self.config.fade_duration_ms)
                except Exception as e:
                    self._record_failure("restore", target.sink, e)

    def _duck(self, target: DuckTarget) -> None:
        if target.is_ducked:
            return
        try:
            gain = target.sink.get_gain()
            if target.restoring_to is not None and time.monotonic() < target.restore_deadline:
                # Restore fade still running: the real level is its target
                gain = target.restoring_to
            target.restoring_to = None
            ducked = gain * self.config.ducking_factor
            if self._sink_is_active(target.sink):
                target.sink.ramp_gain(ducked, self.config.fade_duration_ms)
            else:
                # Silent sink (not started yet): no fade needed
                target.sink.set_gain(ducked)
            target.pre_duck_gain = gain
        except Exception as e:
            self._record_failure("duck", target.sink, e)

    def _sink_is_active(self, sink: IAudioSink) -> bool:
        try:
            return bool(sink.is_active)
        except Exception as e:
            self._record_failure("is_active", sink, e)
            return False

    def _record_failure(self, action: str, sink: IAudioSink, error: Exception) -> None:
        self.sink_failures += 1
        logger.error(
            "sink_gain_failed",
            action=action,
            sink=getattr(sink, "name", repr(sink)),
            error=str(error)
        )

    # ========================================
    # User volume
    # ========================================

    def set_user_gain(self, sink: IAudioSink, gain: float) -> None:
        """
        Apply a user volume change without breaking the duck.

        While ducked, the new gain becomes the restore target and the sink
        fades to its ducked level. Otherwise the gain is set directly.
        """
        with self._lock:
            target = self._targets.get(id(sink))
            if target is not None and target.is_ducked:
                target.pre_duck_gain = gain
                try:
                    sink.ramp_gain(gain * self.config.ducking_factor, self.config.fade_duration_ms)
                except Exception as e:
                    self._record_failure("user_gain", sink, e)
                return

            if target is not None:
                target.restoring_to = None
            try:
                sink.set_gain(gain)
            except Exception as e:
                self._record_failure("user_gain", sink, e)

    # ========================================
    # Runtime configuration
    # ========================================

    def set_ducking_factor(self, factor: float) -> float:
        """Set ducking factor (clamped to 0.1-1.0). Applies to the next duck."""
        with self._lock:
            self.config.ducking_factor = clamp_setting(
                "ducking_factor", factor, 0.1, 1.0, self.config.ducking_factor
            )
            logger.info("ducking_factor_set", factor=self.config.ducking_factor)
            return self.config.ducking_factor

    def set_fade_duration(self, duration_ms: int) -> int:
        with self._lock:
            self.config.fade_duration_ms = clamp_duration_ms(
                "fade_duration_ms", duration_ms, self.config.fade_duration_ms
            )
            logger.info("fade_duration_set", duration_ms=self.config.fade_duration_ms)
            return self.config.fade_duration_ms

    def get_statistics(self) -> dict:
        with self._lock:
            return {
                'config': self.config.to_dict(),
                'is_ducked': self._is_ducked,
                'sinks': [
                    {'name': t.sink.name, 'pre_duck_gain': t.pre_duck_gain}
                    for t in self._targets.values()
                ],
                'duck_count': self.duck_count,
                'restore_count': self.restore_count,
                'sink_failures': self.sink_failures
            }
