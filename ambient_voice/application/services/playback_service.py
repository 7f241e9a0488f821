# ambient_voice/application/services/playback_service.py

"""Playback Service - owns the active background sink and track switching."""

import threading
from typing import Callable, Optional

import numpy as np
import structlog

from ambient_voice.core.config.settings import PlaybackConfig
from ambient_voice.core.exceptions import AudioError, PlaybackError
from ambient_voice.infrastructure.adapters.audio.sinks import (
    BaseAudioSink,
    ThreadedRampRunner,
    ToneSink,
    TrackSink
)
from .ducking_controller import DuckingController

logger = structlog.get_logger()

MusicCallback = Callable[[dict], None]


class PlaybackService:
    """
    Background music playback.

    Exactly one sink is active at a time. Every switch goes through the
    ducking controller, so a track started mid-speech comes in ducked.
    """

    def __init__(
            self,
            ducking: DuckingController,
            config: Optional[PlaybackConfig] = None,
            output_device: Optional[int] = None,
            output_sample_rate: int = 44100,
            ramp_runner: Optional[ThreadedRampRunner] = None,
            stream_factory: Optional[Callable] = None
    ):
        self.ducking = ducking
        self.config = config or PlaybackConfig()
        self.output_device = output_device
        self.output_sample_rate = output_sample_rate
        self._ramp_runner = ramp_runner
        self._stream_factory = stream_factory

        self.volume = min(1.0, max(0.0, self.config.volume))
        self.style = self.config.style
        self.track_name: Optional[str] = None
        self._sink: Optional[BaseAudioSink] = None
        self._lock = threading.RLock()
        self.music_callback: Optional[MusicCallback] = None

        logger.info("playback_service_initialized", volume=self.volume, style=self.style)

    @property
    def sink(self) -> Optional[BaseAudioSink]:
        return self._sink

    @property
    def is_playing(self) -> bool:
        return self._sink is not None and self._sink.is_active

    def set_music_callback(self, callback: MusicCallback) -> None:
        """Called with {style, is_playing, volume, track_name} on every change."""
        self.music_callback = callback

    # ========================================
    # Starting playback
    # ========================================

    def play_tone(self, style: Optional[str] = None) -> BaseAudioSink:
        """Play the synthesized tone for a style."""
        style = style or self.style
        frequency = self.config.frequency_for(style)
        sink = ToneSink(
            frequency=frequency,
            name=f"{style}_tone",
            gain=self._level_for_tone(),
            sample_rate=self.output_sample_rate,
            **self._sink_options()
        )
        return self._switch_to(sink, style=style, track_name=f"Demo {style} tone")

    def play_track(self, path: str, style: Optional[str] = None) -> BaseAudioSink:
        """
        Play a WAV track in a loop. Falls back to the style's tone if the
        track cannot be loaded.
        """
        style = style or self.style
        try:
            sink = TrackSink.from_wav(path, gain=self.volume, **self._sink_options())
        except PlaybackError as e:
            logger.warning("track_load_failed", path=path, error=str(e), fallback="tone")
            return self.play_tone(style)

        return self._switch_to(sink, style=style, track_name=sink.name)

    def play_array(self, samples: np.ndarray, sample_rate: int, name: str = "track",
                   style: Optional[str] = None) -> BaseAudioSink:
        """Play already decoded samples in a loop."""
        sink = TrackSink(samples, sample_rate, name=name, gain=self.volume, **self._sink_options())
        return self._switch_to(sink, style=style or self.style, track_name=name)

    def resume(self) -> Optional[BaseAudioSink]:
        """Restart the last style if nothing is playing."""
        if self.is_playing:
            return self._sink
        if self.config.track_path:
            return self.play_track(self.config.track_path)
        return self.play_tone(self.style)

    def _switch_to(self, sink: BaseAudioSink, style: str, track_name: str) -> BaseAudioSink:
        with self._lock:
            old = self._sink

            # Attach first: a sink joining mid-speech gets its ducked gain
            # before it makes any sound.
            self.ducking.register_sink(sink)
            try:
                sink.start()
            except AudioError:
                self.ducking.unregister_sink(sink)
                raise

            self._sink = sink
            self.style = style
            self.track_name = track_name

            if old is not None:
                self.ducking.unregister_sink(old)
                old.stop()

        logger.info("playback_switched", sink=sink.name, style=style,
                    previous=old.name if old is not None else None)
        self._notify()
        return sink

    def _sink_options(self) -> dict:
        options = {'device': self.output_device, 'ramp_steps': self.ducking.config.fade_steps}
        if self._ramp_runner is not None:
            options['ramp_runner'] = self._ramp_runner
        if self._stream_factory is not None:
            options['stream_factory'] = self._stream_factory
        return options

    # ========================================
    # Stopping
    # ========================================

    def stop(self) -> None:
        """Stop music and release the output stream."""
        with self._lock:
            sink, self._sink = self._sink, None
            if sink is None:
                return
            self.ducking.unregister_sink(sink)
            sink.stop()

        logger.info("playback_stopped", sink=sink.name)
        self._notify()

    # ========================================
    # Volume
    # ========================================

    def adjust_volume(self, delta: float) -> float:
        """Change volume by delta (clamped to 0.0-1.0)."""
        return self.set_volume(self.volume + delta)

    def set_volume(self, volume: float) -> float:
        with self._lock:
            self.volume = min(1.0, max(0.0, float(volume)))
            if self._sink is not None:
                gain = self._level_for_tone() if isinstance(self._sink, ToneSink) else self.volume
                self.ducking.set_user_gain(self._sink, gain)

        logger.info("volume_adjusted", volume=round(self.volume, 2))
        self._notify()
        return self.volume

    def _level_for_tone(self) -> float:
        return self.volume * self.config.tone_level

    # ========================================
    # Notifications
    # ========================================

    def get_status(self) -> dict:
        return {
            'style': self.style,
            'is_playing': self.is_playing,
            'volume': self.volume,
            'track_name': self.track_name if self.is_playing else None
        }

    def _notify(self) -> None:
        if not self.music_callback:
            return
        try:
            self.music_callback(self.get_status())
        except Exception as e:
            logger.warning("music_callback_error", error=str(e))
