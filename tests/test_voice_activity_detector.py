"""Tests for the voice activity detector facade"""

import numpy as np
import pytest

from ambient_voice.infrastructure.adapters.audio.vad import (
    VoiceActivityDetector,
    VADConfig,
    SpeechEvent,
    SpeechState
)

FRAME_MS = 50
SILENCE = np.zeros(800, dtype=np.float32)
LOUD = np.full(800, 0.5, dtype=np.float32)


@pytest.fixture
def detector():
    return VoiceActivityDetector(VADConfig())


@pytest.fixture
def events(detector):
    received = []
    detector.add_listener(received.append)
    return received


def feed(detector, frames, start_index=0):
    """Process frames FRAME_MS apart; returns the next index."""
    index = start_index
    for frame in frames:
        detector.process_frame(frame, index * FRAME_MS)
        index += 1
    return index


def start_speech(detector):
    """10 silent frames, then loud frames until SPEECH_STARTED (index 16)."""
    index = feed(detector, [SILENCE] * 10)
    return feed(detector, [LOUD] * 7, index)


class TestDetection:

    def test_silence_never_starts(self, detector, events):
        feed(detector, [SILENCE] * 100)
        assert events == []
        assert detector.state == SpeechState.SILENT

    def test_onset_after_silence_starts_speech(self, detector, events):
        index = feed(detector, [SILENCE] * 10)
        index = feed(detector, [LOUD] * 6, index)
        assert events == []
        assert detector.state == SpeechState.PENDING_SPEECH

        # 7th loud frame is 300 ms after the first
        detector.process_frame(LOUD, index * FRAME_MS)
        assert events == [SpeechEvent.SPEECH_STARTED]
        assert detector.is_speech_active

    def test_speech_ends_after_silence_timeout(self, detector, events):
        index = start_speech(detector)
        index = feed(detector, [LOUD] * 2, index)  # last above-threshold frame at 900 ms
        index = feed(detector, [SILENCE] * 19, index)  # up to 1850 ms
        assert events == [SpeechEvent.SPEECH_STARTED]

        detector.process_frame(SILENCE, 1900)
        assert events == [SpeechEvent.SPEECH_STARTED, SpeechEvent.SPEECH_ENDED]
        assert detector.state == SpeechState.SILENT

    def test_short_burst_counts_false_start(self, detector, events):
        index = feed(detector, [SILENCE] * 10)
        index = feed(detector, [LOUD] * 2, index)
        feed(detector, [SILENCE] * 3, index)

        assert events == []
        assert detector.state == SpeechState.SILENT
        assert detector.get_current_metrics().false_starts == 1

    def test_empty_and_malformed_frames_are_silence(self, detector, events):
        for i, frame in enumerate([None, [], np.array([np.nan] * 10)]):
            assert detector.process_frame(frame, i * FRAME_MS) is False
        assert events == []
        assert detector.get_current_metrics().empty_frames == 2

    def test_threshold_follows_config(self):
        detector = VoiceActivityDetector(VADConfig(threshold=0.05))
        detector.process_frame(SILENCE, 0)
        assert detector.threshold == 0.05


class TestListeners:

    def test_failing_listener_does_not_block_others(self, detector):
        received = []

        def broken(event):
            raise RuntimeError("listener crashed")

        detector.add_listener(broken)
        detector.add_listener(received.append)

        start_speech(detector)
        assert received == [SpeechEvent.SPEECH_STARTED]
        assert detector.is_speech_active

    def test_listener_added_once(self, detector):
        received = []
        detector.add_listener(received.append)
        detector.add_listener(received.append)
        start_speech(detector)
        assert received == [SpeechEvent.SPEECH_STARTED]

    def test_removed_listener_gets_nothing(self, detector, events):
        detector.remove_listener(events.append)
        start_speech(detector)
        assert events == []


class TestRuntimeConfiguration:

    def test_disable_during_speech_forces_end(self, detector, events):
        start_speech(detector)
        detector.set_enabled(False)

        assert events == [SpeechEvent.SPEECH_STARTED, SpeechEvent.SPEECH_ENDED]
        assert detector.state == SpeechState.SILENT
        assert detector.process_frame(LOUD, 5000) is False

    def test_disable_while_pending_is_silent(self, detector, events):
        index = feed(detector, [SILENCE] * 10)
        feed(detector, [LOUD] * 2, index)
        assert detector.state == SpeechState.PENDING_SPEECH

        detector.set_enabled(False)
        assert events == []
        assert detector.state == SpeechState.SILENT

    def test_reenable_replays_nothing(self, detector, events):
        start_speech(detector)
        detector.set_enabled(False)
        detector.set_enabled(True)

        assert events == [SpeechEvent.SPEECH_STARTED, SpeechEvent.SPEECH_ENDED]
        assert detector.state == SpeechState.SILENT
        assert detector.enabled

    def test_threshold_is_clamped(self, detector):
        assert detector.set_threshold(0.5) == 0.1
        assert detector.set_threshold(0.0001) == 0.001
        assert detector.config.threshold == 0.001

    def test_durations_are_clamped(self, detector):
        assert detector.set_min_speech_duration(0) == 1
        assert detector.set_silence_timeout(-20) == 1
        assert detector.set_silence_timeout(2500) == 2500
        assert detector.state_machine.silence_timeout_ms == 2500

    def test_out_of_range_config_is_clamped(self):
        detector = VoiceActivityDetector(VADConfig(threshold=3.0, min_speech_duration_ms=-5))
        assert detector.config.threshold == 0.1
        assert detector.config.min_speech_duration_ms == 1


class TestSession:

    def test_end_session_closes_open_episode(self, detector, events):
        detector.start_session()
        start_speech(detector)

        metrics = detector.end_session()
        assert events[-1] == SpeechEvent.SPEECH_ENDED
        assert metrics.speech_episodes == 1
        assert metrics.completed_episodes == 1
        assert metrics.total_frames == 17
        assert metrics.end_time is not None

    def test_start_session_resets_state(self, detector):
        start_speech(detector)
        detector.start_session()

        assert detector.state == SpeechState.SILENT
        assert detector.smoothed_energy == 0.0
        assert detector.get_current_metrics().total_frames == 0

    def test_statistics(self, detector):
        start_speech(detector)
        stats = detector.get_statistics()
        assert stats['is_speech_active'] is True
        assert stats['state_machine']['state'] == 'active'
        assert stats['metrics']['speech_episodes'] == 1
