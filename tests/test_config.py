"""Tests for user configuration and typed settings"""

import pytest

from ambient_voice.core.config.settings import (
    AudioConfig,
    DuckingConfig,
    PlaybackConfig,
    clamp_setting,
    clamp_duration_ms
)
from ambient_voice.core.config.user_config import (
    UserConfig,
    get_user_config,
    reset_user_config
)
from ambient_voice.core.exceptions import ConfigurationError

CONFIG_YAML = """
audio:
  sample_rate: 16000
  block_size: 1024
vad:
  threshold: 0.02
  min_speech_duration_ms: 200
ducking:
  factor: 0.3
  fade_duration_ms: 150
playback:
  volume: 0.7
  style: piano
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "user_config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def fresh_singleton():
    reset_user_config()
    yield
    reset_user_config()


class TestClamping:

    def test_in_range_value_untouched(self):
        assert clamp_setting("x", 0.5, 0.0, 1.0, 0.2) == 0.5

    def test_out_of_range_moves_to_bound(self):
        assert clamp_setting("x", 3, 0.0, 1.0, 0.2) == 1.0
        assert clamp_setting("x", -3, 0.0, 1.0, 0.2) == 0.0

    def test_invalid_value_uses_default(self):
        assert clamp_setting("x", "loud", 0.0, 1.0, 0.2) == 0.2
        assert clamp_setting("x", float("nan"), 0.0, 1.0, 0.2) == 0.2

    def test_duration_minimum_is_one_ms(self):
        assert clamp_duration_ms("d", 0, 100) == 1
        assert clamp_duration_ms("d", 99.6, 100) == 100

    def test_ducking_config_clamp(self):
        config = DuckingConfig(ducking_factor=5, fade_duration_ms=0, fade_steps=0).clamp()
        assert config.ducking_factor == 1.0
        assert config.fade_duration_ms == 1
        assert config.fade_steps == 1

    def test_block_duration(self):
        assert AudioConfig(sample_rate=16000, block_size=4096).block_duration_ms == 256.0

    def test_tone_frequencies(self):
        config = PlaybackConfig()
        assert config.frequency_for("focus") == 40.0
        assert config.frequency_for("unknown") == 220.0


class TestUserConfig:

    def test_load_and_get(self, config_file):
        config = UserConfig(str(config_file))
        assert config.get('vad.threshold') == 0.02
        assert config.get('playback.style') == "piano"
        assert config.get('missing.key', 'fallback') == 'fallback'
        assert config.is_valid()

    def test_typed_configs(self, config_file):
        config = UserConfig(str(config_file))

        vad = config.vad_config()
        assert vad.threshold == 0.02
        assert vad.min_speech_duration_ms == 200
        assert vad.silence_timeout_ms == 1000

        ducking = config.ducking_config()
        assert ducking.ducking_factor == 0.3
        assert ducking.fade_duration_ms == 150

        assert config.playback_config().volume == 0.7
        assert config.audio_config().block_size == 1024

    def test_missing_file_uses_defaults(self, tmp_path):
        path = tmp_path / "nope.yaml"
        config = UserConfig(str(path))

        assert config.get('vad.threshold') == 0.01
        assert config.get('ducking.factor') == 0.2
        assert not path.exists()

    def test_out_of_range_values_warn_and_clamp(self):
        config = UserConfig.from_dict({
            'vad': {'threshold': 0.5},
            'ducking': {'factor': 0.0}
        })

        errors = config.get_validation_errors()
        assert any("vad.threshold" in e for e in errors)
        assert any("ducking.factor" in e for e in errors)

        assert config.vad_config().threshold == 0.1
        assert config.ducking_config().ducking_factor == 0.1

    def test_wrong_types_are_reported(self):
        config = UserConfig.from_dict({'vad': {'enabled': "yes", 'history_length': 2.5}})
        errors = config.get_validation_errors()
        assert any("vad.enabled" in e for e in errors)
        assert any("vad.history_length" in e for e in errors)

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("vad: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            UserConfig(str(path))

    def test_non_mapping_root_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            UserConfig(str(path))

    def test_singleton_honours_env_override(self, config_file, monkeypatch):
        monkeypatch.setenv("AMBIENT_VOICE_CONFIG", str(config_file))

        config = get_user_config()
        assert config.get('playback.style') == "piano"
        assert get_user_config() is config
