"""
User Configuration Manager
Loads config/user_config.yaml, validates it and builds the typed configs.
"""

import copy
import os
import yaml
import structlog
from pathlib import Path
from typing import Dict, Any, Optional, TypeVar

from ambient_voice.core.config.settings import AudioConfig, DuckingConfig, PlaybackConfig
from ambient_voice.core.exceptions import ConfigurationError
from ambient_voice.infrastructure.adapters.audio.vad.models import VADConfig

logger = structlog.get_logger()

T = TypeVar('T')

DEFAULT_CONFIG_PATH = "config/user_config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'audio': {
        'sample_rate': 16000,
        'channels': 1,
        'block_size': 4096,
        'gain': 1.0,
        'input_device': None,
        'output_device': None,
        'output_sample_rate': 44100
    },
    'vad': {
        'enabled': True,
        'threshold': 0.01,
        'smoothing_factor': 0.8,
        'history_length': 10,
        'sensitivity_multiplier': 1.5,
        'min_speech_duration_ms': 300,
        'silence_timeout_ms': 1000
    },
    'ducking': {
        'factor': 0.2,
        'fade_duration_ms': 100,
        'fade_steps': 20
    },
    'playback': {
        'volume': 0.5,
        'style': 'ambient',
        'track_path': None
    }
}


class UserConfig:
    """User configuration with validation"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """
        Args:
            config_path: Path to the YAML file
        """
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}
        self.validation_errors: list = []
        self._load_config()
        self._validate_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserConfig":
        """Build a config from an in-memory dict (no file access)."""
        instance = cls.__new__(cls)
        instance.config_path = None
        instance.config = data or {}
        instance.validation_errors = []
        instance._validate_config()
        return instance

    def _load_config(self) -> None:
        """Load config from file; fall back to built-in defaults if missing"""
        if not self.config_path.exists():
            logger.warning("config_not_found", path=str(self.config_path), using="defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self.config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("config_load_error", path=str(self.config_path), error=str(e))
            raise ConfigurationError(f"Failed to load config: {e}") from e

        if not isinstance(self.config, dict):
            raise ConfigurationError(
                f"Config root must be a mapping, got {type(self.config).__name__}"
            )

        logger.info("user_config_loaded", path=str(self.config_path))

    # ========================================
    # Validation
    # ========================================

    def _validate_config(self) -> None:
        """Collect range warnings. Values are clamped later, never rejected."""
        self.validation_errors = []

        self._validate_audio_config()
        self._validate_vad_config()
        self._validate_ducking_config()
        self._validate_playback_config()

        if self.validation_errors:
            logger.warning("config_validation_warnings",
                           errors=self.validation_errors,
                           count=len(self.validation_errors))

    def _check_number(self, key: str, default, low: float, high: float,
                      integer: bool = False) -> None:
        value = self.get(key, default)
        expected = int if integer else (int, float)
        if isinstance(value, bool) or not isinstance(value, expected):
            kind = "integer" if integer else "number"
            self.validation_errors.append(
                f"{key} must be {kind}, got {type(value).__name__}"
            )
        elif value < low or value > high:
            self.validation_errors.append(
                f"{key} should be between {low}-{high}, got {value}"
            )

    def _validate_audio_config(self) -> None:
        sample_rate = self.get('audio.sample_rate', 16000)
        if not isinstance(sample_rate, int):
            self.validation_errors.append(
                f"audio.sample_rate must be integer, got {type(sample_rate).__name__}"
            )
        elif sample_rate not in [8000, 11025, 16000, 22050, 44100, 48000]:
            self.validation_errors.append(
                f"audio.sample_rate should be one of [8000, 16000, 22050, 44100, 48000], got {sample_rate}"
            )

        channels = self.get('audio.channels', 1)
        if channels not in [1, 2]:
            self.validation_errors.append(
                f"audio.channels must be 1 (mono) or 2 (stereo), got {channels}"
            )

        self._check_number('audio.block_size', 4096, 128, 16384, integer=True)
        self._check_number('audio.gain', 1.0, 0.0, 20.0)

    def _validate_vad_config(self) -> None:
        enabled = self.get('vad.enabled', True)
        if not isinstance(enabled, bool):
            self.validation_errors.append(
                f"vad.enabled must be boolean, got {type(enabled).__name__}"
            )

        self._check_number('vad.threshold', 0.01, 0.001, 0.1)
        self._check_number('vad.smoothing_factor', 0.8, 0.01, 0.99)
        self._check_number('vad.history_length', 10, 1, 1000, integer=True)
        self._check_number('vad.sensitivity_multiplier', 1.5, 0.0, 100.0)
        self._check_number('vad.min_speech_duration_ms', 300, 1, 60000)
        self._check_number('vad.silence_timeout_ms', 1000, 1, 60000)

    def _validate_ducking_config(self) -> None:
        self._check_number('ducking.factor', 0.2, 0.1, 1.0)
        self._check_number('ducking.fade_duration_ms', 100, 1, 10000)
        self._check_number('ducking.fade_steps', 20, 1, 1000, integer=True)

    def _validate_playback_config(self) -> None:
        self._check_number('playback.volume', 0.5, 0.0, 1.0)

        track_path = self.get('playback.track_path')
        if track_path and not Path(track_path).exists():
            self.validation_errors.append(
                f"playback.track_path does not exist: {track_path}"
            )

    # ========================================
    # Access
    # ========================================

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a value using dot notation.

        Args:
            key_path: Key path (e.g. "vad.threshold")
            default: Value returned when the key is missing

        Returns:
            Config value or default
        """
        value = self.config

        for key in key_path.split('.'):
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return value

    def is_valid(self) -> bool:
        return len(self.validation_errors) == 0

    def get_validation_errors(self) -> list:
        return self.validation_errors.copy()

    # ========================================
    # Typed configs
    # ========================================

    def audio_config(self) -> AudioConfig:
        return AudioConfig(
            sample_rate=self.get('audio.sample_rate', 16000),
            channels=self.get('audio.channels', 1),
            block_size=self.get('audio.block_size', 4096),
            input_device=self.get('audio.input_device'),
            output_device=self.get('audio.output_device'),
            output_sample_rate=self.get('audio.output_sample_rate', 44100)
        )

    def vad_config(self) -> VADConfig:
        return VADConfig(
            enabled=self.get('vad.enabled', True),
            threshold=self.get('vad.threshold', 0.01),
            smoothing_factor=self.get('vad.smoothing_factor', 0.8),
            history_length=self.get('vad.history_length', 10),
            sensitivity_multiplier=self.get('vad.sensitivity_multiplier', 1.5),
            min_speech_duration_ms=self.get('vad.min_speech_duration_ms', 300),
            silence_timeout_ms=self.get('vad.silence_timeout_ms', 1000),
            name="user_config"
        ).clamp()

    def ducking_config(self) -> DuckingConfig:
        return DuckingConfig(
            ducking_factor=self.get('ducking.factor', 0.2),
            fade_duration_ms=self.get('ducking.fade_duration_ms', 100),
            fade_steps=self.get('ducking.fade_steps', 20)
        ).clamp()

    def playback_config(self) -> PlaybackConfig:
        return PlaybackConfig(
            volume=self.get('playback.volume', 0.5),
            style=self.get('playback.style', 'ambient'),
            track_path=self.get('playback.track_path')
        )


# Singleton instance
_user_config: Optional[UserConfig] = None


def get_user_config(config_path: Optional[str] = None) -> UserConfig:
    """
    Get the global UserConfig instance.

    The path defaults to $AMBIENT_VOICE_CONFIG, then config/user_config.yaml.

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    global _user_config
    if _user_config is None:
        path = config_path or os.getenv("AMBIENT_VOICE_CONFIG", DEFAULT_CONFIG_PATH)
        _user_config = UserConfig(path)
    return _user_config


def reset_user_config() -> None:
    """Drop the cached instance (next get_user_config() reloads)."""
    global _user_config
    _user_config = None
