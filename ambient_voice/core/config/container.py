# ambient_voice/core/config/container.py

"""
Dependency Injection Container
"""

import structlog
import os
from typing import Callable, Optional
from dotenv import load_dotenv

# Core imports
from ambient_voice.core.config.user_config import get_user_config, UserConfig
from ambient_voice.core.exceptions import ContainerInitializationError

# Application services
from ambient_voice.application.services.ducking_controller import DuckingController
from ambient_voice.application.services.playback_service import PlaybackService
from ambient_voice.application.services.ambient_orchestrator import AmbientOrchestrator

# Audio adapters
from ambient_voice.infrastructure.adapters.audio.sounddevice_capture import SoundDeviceCapture
from ambient_voice.infrastructure.adapters.audio.vad import VoiceActivityDetector
from ambient_voice.infrastructure.adapters.audio.sinks import ThreadedRampRunner

# Interface
from ambient_voice.interfaces.cli.console_ui import ConsoleUI

logger = structlog.get_logger()


class Container:
    """
    Dependency Injection Container
    Builds every component from UserConfig and wires them together.

    input_stream_factory / output_stream_factory replace the sounddevice
    streams (tests, headless runs).
    """

    def __init__(
            self,
            user_config: Optional[UserConfig] = None,
            input_stream_factory: Optional[Callable] = None,
            output_stream_factory: Optional[Callable] = None
    ):
        logger.info("container_initialization_started")
        self._input_stream_factory = input_stream_factory
        self._output_stream_factory = output_stream_factory

        try:
            # Step 1: Environment and configuration
            self._load_environment()
            self.user_config = user_config or self._load_user_config()
            self.audio_config = self.user_config.audio_config()

            # Step 2: Audio pipeline
            self.audio_input = self._create_audio_input()
            self.detector = self._create_detector()

            # Step 3: Ducking + playback
            self.ramp_runner = ThreadedRampRunner()
            self.ducking = self._create_ducking_controller()
            self.playback = self._create_playback_service()

            # Step 4: Main orchestrator
            self.orchestrator = self._create_orchestrator()

            logger.info("container_initialization_completed")

        except Exception as e:
            logger.error("container_initialization_failed", error=str(e), exc_info=True)
            raise ContainerInitializationError(f"Failed to initialize container: {e}") from e

    # ========================================
    # ENVIRONMENT & CONFIG
    # ========================================

    def _load_environment(self) -> None:
        """Load environment variables from .env file"""
        load_dotenv()
        logger.info(
            "environment_loaded",
            dev_mode=os.getenv("DEV_MODE", "false").lower() == "true",
            config_override=os.getenv("AMBIENT_VOICE_CONFIG")
        )

    def _load_user_config(self) -> UserConfig:
        """Load and validate user configuration"""
        config = get_user_config()
        if not config.is_valid():
            logger.warning("user_config_has_warnings", count=len(config.get_validation_errors()))
        return config

    # ========================================
    # AUDIO
    # ========================================

    def _create_audio_input(self) -> SoundDeviceCapture:
        """Create microphone capture"""
        audio = self.audio_config
        capture = SoundDeviceCapture(
            sample_rate=audio.sample_rate,
            channels=audio.channels,
            block_size=audio.block_size,
            device=audio.input_device,
            gain=self.user_config.get('audio.gain', 1.0),
            stream_factory=self._input_stream_factory
        )
        logger.debug("audio_input_created", block_ms=round(audio.block_duration_ms, 1))
        return capture

    def _create_detector(self) -> VoiceActivityDetector:
        """Create energy-based voice activity detector"""
        detector = VoiceActivityDetector(self.user_config.vad_config())
        logger.debug("detector_created")
        return detector

    # ========================================
    # DUCKING & PLAYBACK
    # ========================================

    def _create_ducking_controller(self) -> DuckingController:
        return DuckingController(self.user_config.ducking_config())

    def _create_playback_service(self) -> PlaybackService:
        service = PlaybackService(
            ducking=self.ducking,
            config=self.user_config.playback_config(),
            output_device=self.audio_config.output_device,
            output_sample_rate=self.audio_config.output_sample_rate,
            ramp_runner=self.ramp_runner,
            stream_factory=self._output_stream_factory
        )
        logger.debug("playback_service_created")
        return service

    # ========================================
    # ORCHESTRATOR
    # ========================================

    def _create_orchestrator(self) -> AmbientOrchestrator:
        orchestrator = AmbientOrchestrator(
            audio_input=self.audio_input,
            detector=self.detector,
            ducking=self.ducking,
            playback=self.playback
        )
        logger.debug("orchestrator_created")
        return orchestrator

    # ========================================
    # PUBLIC INTERFACE
    # ========================================

    def console_ui(self) -> ConsoleUI:
        """
        Create console UI interface

        Returns:
            ConsoleUI instance configured with orchestrator
        """
        ui = ConsoleUI(
            orchestrator=self.orchestrator,
            playback=self.playback,
            user_config=self.user_config
        )
        logger.debug("console_ui_created")
        return ui


def setup_container() -> Container:
    """
    Setup and initialize dependency injection container

    Raises:
        ContainerInitializationError: If initialization fails
    """
    return Container()
