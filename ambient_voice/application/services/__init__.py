"""Application Services"""

from ambient_voice.application.services.ducking_controller import DuckingController, DuckTarget
from ambient_voice.application.services.playback_service import PlaybackService
from ambient_voice.application.services.ambient_orchestrator import AmbientOrchestrator

__all__ = ['DuckingController', 'DuckTarget', 'PlaybackService', 'AmbientOrchestrator']
