"""CLI user interface: background music plus a live speech indicator"""

import structlog

from ambient_voice.core.exceptions import AudioError
from ambient_voice.infrastructure.adapters.audio.vad import SpeechEvent

logger = structlog.get_logger()


class ConsoleUI:
    """Clean command-line interface"""

    def __init__(self, orchestrator, playback, user_config):
        self.orchestrator = orchestrator
        self.playback = playback
        self.user_config = user_config
        self.speech_count = 0

        self.orchestrator.add_speech_callback(self._on_speech_event)
        self.playback.set_music_callback(self._on_music_changed)
        logger.info("console_ui_initialized")

    async def run(self):
        """Main UI loop. Ends with Ctrl+C."""
        self._print_header()
        self._start_music()

        try:
            async with self.orchestrator:
                await self.orchestrator.listen()
        finally:
            self.playback.stop()
            self._print_summary()

    def _start_music(self):
        track_path = self.user_config.get('playback.track_path')
        style = self.user_config.get('playback.style', 'ambient')
        try:
            if track_path:
                self.playback.play_track(track_path, style)
            else:
                self.playback.play_tone(style)
        except AudioError as e:
            # Detection still works without an output device
            print(f"⚠️  Music unavailable: {e}\n")
            logger.error("music_start_failed", error=str(e))

    def _print_header(self):
        factor = self.user_config.get('ducking.factor', 0.2)

        print("\n" + "═"*60)
        print("  🎧  Ambient Voice".center(60))
        print("═"*60)
        print("\n  🎵 Music plays in the background")
        print(f"  🎙️ Speak and it drops to {int(factor * 100)}% volume")
        print("  🔇 Press Ctrl+C to exit\n")
        print("═"*60 + "\n")

    def _on_speech_event(self, event: SpeechEvent):
        if event == SpeechEvent.SPEECH_STARTED:
            self.speech_count += 1
            print("🗣️  Speaking... (music ducked)")
        elif event == SpeechEvent.SPEECH_ENDED:
            print("💤  Silence (music restored)\n")

    def _on_music_changed(self, status: dict):
        if status.get('is_playing'):
            print(f"🎵 {status.get('track_name')} | volume {int(status.get('volume', 0) * 100)}%")
        else:
            print("⏹️  Music stopped")

    def _print_summary(self):
        metrics = self.orchestrator.last_metrics
        print("\n" + "─"*60)
        print(f"  Speech episodes: {self.speech_count}")
        if metrics is not None:
            print(f"  Session: {metrics}")
        print("─"*60 + "\n")
