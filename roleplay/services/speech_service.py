# roleplay/services/speech_service.py
"""
Speech Output Adapter - speaks customer lines and wraps trainee dictation.

Turns a line of text plus an emotion into a modulated utterance for the
platform synthesis engine, and wraps the platform recognizer for single-shot
dictation. Missing platform capabilities degrade to logged no-ops.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union
import logging
import re

from roleplay.core.config import settings
from roleplay.core.exceptions import ConfigurationError, speech_error
from roleplay.core.service_base import BaseService
from roleplay.models.flow_models import Emotion
from roleplay.services.speech_platform import (
    RecognitionResults,
    Recognizer,
    SpeechRecognitionPlatform,
    SpeechSynthesisPlatform,
    Utterance,
    Voice,
)
from roleplay.services.voice_selection import select_voice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProsodyProfile:
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0


DEFAULT_PROSODY = ProsodyProfile()

PROSODY_PROFILES: Dict[Emotion, ProsodyProfile] = {
    Emotion.FRUSTRATED: ProsodyProfile(rate=1.1, pitch=1.2, volume=1.1),
    Emotion.ANXIOUS: ProsodyProfile(rate=1.2, pitch=1.3, volume=0.9),
    Emotion.CONFUSED: ProsodyProfile(rate=0.9, pitch=1.1, volume=0.95),
    Emotion.SATISFIED: ProsodyProfile(rate=1.0, pitch=1.1, volume=1.0),
}

# Sentence endings and commas get a pause token appended
PAUSE_PATTERN = re.compile(r"([.?!,])")


@dataclass
class SpeechConfig:
    locale: str = "en-GB"
    pause_token: str = " "

    @classmethod
    def from_settings(cls) -> "SpeechConfig":
        return cls(locale=settings.SPEECH_LOCALE, pause_token=settings.SPEECH_PAUSE_TOKEN)


def prosody_for(emotion: Optional[Union[Emotion, str]]) -> ProsodyProfile:
    """Look up the rate/pitch/volume triple for an emotion"""
    if emotion is None:
        return DEFAULT_PROSODY
    try:
        return PROSODY_PROFILES.get(Emotion(emotion), DEFAULT_PROSODY)
    except ValueError:
        return DEFAULT_PROSODY


def add_natural_pauses(text: str, pause_token: str = " ") -> str:
    """Append a pause token after every sentence ending and comma"""
    return PAUSE_PATTERN.sub(lambda m: m.group(1) + pause_token, text)


class SpeechOutputAdapter(BaseService[SpeechConfig]):
    """
    Speaks customer lines with an emotion-dependent prosody.

    At most one utterance is audible at a time: every new speak() cancels
    the one in flight. Until the platform's voice list is available, the
    most recent request is buffered and spoken once voices arrive.
    """

    def __init__(
        self,
        synthesis: Optional[SpeechSynthesisPlatform] = None,
        recognition: Optional[SpeechRecognitionPlatform] = None,
        config: Optional[SpeechConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the adapter and start voice selection.

        Args:
            synthesis: Platform synthesis engine, None if unsupported
            recognition: Platform recognizer factory, None if unsupported
            config: Locale and pause settings, defaults to application settings
            logger: Optional logger instance
        """
        super().__init__(config or SpeechConfig.from_settings(), logger)
        self.synthesis = synthesis
        self.recognition = recognition

        self._selected_voice: Optional[Voice] = None
        self._voice_ready = False
        self._pending: Optional[Tuple[str, Optional[Union[Emotion, str]]]] = None
        self._recognizer: Optional[Recognizer] = None

        self.initialize()

    def _validate_config(self) -> None:
        if not self.config.locale:
            raise ConfigurationError("Speech locale must not be empty", component=self.service_name)

    def _initialize_client(self) -> Any:
        if self.recognition is None:
            self.logger.warning("Speech recognition not supported - dictation disabled")

        if self.synthesis is None:
            self.logger.warning("Speech synthesis not supported - customer lines will not be spoken")
            return None

        if self.synthesis.speaking:
            self.synthesis.cancel()

        if self.synthesis.get_voices():
            self.logger.info("Voices available immediately")
            self._initialize_voices()
        else:
            self.logger.info("Waiting for voices to become available")
            self.synthesis.on_voices_changed(self._on_voices_changed)

        return self.synthesis

    # ===========================================
    # VOICE SELECTION
    # ===========================================

    def _on_voices_changed(self) -> None:
        if self._voice_ready:
            self.logger.debug("Voices changed after selection, keeping selected voice")
            return
        self.logger.info("Voices changed event fired")
        self._initialize_voices()

    def _initialize_voices(self) -> None:
        voices = self.synthesis.get_voices()
        if not voices:
            self.logger.warning("Voice list empty, speaking with the platform default voice")

        self._selected_voice = select_voice(voices)
        self._voice_ready = True
        self.logger.info(f"Selected voice: {self._selected_voice.name if self._selected_voice else None}")

        if self._pending is not None:
            self.logger.info("Speaking pending message")
            text, emotion = self._pending
            self._pending = None
            self.speak(text, emotion)

    @property
    def selected_voice(self) -> Optional[Voice]:
        return self._selected_voice

    @property
    def voice_ready(self) -> bool:
        return self._voice_ready

    # ===========================================
    # SYNTHESIS
    # ===========================================

    def build_utterance(self, text: str, emotion: Optional[Union[Emotion, str]] = None) -> Utterance:
        """Build the utterance for a line without dispatching it"""
        profile = prosody_for(emotion)
        return Utterance(
            text=add_natural_pauses(text, self.config.pause_token),
            lang=self.config.locale,
            voice=self._selected_voice,
            rate=profile.rate,
            pitch=profile.pitch,
            volume=profile.volume
        )

    def speak(self, text: str, emotion: Optional[Union[Emotion, str]] = None) -> None:
        """
        Speak a line, preempting anything currently audible.

        Args:
            text: Line to speak
            emotion: Emotion driving the prosody, None for neutral
        """
        self.logger.info(f"Attempting to speak: '{text[:50]}...'")

        if self.synthesis is None:
            self.logger.warning("Speech synthesis unavailable, line shown as text only")
            return

        if self.synthesis.speaking:
            self.logger.info("Canceling previous speech")
            self.synthesis.cancel()

        if not self._voice_ready:
            self.logger.info("Voice not ready, storing message")
            self._pending = (text, emotion)
            return

        try:
            utterance = self.build_utterance(text, emotion)
            utterance.on_start = lambda: self.logger.debug("Speech started")
            utterance.on_end = lambda: self.logger.debug("Speech ended")
            utterance.on_error = lambda error: self.logger.error(f"Speech error: {error}")

            self.logger.info(f"Speaking with voice: {self._selected_voice.name if self._selected_voice else None}")
            self.synthesis.speak(utterance)

            if self.synthesis.paused:
                self.logger.info("Speech synthesis was paused, resuming")
                self.synthesis.resume()

        except Exception as e:
            self.logger.error(str(speech_error(f"Error speaking: {e}", operation="speak")))

    # ===========================================
    # RECOGNITION
    # ===========================================

    def start_listening(self, on_result: Callable[[str], None]) -> None:
        """
        Capture one trainee utterance and pass its transcript to on_result.

        Args:
            on_result: Called at most once with the top transcript
        """
        if self.recognition is None:
            self.logger.warning("Speech recognition not supported")
            return

        if self._recognizer is not None:
            self.logger.info("Recognition already active, restarting capture")
            self.stop_listening()

        recognizer = self.recognition.create_recognizer()
        recognizer.continuous = False
        recognizer.interim_results = False
        recognizer.lang = self.config.locale

        delivered = False

        def handle_result(results: RecognitionResults) -> None:
            nonlocal delivered
            if delivered:
                return
            self._end_capture(recognizer)

            if not results or not results[0]:
                self.logger.warning("Speech recognition returned no transcript")
                return

            delivered = True
            on_result(results[0][0].transcript)

        def handle_error(error: str) -> None:
            self.logger.error(f"Speech recognition error: {error}")
            self._end_capture(recognizer)

        self._recognizer = recognizer
        recognizer.start(handle_result, handle_error)
        self.logger.info("Speech recognition started")

    def stop_listening(self) -> None:
        """Stop an active capture. Safe to call when nothing is active."""
        recognizer, self._recognizer = self._recognizer, None
        if recognizer is not None:
            recognizer.stop()
            self.logger.info("Speech recognition stopped")

    def _end_capture(self, recognizer: Recognizer) -> None:
        if self._recognizer is recognizer:
            self._recognizer = None

    @property
    def is_listening(self) -> bool:
        return self._recognizer is not None

    # ===========================================
    # SERVICE CONTRACT
    # ===========================================

    def _cleanup(self) -> None:
        self.stop_listening()
        if self.synthesis is not None and self.synthesis.speaking:
            self.synthesis.cancel()
        self._pending = None

    async def health_check(self) -> Dict[str, Any]:
        if self.synthesis is None:
            status = "text_only"
        elif self._voice_ready:
            status = "ready"
        else:
            status = "waiting_for_voices"

        return {
            "healthy": True,
            "status": status,
            "details": {
                "synthesis_available": self.synthesis is not None,
                "recognition_available": self.recognition is not None,
                "selected_voice": self._selected_voice.name if self._selected_voice else None,
                "pending_message": self._pending is not None,
                "listening": self.is_listening
            }
        }

    def get_metrics(self) -> Dict[str, Any]:
        metrics = super().get_metrics()
        metrics["voice_ready"] = self._voice_ready
        return metrics
