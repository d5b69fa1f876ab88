# roleplay/services/speech_platform.py
"""
Platform speech capabilities consumed by the speech adapter.

The adapter never talks to an audio stack directly. It works against the two
abstract platforms below: a synthesis engine with voice enumeration and a
one-time readiness notification, and a single-shot recognizer. Either may be
absent on a given platform, in which case the adapter receives ``None``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str
    default: bool = False


@dataclass
class Utterance:
    """One line of text with the playback parameters for a synthesis engine"""
    text: str
    lang: str
    voice: Optional[Voice] = None
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0
    on_start: Optional[Callable[[], None]] = field(default=None, repr=False, compare=False)
    on_end: Optional[Callable[[], None]] = field(default=None, repr=False, compare=False)
    on_error: Optional[Callable[[str], None]] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "lang": self.lang,
            "voice": self.voice.name if self.voice else None,
            "rate": self.rate,
            "pitch": self.pitch,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class RecognitionAlternative:
    transcript: str
    confidence: float = 0.0


# One list of alternatives per recognized segment, best alternative first
RecognitionResults = List[List[RecognitionAlternative]]


class SpeechSynthesisPlatform(ABC):
    """Speech synthesis engine: voice list, readiness notification and playback"""

    @abstractmethod
    def get_voices(self) -> List[Voice]:
        """Voices currently available, possibly empty before readiness"""

    @abstractmethod
    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        """Register a callback for when the voice list becomes available"""

    @property
    @abstractmethod
    def speaking(self) -> bool:
        """Whether an utterance is currently audible or queued"""

    @property
    def paused(self) -> bool:
        return False

    @abstractmethod
    def speak(self, utterance: Utterance) -> None:
        """Start playback of an utterance"""

    @abstractmethod
    def cancel(self) -> None:
        """Stop and discard any utterance in progress"""

    def resume(self) -> None:
        """Resume a paused engine"""


class Recognizer(ABC):
    """A single speech-to-text capture session"""

    lang: str = "en-GB"
    continuous: bool = False
    interim_results: bool = False

    @abstractmethod
    def start(
        self,
        on_result: Callable[[RecognitionResults], None],
        on_error: Callable[[str], None]
    ) -> None:
        """Begin capture. Exactly one of the callbacks fires per capture."""

    @abstractmethod
    def stop(self) -> None:
        """End capture early"""


class SpeechRecognitionPlatform(ABC):

    @abstractmethod
    def create_recognizer(self) -> Recognizer:
        """Create a recognizer for one capture session"""


class RemoteSynthesisPlatform(SpeechSynthesisPlatform):
    """
    Synthesis platform whose actual playback happens in a remote client.

    The client announces its voice list, which is the readiness notification.
    Utterances are parked in a single-slot outbox until the client drains it;
    a newer utterance replaces an undelivered one.
    """

    def __init__(self, voices: Optional[List[Voice]] = None):
        self._voices: List[Voice] = list(voices or [])
        self._listeners: List[Callable[[], None]] = []
        self._outbox: Optional[Utterance] = None

    def get_voices(self) -> List[Voice]:
        return list(self._voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def announce_voices(self, voices: List[Voice]) -> None:
        """Record the client's voice list and notify listeners"""
        self._voices = list(voices)
        logger.info(f"Client announced {len(self._voices)} voices")

        for listener in list(self._listeners):
            listener()

    @property
    def speaking(self) -> bool:
        return self._outbox is not None

    def speak(self, utterance: Utterance) -> None:
        self._outbox = utterance
        if utterance.on_start:
            utterance.on_start()

    def cancel(self) -> None:
        self._outbox = None

    def drain(self) -> Optional[Utterance]:
        """Hand the pending utterance over to the client for playback"""
        utterance, self._outbox = self._outbox, None
        if utterance is not None and utterance.on_end:
            utterance.on_end()
        return utterance
