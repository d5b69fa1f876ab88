# tests/conftest.py
"""
Shared fixtures for trainer tests.

Provides in-memory speech platforms and ready-made engines and sessions so
that no test touches a real audio stack.
"""

import pytest
from typing import Callable, List, Optional

from roleplay.core.dialogue_engine import DialogueEngine
from roleplay.core.orchestrator import TrainerSession
from roleplay.services.speech_platform import (
    RecognitionAlternative,
    RecognitionResults,
    Recognizer,
    SpeechRecognitionPlatform,
    SpeechSynthesisPlatform,
    Utterance,
    Voice,
)
from roleplay.services.speech_service import SpeechConfig, SpeechOutputAdapter


# Test data constants
US_VOICE = Voice(name="Google US English", lang="en-US")
HAZEL_VOICE = Voice(name="Microsoft Hazel - English (United Kingdom)", lang="en-GB")
UK_FEMALE_VOICE = Voice(name="Google UK English Female", lang="en-GB")
FRENCH_VOICE = Voice(name="Thomas", lang="fr-FR")

SAMPLE_VOICES = [US_VOICE, HAZEL_VOICE, UK_FEMALE_VOICE, FRENCH_VOICE]


class FakeSynthesisPlatform(SpeechSynthesisPlatform):
    """Synthesis engine that records utterances instead of playing them"""

    def __init__(self, voices: Optional[List[Voice]] = None, paused: bool = False):
        self.voices = list(voices or [])
        self.listeners: List[Callable[[], None]] = []
        self.spoken: List[Utterance] = []
        self.current: Optional[Utterance] = None
        self.cancel_count = 0
        self.resumed = False
        self._paused = paused

    def get_voices(self) -> List[Voice]:
        return list(self.voices)

    def on_voices_changed(self, callback: Callable[[], None]) -> None:
        self.listeners.append(callback)

    def load_voices(self, voices: List[Voice]) -> None:
        """Simulate the platform finishing its voice list load"""
        self.voices = list(voices)
        for listener in list(self.listeners):
            listener()

    @property
    def speaking(self) -> bool:
        return self.current is not None

    @property
    def paused(self) -> bool:
        return self._paused

    def speak(self, utterance: Utterance) -> None:
        self.spoken.append(utterance)
        self.current = utterance

    def cancel(self) -> None:
        self.cancel_count += 1
        self.current = None

    def resume(self) -> None:
        self._paused = False
        self.resumed = True

    def finish(self) -> None:
        """Simulate the current utterance finishing playback"""
        self.current = None


class FakeRecognizer(Recognizer):

    def __init__(self):
        self.on_result = None
        self.on_error = None
        self.started = False
        self.stopped = False

    def start(self, on_result, on_error) -> None:
        self.on_result = on_result
        self.on_error = on_error
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def emit(self, *transcripts: str) -> None:
        results: RecognitionResults = [[RecognitionAlternative(transcript=t, confidence=0.9) for t in transcripts]]
        self.on_result(results)

    def fail(self, error: str = "no-speech") -> None:
        self.on_error(error)


class FakeRecognitionPlatform(SpeechRecognitionPlatform):

    def __init__(self):
        self.recognizers: List[FakeRecognizer] = []

    def create_recognizer(self) -> FakeRecognizer:
        recognizer = FakeRecognizer()
        self.recognizers.append(recognizer)
        return recognizer

    @property
    def last(self) -> FakeRecognizer:
        return self.recognizers[-1]


@pytest.fixture
def engine():
    return DialogueEngine()


@pytest.fixture
def synthesis():
    """Synthesis platform with voices available immediately"""
    return FakeSynthesisPlatform(voices=SAMPLE_VOICES)


@pytest.fixture
def late_synthesis():
    """Synthesis platform whose voices load after construction"""
    return FakeSynthesisPlatform()


@pytest.fixture
def synthesis_factory():
    """Build synthesis platforms with custom voices or paused state"""
    return FakeSynthesisPlatform


@pytest.fixture
def sample_voices():
    return {
        "us": US_VOICE,
        "hazel": HAZEL_VOICE,
        "uk_female": UK_FEMALE_VOICE,
        "french": FRENCH_VOICE,
        "all": list(SAMPLE_VOICES),
    }


@pytest.fixture
def recognition():
    return FakeRecognitionPlatform()


@pytest.fixture
def speech_config():
    return SpeechConfig(locale="en-GB", pause_token=" ")


@pytest.fixture
def adapter(synthesis, recognition, speech_config):
    return SpeechOutputAdapter(synthesis=synthesis, recognition=recognition, config=speech_config)


@pytest.fixture
def trainer(engine, adapter):
    return TrainerSession(engine=engine, speech=adapter, session_id="test-session-123")
