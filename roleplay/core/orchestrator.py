# roleplay/core/orchestrator.py
"""
Trainer Session - per-trainee glue between the dialogue engine and speech.

One TrainerSession exists per trainee session. It owns exactly one
DialogueEngine and one SpeechOutputAdapter, keeps the visible transcript and
the displayed emotion, and implements the microphone toggle.
"""

from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4
import logging

from roleplay.core.dialogue_engine import DialogueEngine
from roleplay.core.exceptions import validation_error
from roleplay.models.flow_models import DialogueLine, Emotion
from roleplay.models.session_state import TranscriptMessage
from roleplay.services.speech_service import SpeechOutputAdapter

logger = logging.getLogger(__name__)

COACHING_TIPS = [
    "Start by acknowledging the customer's issue",
    "Use empathetic language",
    "Ask clarifying questions when needed",
    "Provide clear, step-by-step solutions",
    "Confirm understanding before proceeding",
]


class TrainerSession:
    """
    Presentation-facing session object.

    This session:
    1. Requests the opening line and speaks it
    2. Forwards trainee messages to the engine
    3. Records the transcript and displayed emotion
    4. Speaks every customer reply
    5. Surfaces dictated text as pending input
    """

    def __init__(
        self,
        engine: Optional[DialogueEngine] = None,
        speech: Optional[SpeechOutputAdapter] = None,
        session_id: Optional[str] = None
    ):
        """
        Initialize a trainer session.

        Args:
            engine: Dialogue engine (creates a new one if not provided)
            speech: Speech adapter (text-only adapter if not provided)
            session_id: Identifier for logging, generated if not provided
        """
        self.session_id = session_id or str(uuid4())
        self.engine = engine or DialogueEngine()
        self.speech = speech or SpeechOutputAdapter()

        self.messages: List[TranscriptMessage] = []
        self.current_emotion: Optional[Emotion] = None
        self.pending_input: Optional[str] = None
        self.is_listening = False

        logger.info(f"Trainer session {self.session_id[:8]} created")

    def start(self) -> DialogueLine:
        """
        Start the conversation with the current scenario's opening line.

        Returns:
            The opening line
        """
        line = self.engine.get_opening_line()

        self.messages = [TranscriptMessage(text=line.text, is_from_trainee=False, emotion=line.emotion)]
        self.current_emotion = line.emotion
        self.speech.speak(line.text, line.emotion)

        logger.info(f"Session {self.session_id[:8]} started with scenario {line.scenario_index}")
        return line

    def submit(self, user_input: str) -> DialogueLine:
        """
        Handle one trainee message.

        Args:
            user_input: Trainee's typed or dictated text

        Returns:
            The customer's reply

        Raises:
            DialogueValidationError: If the message is blank
        """
        if not user_input or not user_input.strip():
            raise validation_error("Message must not be empty", field="message", value=user_input)

        logger.info(f"Session {self.session_id[:8]} handling message: '{user_input[:50]}...'")

        self.messages.append(TranscriptMessage(text=user_input, is_from_trainee=True))
        self.pending_input = None

        line = self.engine.respond(user_input)

        self.current_emotion = line.emotion
        self.messages.append(TranscriptMessage(text=line.text, is_from_trainee=False, emotion=line.emotion))
        self.speech.speak(line.text, line.emotion)

        logger.info(f"Reply outcome: {line.outcome.value}, emotion: {line.emotion.value if line.emotion else None}")
        return line

    def toggle_listening(self, on_transcript: Optional[Callable[[str], None]] = None) -> bool:
        """
        Toggle dictation.

        Args:
            on_transcript: Optional callback receiving the recognized text

        Returns:
            True if listening after the toggle
        """
        if self.is_listening and not self.speech.is_listening:
            logger.info("Previous capture ended without a transcript")
            self.is_listening = False

        if self.is_listening:
            self.speech.stop_listening()
            self.is_listening = False
            return False

        def handle_transcript(text: str) -> None:
            self.pending_input = text
            self.is_listening = False
            if on_transcript:
                on_transcript(text)

        self.speech.start_listening(handle_transcript)
        # Unsupported recognition leaves the adapter idle
        self.is_listening = self.speech.is_listening
        return self.is_listening

    def get_session_info(self) -> Dict[str, Any]:
        """
        Get information about the session.

        Returns:
            Dict with session information
        """
        return {
            "session_id": self.session_id,
            "progress": self.engine.progress.model_dump(),
            "current_emotion": self.current_emotion.value if self.current_emotion else None,
            "customer": self.engine.get_customer_details().model_dump(),
            "message_count": len(self.messages),
            "is_listening": self.is_listening,
            "pending_input": self.pending_input
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Check health of the session and its components.

        Returns:
            Dict with health status
        """
        health_status = {
            "session": "healthy",
            "dialogue_engine": "healthy",
            "speech": {},
            "overall": "healthy"
        }

        try:
            summary = self.engine.get_flow_summary()
            health_status["summary"] = {
                "total_scenarios": summary["total_scenarios"],
                "total_branches": summary["total_branches"],
                "message_count": len(self.messages)
            }

            speech_status = await self.speech.health_check()
            health_status["speech"] = speech_status
            if speech_status.get("status") != "ready":
                health_status["overall"] = "degraded"

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            health_status["session"] = f"error: {str(e)}"
            health_status["overall"] = "unhealthy"

        return health_status
