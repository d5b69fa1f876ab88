# roleplay/services/voice_selection.py
"""Voice selection policy: British English first, female voices preferred."""

from typing import List, Optional
import logging

from roleplay.services.speech_platform import Voice

logger = logging.getLogger(__name__)

BRITISH_LANG_MARKER = "en-GB"
BRITISH_NAME_MARKERS = ("British", "UK")
FEMALE_NAME_MARKERS = ("Female", "Woman")
ENGLISH_LANG_MARKER = "en-"


def is_british(voice: Voice) -> bool:
    return BRITISH_LANG_MARKER in voice.lang or any(m in voice.name for m in BRITISH_NAME_MARKERS)


def is_female(voice: Voice) -> bool:
    return any(m in voice.name for m in FEMALE_NAME_MARKERS)


def select_voice(voices: List[Voice]) -> Optional[Voice]:
    """
    Pick the voice used for the whole session.

    Order of preference:
    1. British English voice whose name signals a female speaker
    2. Any British English voice
    3. Any English voice
    4. The platform's first voice

    Args:
        voices: Voices offered by the platform, in platform order

    Returns:
        Selected voice, or None if the platform offers none
    """
    logger.debug(f"Available voices: {len(voices)}")

    british_voices = [v for v in voices if is_british(v)]
    logger.debug(f"British voices: {len(british_voices)}")

    if british_voices:
        female_voices = [v for v in british_voices if is_female(v)]
        logger.debug(f"Female British voices: {len(female_voices)}")
        return female_voices[0] if female_voices else british_voices[0]

    english_voices = [v for v in voices if ENGLISH_LANG_MARKER in v.lang]
    logger.debug(f"English voices: {len(english_voices)}")
    if english_voices:
        return english_voices[0]

    return voices[0] if voices else None
