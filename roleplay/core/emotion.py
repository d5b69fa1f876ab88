# roleplay/core/emotion.py
"""
Emotion derivation for off-script customer lines.

Scripted turns declare their own emotion. Canned replies (detail answers,
coaching prompts, the closure line) carry none, so the displayed emotion is
derived from the reply text instead, falling back to whatever was shown last.
"""

from typing import Optional, List, Tuple

from roleplay.models.flow_models import Emotion

# First match wins. Matching is case-sensitive.
EMOTION_CUES: List[Tuple[str, Emotion]] = [
    ("thank you", Emotion.SATISFIED),
    ("not sure", Emotion.FRUSTRATED),
    ("worried", Emotion.ANXIOUS),
    ("understand", Emotion.CONFUSED),
]


def derive_emotion(text: str, previous: Optional[Emotion] = None) -> Optional[Emotion]:
    """
    Derive the emotion to display for a canned reply.

    Args:
        text: Customer reply text
        previous: Emotion currently displayed

    Returns:
        The cue's emotion, or ``previous`` when no cue is present
    """
    for cue, emotion in EMOTION_CUES:
        if cue in text:
            return emotion
    return previous
