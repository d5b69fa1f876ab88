# roleplay/models/session_state.py

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from roleplay.models.flow_models import Emotion


class SessionProgress(BaseModel):
    """
    Progress through the scenario catalogue for a single trainee session.
    Never persisted beyond the session.
    """
    current_scenario_index: int = 0
    step_within_scenario: int = 0
    resolved: bool = False


class TranscriptMessage(BaseModel):
    text: str
    is_from_trainee: bool
    emotion: Optional[Emotion] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
