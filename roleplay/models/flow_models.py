# roleplay/models/flow_models.py

from enum import Enum
from typing import FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Emotion(str, Enum):
    FRUSTRATED = "frustrated"
    CONFUSED = "confused"
    ANXIOUS = "anxious"
    CALM = "calm"
    SATISFIED = "satisfied"


class ResponseBranch(str, Enum):
    """Branches a trainee message can be classified into, in precedence order"""

    IDENTITY_QUERY = "identity_query"
    ID_QUERY = "id_query"
    CENTER_QUERY = "center_query"
    UNHELPFUL = "unhelpful"
    RESOLUTION = "resolution"
    HELPFUL = "helpful"


class ResponseOutcome(str, Enum):
    OPENING = "opening"
    CUSTOMER_DETAIL = "customer_detail"
    COACHING_PROMPT = "coaching_prompt"
    CLOSURE = "closure"
    FOLLOW_UP = "follow_up"
    NEXT_SCENARIO = "next_scenario"
    STILL_STUCK = "still_stuck"


class CustomerDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    student_id: str
    center_number: str


class Turn(BaseModel):
    """One scripted customer utterance."""
    model_config = ConfigDict(frozen=True)

    text: str
    # Descriptive only, classification uses the fixed keyword lists
    keywords: FrozenSet[str] = Field(default_factory=frozenset)
    emotion: Optional[Emotion] = None


class Scenario(BaseModel):
    """
    One customer problem thread: an opening line plus the follow-up lines
    surfaced while the trainee keeps engaging.
    """
    model_config = ConfigDict(frozen=True)

    scenario_id: str
    title: str
    opening: Turn
    follow_ups: Tuple[Turn, ...] = ()
    customer_details: CustomerDetails


class DialogueLine(BaseModel):
    """A customer line as surfaced to the presentation layer."""
    text: str
    emotion: Optional[Emotion] = None
    branch: Optional[ResponseBranch] = None
    outcome: ResponseOutcome
    scripted: bool = False
    scenario_index: int = 0
    step: int = 0
