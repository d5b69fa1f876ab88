# roleplay/core/dialogue_engine.py
"""
Dialogue Engine - FSM-based conversation progression for the role-play trainer.

The engine owns the scenario catalogue and the trainee's progress through it.
Each trainee message is classified into exactly one ResponseBranch by keyword
matching, and the branch handler decides which customer line surfaces next.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Any
from dataclasses import dataclass
import logging

from roleplay.models.flow_models import (
    CustomerDetails,
    DialogueLine,
    Emotion,
    ResponseBranch,
    ResponseOutcome,
    Scenario,
    Turn,
)
from roleplay.models.session_state import SessionProgress
from roleplay.core.emotion import derive_emotion
from roleplay.core.exceptions import DialogueFlowError, DialogueValidationError
from roleplay.scenarios import SCENARIOS
from roleplay.scenarios import customer_replies as replies

logger = logging.getLogger(__name__)

BranchHandler = Callable[[str], DialogueLine]


@dataclass
class Transition:
    """Represents the handling of one classified branch"""
    branch: ResponseBranch
    keywords: Tuple[str, ...]
    handler: BranchHandler
    mutates_progress: bool = False
    description: str = ""


class DialogueEngine:
    """
    Finite state machine driving one trainee session through the scenarios.

    State is the SessionProgress triple (scenario index, step within the
    scenario, resolved flag). Only the resolution and helpful branches
    change it; detail queries and unhelpful input leave it untouched.
    """

    def __init__(self, scenarios: Optional[Sequence[Scenario]] = None):
        """
        Initialize the engine with a scenario catalogue.

        Args:
            scenarios: Ordered catalogue, defaults to the exam support scenarios

        Raises:
            DialogueValidationError: If the catalogue is empty
        """
        self.logger = logging.getLogger(__name__)

        self.scenarios: Tuple[Scenario, ...] = tuple(SCENARIOS if scenarios is None else scenarios)
        if not self.scenarios:
            raise DialogueValidationError(
                "Scenario catalogue must contain at least one scenario",
                field="scenarios",
                value=0
            )

        self._progress = SessionProgress()

        # Flat lookup of follow-up turns: {(scenario_index, step): Turn}
        self._turn_table: Dict[Tuple[int, int], Turn] = {}
        self._build_turn_table()

        # Branches in precedence order
        self.transitions: List[Transition] = []
        self._transition_map: Dict[ResponseBranch, Transition] = {}
        self._setup_transitions()
        self._build_transition_map()

        self._current_emotion: Optional[Emotion] = self.scenarios[0].opening.emotion

        logger.info(f"DialogueEngine initialized with {len(self.scenarios)} scenarios")

    def _build_turn_table(self):
        """Flatten every scenario's follow-ups into the (scenario, step) table"""
        self._turn_table.clear()
        for scenario_index, scenario in enumerate(self.scenarios):
            for step, turn in enumerate(scenario.follow_ups):
                self._turn_table[(scenario_index, step)] = turn

    def _setup_transitions(self):
        """Define the branch table, highest precedence first"""

        self.add_transition(
            branch=ResponseBranch.IDENTITY_QUERY,
            keywords=replies.IDENTITY_KEYWORDS,
            handler=self._handle_identity_query,
            description="Trainee asks who the customer is -> customer's name"
        )

        self.add_transition(
            branch=ResponseBranch.ID_QUERY,
            keywords=replies.ID_KEYWORDS,
            handler=self._handle_id_query,
            description="Trainee asks for the student ID -> student ID"
        )

        self.add_transition(
            branch=ResponseBranch.CENTER_QUERY,
            keywords=replies.CENTER_KEYWORDS,
            handler=self._handle_center_query,
            description="Trainee asks for the center -> center number"
        )

        self.add_transition(
            branch=ResponseBranch.UNHELPFUL,
            keywords=(),
            handler=self._handle_unhelpful,
            description="No helpful or resolution keyword -> coaching prompt"
        )

        self.add_transition(
            branch=ResponseBranch.RESOLUTION,
            keywords=replies.RESOLUTION_KEYWORDS,
            handler=self._handle_resolution,
            mutates_progress=True,
            description="Trainee declares the issue resolved -> closure line, mark resolved"
        )

        self.add_transition(
            branch=ResponseBranch.HELPFUL,
            keywords=replies.HELPFUL_KEYWORDS,
            handler=self._handle_helpful,
            mutates_progress=True,
            description="Helpful input -> next follow-up, next scenario or still-stuck prompt"
        )

    # ===========================================
    # CORE FSM METHODS
    # ===========================================

    def add_transition(
        self,
        branch: ResponseBranch,
        keywords: Sequence[str],
        handler: BranchHandler,
        mutates_progress: bool = False,
        description: str = ""
    ):
        """Add a branch to the table"""
        self.transitions.append(Transition(
            branch=branch,
            keywords=tuple(keywords),
            handler=handler,
            mutates_progress=mutates_progress,
            description=description
        ))

    def _build_transition_map(self):
        """Build fast lookup map for branches"""
        self._transition_map.clear()

        for transition in self.transitions:
            if transition.branch in self._transition_map:
                self.logger.warning(f"Duplicate transition for {transition.branch.value}, keeping the last one")
            self._transition_map[transition.branch] = transition

    def classify_user_input(self, user_input: str) -> ResponseBranch:
        """
        Classify trainee input into a response branch.

        Matching is a case-insensitive substring test; the first matching
        branch wins.

        Args:
            user_input: Raw trainee text

        Returns:
            Classified ResponseBranch
        """
        if replies.contains_any(user_input, replies.IDENTITY_KEYWORDS):
            return ResponseBranch.IDENTITY_QUERY
        if replies.contains_any(user_input, replies.ID_KEYWORDS):
            return ResponseBranch.ID_QUERY
        if replies.contains_any(user_input, replies.CENTER_KEYWORDS):
            return ResponseBranch.CENTER_QUERY

        is_helpful = replies.contains_any(user_input, replies.HELPFUL_KEYWORDS)
        is_resolved = replies.contains_any(user_input, replies.RESOLUTION_KEYWORDS)

        if not is_helpful and not is_resolved:
            return ResponseBranch.UNHELPFUL
        if is_resolved:
            return ResponseBranch.RESOLUTION
        return ResponseBranch.HELPFUL

    def respond(self, user_input: str) -> DialogueLine:
        """
        Classify trainee input and execute the matching branch.

        Args:
            user_input: Raw trainee text

        Returns:
            The customer line to surface next

        Raises:
            DialogueFlowError: If the classified branch has no handler
        """
        branch = self.classify_user_input(user_input)
        transition = self._transition_map.get(branch)
        if transition is None:
            raise DialogueFlowError(
                f"No transition defined for branch {branch.value}",
                current_state=self._describe_progress()
            )

        self.logger.info(f"Classified input as {branch.value} at {self._describe_progress()}")

        line = transition.handler(user_input)
        self._current_emotion = line.emotion

        if transition.mutates_progress:
            self.logger.info(f"Progress now {self._describe_progress()} (outcome: {line.outcome.value})")

        return line

    def classify_and_advance(self, user_input: str) -> str:
        """Process trainee input and return the next customer line's text"""
        return self.respond(user_input).text

    # ===========================================
    # ACCESSORS
    # ===========================================

    def get_opening_line(self) -> DialogueLine:
        """Return the current scenario's opening line without changing progress"""
        scenario = self.current_scenario
        return self._scripted_line(
            scenario.opening,
            branch=None,
            outcome=ResponseOutcome.OPENING
        )

    def get_customer_details(self) -> CustomerDetails:
        return self.current_scenario.customer_details

    @property
    def current_scenario(self) -> Scenario:
        return self.scenarios[self._progress.current_scenario_index]

    @property
    def current_emotion(self) -> Optional[Emotion]:
        """Emotion accompanying the most recently surfaced line"""
        return self._current_emotion

    @property
    def progress(self) -> SessionProgress:
        return self._progress.model_copy()

    # ===========================================
    # BRANCH HANDLERS
    # ===========================================

    def _handle_identity_query(self, user_input: str) -> DialogueLine:
        details = self.get_customer_details()
        return self._canned_line(
            replies.IDENTITY_REPLY.format(name=details.name),
            ResponseBranch.IDENTITY_QUERY,
            ResponseOutcome.CUSTOMER_DETAIL
        )

    def _handle_id_query(self, user_input: str) -> DialogueLine:
        details = self.get_customer_details()
        return self._canned_line(
            replies.ID_REPLY.format(student_id=details.student_id),
            ResponseBranch.ID_QUERY,
            ResponseOutcome.CUSTOMER_DETAIL
        )

    def _handle_center_query(self, user_input: str) -> DialogueLine:
        details = self.get_customer_details()
        return self._canned_line(
            replies.CENTER_REPLY.format(center_number=details.center_number),
            ResponseBranch.CENTER_QUERY,
            ResponseOutcome.CUSTOMER_DETAIL
        )

    def _handle_unhelpful(self, user_input: str) -> DialogueLine:
        return self._canned_line(
            replies.UNHELPFUL_REPLY,
            ResponseBranch.UNHELPFUL,
            ResponseOutcome.COACHING_PROMPT
        )

    def _handle_resolution(self, user_input: str) -> DialogueLine:
        """Mark the scenario resolved. Advancing waits for the next helpful turn."""
        self._progress.resolved = True
        return self._canned_line(
            replies.CLOSURE_REPLY,
            ResponseBranch.RESOLUTION,
            ResponseOutcome.CLOSURE
        )

    def _handle_helpful(self, user_input: str) -> DialogueLine:
        """Move one step through the script, or on to the next scenario once resolved."""
        scenario_index = self._progress.current_scenario_index
        next_step = self._progress.step_within_scenario + 1

        turn = self._turn_table.get((scenario_index, next_step))
        if turn is not None:
            self._progress.step_within_scenario = next_step
            return self._scripted_line(turn, ResponseBranch.HELPFUL, ResponseOutcome.FOLLOW_UP)

        if self._progress.resolved:
            self._advance_scenario()
            return self._scripted_line(
                self.current_scenario.opening,
                ResponseBranch.HELPFUL,
                ResponseOutcome.NEXT_SCENARIO
            )

        # Script exhausted: park one past the last follow-up
        self._progress.step_within_scenario = len(self.current_scenario.follow_ups)
        return self._canned_line(
            replies.STILL_STUCK_REPLY,
            ResponseBranch.HELPFUL,
            ResponseOutcome.STILL_STUCK
        )

    def _advance_scenario(self):
        old_index = self._progress.current_scenario_index
        new_index = (old_index + 1) % len(self.scenarios)

        self._progress.current_scenario_index = new_index
        self._progress.step_within_scenario = 0
        self._progress.resolved = False

        self.logger.info(
            f"Scenario transition: {self.scenarios[old_index].scenario_id} -> "
            f"{self.scenarios[new_index].scenario_id}"
        )

    # ===========================================
    # HELPERS
    # ===========================================

    def _scripted_line(
        self,
        turn: Turn,
        branch: Optional[ResponseBranch],
        outcome: ResponseOutcome
    ) -> DialogueLine:
        return DialogueLine(
            text=turn.text,
            emotion=turn.emotion,
            branch=branch,
            outcome=outcome,
            scripted=True,
            scenario_index=self._progress.current_scenario_index,
            step=self._progress.step_within_scenario
        )

    def _canned_line(self, text: str, branch: ResponseBranch, outcome: ResponseOutcome) -> DialogueLine:
        return DialogueLine(
            text=text,
            emotion=derive_emotion(text, self._current_emotion),
            branch=branch,
            outcome=outcome,
            scripted=False,
            scenario_index=self._progress.current_scenario_index,
            step=self._progress.step_within_scenario
        )

    def _describe_progress(self) -> str:
        p = self._progress
        return f"scenario={p.current_scenario_index} step={p.step_within_scenario} resolved={p.resolved}"

    def get_flow_summary(self) -> Dict[str, Any]:
        """Get summary of the branch table for debugging/monitoring"""
        return {
            "total_scenarios": len(self.scenarios),
            "total_branches": len(self.transitions),
            "scenarios": [
                {
                    "index": index,
                    "scenario_id": s.scenario_id,
                    "title": s.title,
                    "follow_ups": len(s.follow_ups)
                }
                for index, s in enumerate(self.scenarios)
            ],
            "branches": [
                {
                    "branch": t.branch.value,
                    "keywords": list(t.keywords),
                    "mutates_progress": t.mutates_progress,
                    "description": t.description
                }
                for t in self.transitions
            ],
            "progress": self._progress.model_dump()
        }


def create_dialogue_engine(scenarios: Optional[Sequence[Scenario]] = None) -> DialogueEngine:
    """Create a properly initialized dialogue engine"""
    return DialogueEngine(scenarios)
