# tests/core/test_dialogue_engine.py
"""
Tests for the DialogueEngine - keyword classification and scenario progression.

Tests cover:
- Branch table structure
- Classification precedence and substring matching
- Detail queries and coaching prompts leaving progress untouched
- Resolution / helpful progression and scenario wrap-around
- Emotion accompanying each line
"""

import pytest

from roleplay.core.dialogue_engine import DialogueEngine, Transition, create_dialogue_engine
from roleplay.core.exceptions import DialogueFlowError, DialogueValidationError
from roleplay.models.flow_models import (
    CustomerDetails,
    Emotion,
    ResponseBranch,
    ResponseOutcome,
    Scenario,
    Turn,
)
from roleplay.scenarios import SCENARIOS
from roleplay.scenarios import customer_replies as replies


HELPFUL_INPUT = "Can you help me with that?"
RESOLUTION_INPUT = "I think that's resolved now, thank you"
UNHELPFUL_INPUT = "The weather is nice today."


def finish_scenario(engine: DialogueEngine, max_turns: int = 10):
    """Resolve the current scenario and keep helping until the next one opens"""
    engine.respond(RESOLUTION_INPUT)
    for _ in range(max_turns):
        line = engine.respond(HELPFUL_INPUT)
        if line.outcome == ResponseOutcome.NEXT_SCENARIO:
            return line
    pytest.fail("Scenario never advanced")


# ===========================================
# UNIT TESTS - FSM STRUCTURE
# ===========================================

@pytest.mark.unit
class TestDialogueEngineStructure:
    """Test engine construction and branch table"""

    def test_initial_progress(self, engine):
        progress = engine.progress
        assert progress.current_scenario_index == 0
        assert progress.step_within_scenario == 0
        assert progress.resolved is False

    def test_loads_reference_catalogue(self, engine):
        assert len(engine.scenarios) >= 4
        assert engine.scenarios == tuple(SCENARIOS)

    def test_branch_table_in_precedence_order(self, engine):
        branches = [t.branch for t in engine.transitions]
        assert branches == [
            ResponseBranch.IDENTITY_QUERY,
            ResponseBranch.ID_QUERY,
            ResponseBranch.CENTER_QUERY,
            ResponseBranch.UNHELPFUL,
            ResponseBranch.RESOLUTION,
            ResponseBranch.HELPFUL,
        ]
        for transition in engine.transitions:
            assert isinstance(transition, Transition)
            assert engine._transition_map[transition.branch] is transition

    def test_only_resolution_and_helpful_mutate_progress(self, engine):
        mutating = {t.branch for t in engine.transitions if t.mutates_progress}
        assert mutating == {ResponseBranch.RESOLUTION, ResponseBranch.HELPFUL}

    def test_turn_table_is_flat(self, engine):
        assert engine._turn_table[(0, 1)] == SCENARIOS[0].follow_ups[1]
        assert (1, 1) not in engine._turn_table
        assert len(engine._turn_table) == sum(len(s.follow_ups) for s in SCENARIOS)

    def test_empty_catalogue_rejected(self):
        with pytest.raises(DialogueValidationError) as exc_info:
            DialogueEngine(scenarios=[])
        assert exc_info.value.field == "scenarios"

    def test_progress_is_a_copy(self, engine):
        progress = engine.progress
        progress.current_scenario_index = 3
        assert engine.progress.current_scenario_index == 0

    def test_flow_summary(self, engine):
        summary = create_dialogue_engine().get_flow_summary()
        assert summary["total_scenarios"] == len(SCENARIOS)
        assert summary["total_branches"] == 6
        assert summary["branches"][0]["branch"] == "identity_query"
        assert summary["progress"]["resolved"] is False

    def test_missing_branch_raises_flow_error(self):
        class DetailsOnlyEngine(DialogueEngine):
            def _setup_transitions(self):
                self.add_transition(
                    branch=ResponseBranch.IDENTITY_QUERY,
                    keywords=replies.IDENTITY_KEYWORDS,
                    handler=self._handle_identity_query
                )

        engine = DetailsOnlyEngine()
        assert engine.respond("What is your name?").text == "My name is Sarah Johnson."

        with pytest.raises(DialogueFlowError) as exc_info:
            engine.respond(HELPFUL_INPUT)

        assert "helpful" in exc_info.value.message
        assert exc_info.value.current_state == "scenario=0 step=0 resolved=False"
        assert engine.progress.step_within_scenario == 0


# ===========================================
# UNIT TESTS - CLASSIFICATION
# ===========================================

@pytest.mark.unit
class TestClassification:
    """Test keyword classification and precedence"""

    @pytest.mark.parametrize("user_input,expected", [
        ("What is your name?", ResponseBranch.IDENTITY_QUERY),
        ("Who are you?", ResponseBranch.IDENTITY_QUERY),
        ("WHAT IS YOUR NAME", ResponseBranch.IDENTITY_QUERY),
        ("What is your ID?", ResponseBranch.ID_QUERY),
        ("Can I have your student number?", ResponseBranch.ID_QUERY),
        ("Which centre are you at?", ResponseBranch.CENTER_QUERY),
        ("What is your Center?", ResponseBranch.CENTER_QUERY),
        (UNHELPFUL_INPUT, ResponseBranch.UNHELPFUL),
        (RESOLUTION_INPUT, ResponseBranch.RESOLUTION),
        ("Great, that's all sorted.", ResponseBranch.RESOLUTION),
        (HELPFUL_INPUT, ResponseBranch.HELPFUL),
        ("I apologize for the trouble.", ResponseBranch.HELPFUL),
    ])
    def test_classify(self, engine, user_input, expected):
        assert engine.classify_user_input(user_input) == expected

    def test_identity_beats_id(self, engine):
        assert engine.classify_user_input("Your name and ID please") == ResponseBranch.IDENTITY_QUERY

    def test_id_beats_helpful(self, engine):
        assert engine.classify_user_input("Could you confirm your ID so I can help?") == ResponseBranch.ID_QUERY

    def test_resolution_beats_helpful(self, engine):
        assert engine.classify_user_input("I have resolved it and can help more") == ResponseBranch.RESOLUTION

    def test_substring_not_word_match(self, engine):
        # "did" contains "id"
        assert engine.classify_user_input("Did that work?") == ResponseBranch.ID_QUERY

    def test_empty_input_is_unhelpful(self, engine):
        assert engine.classify_user_input("") == ResponseBranch.UNHELPFUL

    def test_classification_does_not_touch_progress(self, engine):
        engine.classify_user_input(HELPFUL_INPUT)
        assert engine.progress.step_within_scenario == 0


# ===========================================
# UNIT TESTS - OPENING LINE AND DETAILS
# ===========================================

@pytest.mark.unit
class TestOpeningLine:

    def test_opening_line(self, engine):
        line = engine.get_opening_line()
        assert line.text == SCENARIOS[0].opening.text
        assert line.emotion == Emotion.FRUSTRATED
        assert line.outcome == ResponseOutcome.OPENING
        assert line.scripted is True
        assert line.branch is None

    def test_opening_line_idempotent(self, engine):
        first = engine.get_opening_line()
        second = engine.get_opening_line()
        assert first == second
        assert engine.progress.step_within_scenario == 0

    def test_customer_details(self, engine):
        details = engine.get_customer_details()
        assert details.name == "Sarah Johnson"
        assert details.student_id == "STU2024001"
        assert details.center_number == "CN12345"

    def test_opening_line_after_each_transition(self, engine):
        for index in range(1, len(SCENARIOS)):
            line = finish_scenario(engine)
            assert line.text == SCENARIOS[index].opening.text
            assert line.emotion == SCENARIOS[index].opening.emotion

            opening = engine.get_opening_line()
            assert opening.text == SCENARIOS[index].opening.text
            assert opening.emotion == SCENARIOS[index].opening.emotion
            assert engine.get_opening_line() == opening


# ===========================================
# UNIT TESTS - NON-MUTATING BRANCHES
# ===========================================

@pytest.mark.unit
class TestDetailQueries:

    def test_identity_reply(self, engine):
        assert engine.classify_and_advance("What is your name?") == "My name is Sarah Johnson."

    def test_id_reply(self, engine):
        assert engine.classify_and_advance("What is your ID?") == "My student ID is STU2024001."

    def test_center_reply(self, engine):
        assert engine.classify_and_advance("Which centre are you at?") == "My center number is CN12345."

    @pytest.mark.parametrize("query", [
        "What is your name?",
        "What is your ID?",
        "Which centre are you at?",
    ])
    def test_queries_never_mutate_progress(self, engine, query):
        engine.respond(HELPFUL_INPUT)
        engine.respond(RESOLUTION_INPUT)
        before = engine.progress

        line = engine.respond(query)

        assert line.outcome == ResponseOutcome.CUSTOMER_DETAIL
        assert engine.progress == before

    def test_repeated_unhelpful_input(self, engine):
        for _ in range(5):
            text = engine.classify_and_advance(UNHELPFUL_INPUT)
            assert text == replies.UNHELPFUL_REPLY
            assert engine.progress.current_scenario_index == 0
            assert engine.progress.step_within_scenario == 0


# ===========================================
# UNIT TESTS - PROGRESSION
# ===========================================

@pytest.mark.unit
class TestProgression:

    def test_helpful_input_returns_second_follow_up(self, engine):
        text = engine.classify_and_advance(HELPFUL_INPUT)
        assert text.startswith("I need to register for my final exams")
        assert engine.progress.step_within_scenario == 1
        assert engine.current_emotion == Emotion.ANXIOUS

    def test_resolution_sets_flag_without_advancing(self, engine):
        line = engine.respond(RESOLUTION_INPUT)
        assert line.text == replies.CLOSURE_REPLY
        assert line.outcome == ResponseOutcome.CLOSURE
        progress = engine.progress
        assert progress.resolved is True
        assert progress.step_within_scenario == 0
        assert progress.current_scenario_index == 0

    def test_resolution_alone_never_advances_scenario(self, engine):
        for _ in range(3):
            engine.respond(RESOLUTION_INPUT)
        assert engine.progress.current_scenario_index == 0

    def test_exhausted_unresolved_scenario_is_stuck(self, engine):
        engine.respond(HELPFUL_INPUT)
        for _ in range(3):
            line = engine.respond(HELPFUL_INPUT)
            assert line.text == replies.STILL_STUCK_REPLY
            assert line.outcome == ResponseOutcome.STILL_STUCK
            progress = engine.progress
            assert progress.current_scenario_index == 0
            # Parked exactly one past the last follow-up
            assert progress.step_within_scenario == len(SCENARIOS[0].follow_ups)

    def test_resolve_then_help_advances_scenario(self, engine):
        engine.respond(HELPFUL_INPUT)
        engine.respond(RESOLUTION_INPUT)

        line = engine.respond(HELPFUL_INPUT)

        assert line.outcome == ResponseOutcome.NEXT_SCENARIO
        assert line.text == SCENARIOS[1].opening.text
        progress = engine.progress
        assert progress.current_scenario_index == 1
        assert progress.step_within_scenario == 0
        assert progress.resolved is False

    def test_resolution_mid_script_still_shows_follow_up(self, engine):
        engine.respond(RESOLUTION_INPUT)

        line = engine.respond(HELPFUL_INPUT)
        assert line.outcome == ResponseOutcome.FOLLOW_UP
        assert engine.progress.current_scenario_index == 0

        line = engine.respond(HELPFUL_INPUT)
        assert line.outcome == ResponseOutcome.NEXT_SCENARIO
        assert engine.progress.current_scenario_index == 1

    def test_scenario_index_wraps(self, engine):
        for _ in range(len(SCENARIOS) - 1):
            finish_scenario(engine)
        assert engine.progress.current_scenario_index == len(SCENARIOS) - 1

        line = finish_scenario(engine)

        assert engine.progress.current_scenario_index == 0
        assert line.text == SCENARIOS[0].opening.text

    def test_step_invariant_holds_throughout(self, engine):
        inputs = [HELPFUL_INPUT, UNHELPFUL_INPUT, HELPFUL_INPUT, "What is your ID?",
                  RESOLUTION_INPUT, HELPFUL_INPUT, HELPFUL_INPUT, HELPFUL_INPUT]
        for user_input in inputs * 3:
            engine.respond(user_input)
            progress = engine.progress
            follow_ups = len(engine.scenarios[progress.current_scenario_index].follow_ups)
            assert 0 <= progress.step_within_scenario <= follow_ups


# ===========================================
# UNIT TESTS - EMOTION
# ===========================================

@pytest.mark.unit
class TestLineEmotion:

    def test_initial_emotion_is_opening_emotion(self, engine):
        assert engine.current_emotion == Emotion.FRUSTRATED

    def test_unhelpful_reply_is_frustrated(self, engine):
        engine.respond(HELPFUL_INPUT)
        line = engine.respond(UNHELPFUL_INPUT)
        assert line.emotion == Emotion.FRUSTRATED
        assert line.scripted is False

    def test_detail_reply_keeps_previous_emotion(self, engine):
        engine.respond(HELPFUL_INPUT)
        line = engine.respond("What is your name?")
        assert line.emotion == Emotion.ANXIOUS

    def test_scripted_emotion_is_authoritative(self, engine):
        engine.respond(UNHELPFUL_INPUT)
        line = engine.respond(HELPFUL_INPUT)
        assert line.scripted is True
        assert line.emotion == SCENARIOS[0].follow_ups[1].emotion


# ===========================================
# UNIT TESTS - CUSTOM CATALOGUE
# ===========================================

@pytest.mark.unit
class TestCustomCatalogue:

    @pytest.fixture
    def two_scenarios(self):
        customer = CustomerDetails(name="Alex Doe", student_id="STU1", center_number="CN1")
        return [
            Scenario(
                scenario_id="first",
                title="First",
                opening=Turn(text="First opening", emotion=Emotion.CALM),
                follow_ups=(),
                customer_details=customer
            ),
            Scenario(
                scenario_id="second",
                title="Second",
                opening=Turn(text="Second opening", emotion=None),
                follow_ups=(Turn(text="a"), Turn(text="b"), Turn(text="c")),
                customer_details=customer
            ),
        ]

    def test_scenario_without_follow_ups(self, two_scenarios):
        engine = DialogueEngine(scenarios=two_scenarios)

        assert engine.respond(HELPFUL_INPUT).outcome == ResponseOutcome.STILL_STUCK
        assert engine.progress.step_within_scenario == 0

        engine.respond(RESOLUTION_INPUT)
        line = engine.respond(HELPFUL_INPUT)
        assert line.text == "Second opening"
        assert line.emotion is None

    def test_custom_customer_details(self, two_scenarios):
        engine = DialogueEngine(scenarios=two_scenarios)
        assert engine.classify_and_advance("What is your name?") == "My name is Alex Doe."

    def test_follow_ups_walked_in_order(self, two_scenarios):
        engine = DialogueEngine(scenarios=list(reversed(two_scenarios)))
        texts = [engine.classify_and_advance(HELPFUL_INPUT) for _ in range(3)]
        assert texts == ["b", "c", replies.STILL_STUCK_REPLY]
