# roleplay/scenarios/exam_support.py
"""
Exam support desk scenarios.

A student calls the exam office with one problem at a time. Every scenario
uses the same caller identity.
"""

from roleplay.models.flow_models import CustomerDetails, Emotion, Scenario, Turn

CUSTOMER = CustomerDetails(
    name="Sarah Johnson",
    student_id="STU2024001",
    center_number="CN12345"
)

# ============================================================================
# REGISTRATION ERROR
# ============================================================================

REGISTRATION_ERROR = Scenario(
    scenario_id="registration_error",
    title="Exam registration keeps failing",
    opening=Turn(
        text="Hello, I'm having trouble with my exam registration. The system keeps showing an error message when I try to submit my application. I've been trying for hours and I'm getting really frustrated. Can you help me?",
        keywords=frozenset({"help", "error", "registration", "submit"}),
        emotion=Emotion.FRUSTRATED
    ),
    follow_ups=(
        Turn(
            text="The error message says 'Invalid student ID format'. I've checked my ID number multiple times and it's correct. I don't understand why it's not working.",
            keywords=frozenset({"id", "format", "invalid", "number"}),
            emotion=Emotion.CONFUSED
        ),
        Turn(
            text="I need to register for my final exams by tomorrow, and I'm really worried I won't be able to. What should I do?",
            keywords=frozenset({"deadline", "tomorrow", "worried", "urgent"}),
            emotion=Emotion.ANXIOUS
        ),
    ),
    customer_details=CUSTOMER
)

# ============================================================================
# TIMETABLE CLASH
# ============================================================================

TIMETABLE_CLASH = Scenario(
    scenario_id="timetable_clash",
    title="Two exams at the same time",
    opening=Turn(
        text="I've just received my exam timetable and there's a conflict between two of my exams. They're scheduled for the same time on the same day. I don't know what to do about this.",
        keywords=frozenset({"timetable", "conflict", "schedule", "same time"}),
        emotion=Emotion.ANXIOUS
    ),
    follow_ups=(
        Turn(
            text="Both exams are core modules for my degree, and I can't afford to miss either of them. Is there any way to reschedule one of them?",
            keywords=frozenset({"core", "modules", "reschedule", "important"}),
            emotion=Emotion.ANXIOUS
        ),
    ),
    customer_details=CUSTOMER
)

# ============================================================================
# ACCESS ARRANGEMENTS
# ============================================================================

ACCESS_ARRANGEMENTS = Scenario(
    scenario_id="access_arrangements",
    title="Special accommodations not confirmed",
    opening=Turn(
        text="I need to request special accommodations for my exams due to my disability. I've submitted the medical documentation but haven't heard back yet. The exams are in two weeks.",
        keywords=frozenset({"accommodations", "disability", "medical", "documentation"}),
        emotion=Emotion.ANXIOUS
    ),
    follow_ups=(
        Turn(
            text="I have dyslexia and need extra time and a quiet room. I submitted all the required forms last month. Can you check the status of my request?",
            keywords=frozenset({"dyslexia", "extra time", "quiet room", "status"}),
            emotion=Emotion.CALM
        ),
    ),
    customer_details=CUSTOMER
)

# ============================================================================
# MISSED EXAM
# ============================================================================

MISSED_EXAM = Scenario(
    scenario_id="missed_exam",
    title="Missed exam and resit request",
    opening=Turn(
        text="I missed my exam yesterday because of a family emergency. I have the documentation to prove it. What's the process for applying for a resit?",
        keywords=frozenset({"missed", "emergency", "documentation", "resit"}),
        emotion=Emotion.CALM
    ),
    follow_ups=(
        Turn(
            text="I have the hospital documents and a letter from my doctor. When is the deadline to submit these for consideration?",
            keywords=frozenset({"hospital", "doctor", "deadline", "submit"}),
            emotion=Emotion.CALM
        ),
    ),
    customer_details=CUSTOMER
)

# Fixed order, progression wraps from the last scenario back to the first
SCENARIOS = (
    REGISTRATION_ERROR,
    TIMETABLE_CLASH,
    ACCESS_ARRANGEMENTS,
    MISSED_EXAM,
)
