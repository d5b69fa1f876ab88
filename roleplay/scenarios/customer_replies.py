# roleplay/scenarios/customer_replies.py
"""
Canned customer replies and the keyword lists used to classify trainee input.

These are the off-script lines the customer falls back to whenever the
trainee's message does not move the scripted conversation forward.
"""

# ============================================================================
# CLASSIFICATION KEYWORDS
# ============================================================================

# Probes for the customer's name
IDENTITY_KEYWORDS = [
    "name",
    "who are you"
]

# Probes for the student ID
ID_KEYWORDS = [
    "id",
    "student number"
]

# Probes for the exam center number
CENTER_KEYWORDS = [
    "center",
    "centre"
]

# Signals that the trainee is actively trying to help
HELPFUL_KEYWORDS = [
    "help",
    "assist",
    "support",
    "check",
    "verify",
    "confirm",
    "understand",
    "apologize"
]

# Signals that the trainee considers the issue dealt with
RESOLUTION_KEYWORDS = [
    "resolved",
    "fixed",
    "sorted",
    "done",
    "completed",
    "finished"
]

# ============================================================================
# CANNED REPLIES
# ============================================================================

IDENTITY_REPLY = """My name is {name}."""

ID_REPLY = """My student ID is {student_id}."""

CENTER_REPLY = """My center number is {center_number}."""

# Trainee message contained nothing helpful
UNHELPFUL_REPLY = """I'm not sure how that helps with my current issue. Could you please provide more specific assistance?"""

# Trainee declared the issue resolved
CLOSURE_REPLY = """Thank you for your help! That resolves my issue. I appreciate your assistance."""

# Script exhausted but the issue was never declared resolved
STILL_STUCK_REPLY = """I'm still having issues with this. Could you please provide more specific assistance?"""

# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def contains_any(text: str, keywords) -> bool:
    """Case-insensitive substring check against a keyword list."""
    text_lower = text.lower()
    return any(keyword in text_lower for keyword in keywords)
