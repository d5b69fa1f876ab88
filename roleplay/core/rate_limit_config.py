"""
Rate limiting configuration for the trainer API
"""

from fastapi import Request
from slowapi.util import get_remote_address


def get_real_ip(request: Request) -> str:
    """
    Get the real IP address, considering proxy headers.
    Matters when the trainer runs behind a local reverse proxy.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


RATE_LIMIT_TIERS = {
    "default": {
        "session_start": "10/minute",   # New trainee sessions
        "session_message": "30/minute", # Trainee messages
        "speech_voices": "10/minute"    # Voice list announcements
    },
    "classroom": {  # Several trainees behind one address
        "session_start": "60/minute",
        "session_message": "300/minute",
        "speech_voices": "60/minute"
    }
}

RATE_LIMIT_MESSAGES = {
    "default": "Too many requests. Please wait a moment and try again.",
    "session_start": "Too many new sessions started. Please wait a minute.",
    "session_message": "Too many messages sent. Please slow down a little.",
    "speech_voices": "Too many voice list updates. Please wait a minute.",
}


def get_rate_limits(tier: str) -> dict:
    """Get the limits for a tier, falling back to the default tier"""
    return RATE_LIMIT_TIERS.get(tier, RATE_LIMIT_TIERS["default"])


def get_rate_limit_message(endpoint: str) -> str:
    """Get custom error message for rate limited endpoint"""
    return RATE_LIMIT_MESSAGES.get(endpoint, RATE_LIMIT_MESSAGES["default"])
