# roleplay/main.py
"""
Trainer API - local JSON surface for a browser front end.

The API hosts a single trainee session at a time. Starting a new session
replaces the previous one. Customer speech is played in the browser: every
response carries the pending utterance (text plus prosody) or null.
"""

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from roleplay.core.config import settings, validate_required_settings
from roleplay.core.dialogue_engine import DialogueEngine
from roleplay.core.exceptions import DialogueValidationError
from roleplay.core.logging_config import setup_logging
from roleplay.core.orchestrator import TrainerSession, COACHING_TIPS
from roleplay.core.rate_limit_config import get_real_ip, get_rate_limits, get_rate_limit_message
from roleplay.core.security import verify_api_key
from roleplay.models.flow_models import DialogueLine
from roleplay.services.speech_platform import RemoteSynthesisPlatform, Voice
from roleplay.services.speech_service import SpeechOutputAdapter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan event handler for startup/shutdown"""
    setup_logging()
    logger.info(f"{settings.APP_NAME} starting...")

    if not validate_required_settings():
        logger.warning("Running with default settings - see warnings above")

    app.state.synthesis = RemoteSynthesisPlatform()
    app.state.trainer = None

    logger.info("Trainer API ready")
    yield

    trainer = app.state.trainer
    if trainer is not None:
        trainer.speech.shutdown()
    logger.info(f"{settings.APP_NAME} shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description="Customer support role-play trainer",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None
)

# =============================================================================
# RATE LIMITING
# =============================================================================

limiter = Limiter(key_func=get_real_ip)

# Limited routes and their keys in RATE_LIMIT_TIERS / RATE_LIMIT_MESSAGES
RATE_LIMITED_ROUTES = {
    "/session": "session_start",
    "/session/message": "session_message",
    "/speech/voices": "speech_voices",
}


def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Custom rate limit response with helpful message"""
    response = PlainTextResponse(
        content=get_rate_limit_message(RATE_LIMITED_ROUTES.get(request.url.path, "default")),
        status_code=429,
    )
    response.headers["Retry-After"] = "60"
    response.headers["X-RateLimit-Limit"] = str(getattr(exc, "limit", "N/A"))
    return response


app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
app.state.limiter = limiter

RATE_LIMITS = get_rate_limits(settings.RATE_LIMIT_TIER)

# =============================================================================
# MIDDLEWARE
# =============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all non-health requests"""
    path = request.url.path
    if path not in ("/", "/health"):
        logger.info(f"Request: {request.method} {path}")
    return await call_next(request)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses"""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if "Server" in response.headers:
        del response.headers["Server"]

    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# =============================================================================
# API MODELS
# =============================================================================


class MessageRequest(BaseModel):
    message: str


class VoiceModel(BaseModel):
    name: str
    lang: str
    default: bool = False


class VoicesRequest(BaseModel):
    voices: List[VoiceModel] = Field(default_factory=list)


def get_safe_error_message(error: Exception, context: str = "") -> str:
    """Return a safe error message that doesn't expose internal details"""
    logger.error(f"Error in {context}: {type(error).__name__}: {str(error)}")

    if isinstance(error, HTTPException):
        return error.detail
    return "Something went wrong. Please try again."


def _serialize_line(line: DialogueLine) -> Dict[str, Any]:
    return {
        "text": line.text,
        "emotion": line.emotion.value if line.emotion else None,
        "outcome": line.outcome.value,
        "scripted": line.scripted
    }


def _drain_speech(request: Request) -> Optional[Dict[str, Any]]:
    utterance = request.app.state.synthesis.drain()
    return utterance.to_dict() if utterance else None


def _require_trainer(request: Request) -> TrainerSession:
    trainer = request.app.state.trainer
    if trainer is None:
        raise HTTPException(status_code=404, detail="No active session. Start one with POST /session.")
    return trainer


# =============================================================================
# HEALTH
# =============================================================================


@app.get("/", status_code=200)
def read_root():
    """Health check endpoint"""
    return {"status": "ok", "version": "1.0.0", "service": "roleplay-trainer"}


@app.get("/health", status_code=200)
async def health(request: Request):
    """Detailed health check"""
    trainer = request.app.state.trainer
    status = {"status": "healthy", "timestamp": datetime.now().isoformat()}
    if trainer is not None:
        status["session"] = await trainer.health_check()
    return status

# =============================================================================
# SESSION
# =============================================================================


@app.post("/session", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["session_start"])
async def start_session(request: Request):
    """
    Start a new trainee session.

    Replaces any previous session and returns the customer's opening line.
    """
    try:
        previous = request.app.state.trainer
        if previous is not None:
            previous.speech.shutdown()

        # Voices already announced by the client carry over to the new session
        synthesis = RemoteSynthesisPlatform(voices=request.app.state.synthesis.get_voices())
        request.app.state.synthesis = synthesis

        trainer = TrainerSession(
            engine=DialogueEngine(),
            speech=SpeechOutputAdapter(synthesis=synthesis)
        )
        request.app.state.trainer = trainer

        line = trainer.start()

        return {
            "session_id": trainer.session_id,
            "message": _serialize_line(line),
            "customer": trainer.engine.get_customer_details().model_dump(),
            "tips": COACHING_TIPS,
            "speech": _drain_speech(request)
        }

    except Exception as e:
        logger.error(f"Error in start_session: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=get_safe_error_message(e, "start_session"))


@app.post("/session/message", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["session_message"])
async def post_message(request: Request, req: MessageRequest):
    """Submit a trainee message and return the customer's reply"""
    trainer = _require_trainer(request)

    try:
        line = trainer.submit(req.message)

        return {
            "session_id": trainer.session_id,
            "message": _serialize_line(line),
            "current_emotion": trainer.current_emotion.value if trainer.current_emotion else None,
            "speech": _drain_speech(request)
        }

    except DialogueValidationError as e:
        logger.warning(f"Rejected message: {e}")
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"Error in post_message: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=get_safe_error_message(e, "post_message"))


@app.get("/session", dependencies=[Depends(verify_api_key)])
async def get_session(request: Request):
    """Session info and transcript"""
    trainer = _require_trainer(request)
    info = trainer.get_session_info()
    info["messages"] = [m.model_dump(mode="json") for m in trainer.messages]
    return info

# =============================================================================
# SPEECH
# =============================================================================


@app.post("/speech/voices", dependencies=[Depends(verify_api_key)])
@limiter.limit(RATE_LIMITS["speech_voices"])
async def announce_voices(request: Request, req: VoicesRequest):
    """
    Voice list from the browser.

    This is the readiness notification: a line buffered while no voice was
    available is returned here, once.
    """
    synthesis = request.app.state.synthesis
    synthesis.announce_voices([Voice(name=v.name, lang=v.lang, default=v.default) for v in req.voices])

    trainer = request.app.state.trainer
    selected = trainer.speech.selected_voice if trainer is not None else None

    return {
        "selected_voice": selected.name if selected else None,
        "speech": _drain_speech(request)
    }

# =============================================================================
# DEBUG
# =============================================================================


@app.get("/debug/flow", dependencies=[Depends(verify_api_key)])
async def get_flow_debug_info(request: Request):
    """Branch table and progress of the active session"""
    trainer = _require_trainer(request)
    return trainer.engine.get_flow_summary()


def main():
    """Run the trainer API with uvicorn"""
    import uvicorn

    logger.info(f"Starting {settings.APP_NAME} on port {settings.PORT}...")
    uvicorn.run(
        app,
        host="127.0.0.1",
        port=settings.PORT,
        log_level="info"
    )


if __name__ == "__main__":
    main()
