# roleplay/core/security.py
"""
API key check for the trainer API.

The key is optional: without ROLEPLAY_API_KEY the API accepts any local
client, with it every session endpoint requires a matching X-API-Key header.
"""

from typing import Optional
import logging
import secrets

from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader

from roleplay.core.config import settings

logger = logging.getLogger(__name__)

API_KEY_NAME = "X-API-Key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def verify_api_key(api_key: Optional[str] = Depends(api_key_header)) -> Optional[str]:
    """Verify API key for protected endpoints"""
    expected = settings.API_KEY
    if not expected:
        return api_key

    if api_key is None:
        logger.warning("Request without API key")
        raise HTTPException(
            status_code=401,
            detail=f"Missing API Key. Include '{API_KEY_NAME}' header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    if not secrets.compare_digest(api_key, expected):
        logger.warning("Invalid API key attempt detected")
        raise HTTPException(
            status_code=401,
            detail="Invalid API Key",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return api_key
