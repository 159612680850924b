# salonbook/api/auth.py
"""
API key gate for the protected routers.
"""
import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request

from salonbook.core.config import settings
from salonbook.core.errors import ErrorSeverity, log_error


def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> str:
    """Reject the request unless X-API-Key matches SALON_API_KEY."""
    expected = settings.SALON_API_KEY or ""
    provided = x_api_key or ""
    if not expected or not secrets.compare_digest(provided, expected):
        log_error(Exception("API key validation failed"),
                  {"endpoint": request.url.path, "has_key": bool(provided)},
                  ErrorSeverity.LOW)
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return provided
