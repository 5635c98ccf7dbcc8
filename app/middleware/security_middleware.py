"""
Response hardening and the optional dashboard gate

When DASH_USER and DASH_PASS are both set, every non-open path also needs
HTTP Basic credentials. Because Basic and Bearer share the Authorization
header, a gated deployment's API clients authenticate with the session
cookie instead of a Bearer token.
"""
import base64
import binascii
import logging
import secrets
from typing import Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.config import get_settings

logger = logging.getLogger(__name__)

# Paths exempt from the Basic Auth gate
OPEN_PATHS = ("/health", "/robots.txt", "/track")

SECURITY_HEADERS = {
    "X-Robots-Tag": "noindex, nofollow",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "same-origin",
}


def basic_credentials(request: Request) -> Optional[Tuple[str, str]]:
    """(user, password) from an `Authorization: Basic` header, or None if absent or malformed."""
    scheme, _, encoded = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(":")
    return (user, password) if sep else None


def gate_allows(request: Request, dash_user: str, dash_pass: str) -> bool:
    credentials = basic_credentials(request)
    if credentials is None:
        return False
    user_ok = secrets.compare_digest(credentials[0], dash_user)
    pass_ok = secrets.compare_digest(credentials[1], dash_pass)
    return user_ok and pass_ok


class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        gated = bool(settings.dash_user and settings.dash_pass)

        if gated and not request.url.path.startswith(OPEN_PATHS):
            if not gate_allows(request, settings.dash_user, settings.dash_pass):
                logger.info(f"Dashboard gate refused {request.method} {request.url.path}")
                return Response(
                    content="Unauthorized",
                    status_code=401,
                    headers={"WWW-Authenticate": 'Basic realm="Campaign Dashboard"'},
                )

        response: Response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)

        # Per-user JSON must never be served from a shared cache
        if "application/json" in response.headers.get("content-type", ""):
            response.headers["Cache-Control"] = "private, no-store"

        return response
