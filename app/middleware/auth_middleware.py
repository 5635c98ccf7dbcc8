"""
Session authentication for the API

Resolves the session token (cookie or Bearer header) to a User once per
request and stores it on request.state.user; route handlers turn that into
a UserContext through app.api.deps.require_user.
"""
import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.models.base import session_scope
from app.models.user import User
from app.services import auth_service

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_token"

# Reachable without a session: login, probes, landing-page tracking and API docs
PUBLIC_PREFIXES = (
    "/auth/login",
    "/health",
    "/track",
    "/robots.txt",
    "/docs",
    "/openapi.json",
    "/redoc",
)


def is_public(path: str) -> bool:
    return any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES)


def session_token(request: Request) -> Optional[str]:
    """Session token from the cookie, or from an `Authorization: Bearer` header."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def resolve_user(token: str) -> Optional[User]:
    with session_scope() as db:
        return auth_service.validate_session(db, token)


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or is_public(request.url.path):
            return await call_next(request)

        token = session_token(request)
        user = resolve_user(token) if token else None
        if user is None:
            if token:
                logger.debug(f"Rejected unknown or expired session on {request.url.path}")
            return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

        request.state.user = user
        return await call_next(request)
