"""Shared API dependencies: the request's user context and service error mapping."""
from dataclasses import dataclass
from typing import NoReturn, Optional

from fastapi import HTTPException, Request

from app.models.user import User
from app.services.exceptions import NotFoundError, NoEligibleCustomersError
from app.utils.logger import log


@dataclass(frozen=True)
class UserContext:
    """Authenticated caller resolved once per request"""
    user_id: int
    email: str
    display_name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserContext":
        return cls(user_id=user.id, email=user.email, display_name=user.display_name)


def require_user(request: Request) -> UserContext:
    """Dependency: raise 401 if no authenticated user on request."""
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return UserContext.from_user(user)


def raise_http_error(exc: Exception, action: str) -> NoReturn:
    """Translate a service exception into the matching HTTP error."""
    if isinstance(exc, HTTPException):
        raise exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (NoEligibleCustomersError, ValueError)):
        raise HTTPException(status_code=400, detail=str(exc))
    log.error(f"Error {action}: {str(exc)}")
    raise HTTPException(status_code=500, detail=f"Error {action}")
