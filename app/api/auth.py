"""
Authentication API

Login issues a session token (cookie + response body), logout revokes it.
Any logged-in user can manage dashboard accounts; there are no roles.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import UserContext, require_user, raise_http_error
from app.middleware.auth_middleware import SESSION_COOKIE, session_token
from app.models.base import get_db
from app.models.user import User
from app.services import auth_service
from app.config import get_settings
from app.utils.helpers import row_to_dict

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class CreateUserRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=auth_service.MIN_PASSWORD_LENGTH)
    display_name: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=auth_service.MIN_PASSWORD_LENGTH)


def _account(user: User) -> dict:
    return row_to_dict(user, exclude=("password_hash",))


def _with_session_cookie(response: JSONResponse, token: str) -> JSONResponse:
    settings = get_settings()
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.environment != "development",
        samesite="lax",
        max_age=settings.session_duration_hours * 3600,
        path="/",
    )
    return response


@router.post("/login")
async def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Check credentials; the token is set as a cookie and also returned for Bearer use"""
    user = auth_service.authenticate(db, body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = auth_service.create_session(db, user.id, user_agent=request.headers.get("user-agent"))
    return _with_session_cookie(
        JSONResponse(content={"success": True, "token": token, "user": _account(user)}),
        token,
    )


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    token = session_token(request)
    revoked = auth_service.delete_session(db, token) if token else False
    response = JSONResponse(content={"success": True, "revoked": revoked})
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response


@router.get("/me")
async def me(request: Request, ctx: UserContext = Depends(require_user)):
    return {"success": True, "data": _account(request.state.user)}


@router.put("/password")
async def change_password(
    body: ChangePasswordRequest,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    """Change the caller's password; all of their sessions are signed out"""
    try:
        auth_service.change_password(db, ctx.user_id, body.current_password, body.new_password)
    except Exception as e:
        raise_http_error(e, "changing password")
    response = JSONResponse(content={"success": True, "message": "Password changed, please log in again"})
    response.delete_cookie(SESSION_COOKIE, path="/")
    return response


@router.get("/users")
async def list_users(db: Session = Depends(get_db), ctx: UserContext = Depends(require_user)):
    return {"success": True, "data": [_account(u) for u in auth_service.list_users(db)]}


@router.post("/users", status_code=201)
async def create_user(
    body: CreateUserRequest,
    db: Session = Depends(get_db),
    ctx: UserContext = Depends(require_user),
):
    try:
        user = auth_service.create_user(db, body.email, body.password, body.display_name)
    except Exception as e:
        raise_http_error(e, "creating user")
    return {"success": True, "data": _account(user)}
