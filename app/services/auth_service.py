"""
Dashboard accounts and login sessions

Passwords are bcrypt hashes (passlib). A login issues a random hex token
stored in user_sessions; the token travels as the session cookie or as an
`Authorization: Bearer` header and expires after session_duration_hours.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.models.user import User, UserSession
from app.config import get_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8
TOKEN_BYTES = 32  # 64 hex characters, the width of user_sessions.token


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def _normalize_email(email: str) -> str:
    return (email or "").lower().strip()


def _check_password_strength(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def find_user(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """Check credentials against an active account; stamps last_login on success."""
    user = find_user(db, email)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        logger.info(f"Failed login for {user.email}")
        return None
    user.last_login = datetime.utcnow()
    db.commit()
    return user


def create_session(db: Session, user_id: int, user_agent: Optional[str] = None) -> str:
    hours = get_settings().session_duration_hours
    session = UserSession(
        user_id=user_id,
        token=secrets.token_hex(TOKEN_BYTES),
        user_agent=(user_agent or "")[:255] or None,
        expires_at=datetime.utcnow() + timedelta(hours=hours),
    )
    db.add(session)
    db.commit()
    return session.token


def validate_session(db: Session, token: str) -> Optional[User]:
    """The active user behind a non-expired token, or None."""
    if not token:
        return None
    return (
        db.query(User)
        .join(UserSession, UserSession.user_id == User.id)
        .filter(
            UserSession.token == token,
            UserSession.expires_at > datetime.utcnow(),
            User.is_active == True,  # noqa: E712
        )
        .first()
    )


def delete_session(db: Session, token: str) -> bool:
    removed = db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()
    return bool(removed)


def cleanup_expired(db: Session, now: Optional[datetime] = None) -> int:
    """Delete expired sessions. Returns count removed."""
    now = now or datetime.utcnow()
    count = db.query(UserSession).filter(UserSession.expires_at <= now).delete()
    db.commit()
    return count


def create_user(db: Session, email: str, password: str, display_name: Optional[str] = None) -> User:
    """Create a dashboard account. Raises ValueError on a duplicate email or short password."""
    email = _normalize_email(email)
    if not email:
        raise ValueError("Email is required")
    _check_password_strength(password)
    if find_user(db, email):
        raise ValueError("An account with this email already exists")

    user = User(email=email, password_hash=hash_password(password), display_name=display_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user {user.id} ({email})")
    return user


def change_password(db: Session, user_id: int, current: str, new: str) -> None:
    """
    Replace a user's password after re-checking the current one.

    Every other session of the user is revoked; the caller keeps the one it
    is using by logging in again.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not verify_password(current, user.password_hash):
        raise ValueError("Current password is incorrect")
    _check_password_strength(new)

    user.password_hash = hash_password(new)
    db.query(UserSession).filter(UserSession.user_id == user_id).delete()
    db.commit()
    logger.info(f"Password changed for user {user_id}; sessions revoked")


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def seed_initial_user(db: Session) -> Optional[User]:
    """Create the first account from INITIAL_ADMIN_* when the users table is empty."""
    settings = get_settings()
    if not (settings.initial_admin_email and settings.initial_admin_password):
        return None
    if db.query(User.id).first():
        return None
    return create_user(db, settings.initial_admin_email, settings.initial_admin_password, "Admin")
