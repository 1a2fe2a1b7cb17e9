"""Stateless bearer tokens.

Tokens are HS256 JWTs signed with ``settings.SECRET_KEY`` and carry three
claims: ``sub`` (the user id), ``iat`` and ``exp``. Nothing is stored server
side, so a refreshed or "logged out" token keeps working until its own
``exp`` passes.
"""

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from . import crud, errors, models
from .settings import settings

logger = logging.getLogger(__name__)


def issue_token(user: models.User, expires_minutes: int | None = None) -> str:
    """Create a signed access token for ``user``."""
    return _encode(user.id, expires_minutes)


def _encode(user_id: int, expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(tz=timezone.utc)
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def validate_token(token: str | None) -> int:
    """Return the user id a token was issued for.

    Raises ``errors.ExpiredToken`` once ``exp`` has passed and
    ``errors.InvalidToken`` for anything else that does not verify.
    """
    if not token:
        raise errors.InvalidToken("Missing bearer token")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise errors.ExpiredToken()
    except JWTError as exc:
        raise errors.InvalidToken(f"Invalid token: {exc}")

    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise errors.InvalidToken("Token subject is not a user id")


def refresh_token(token: str | None) -> str:
    """Validate ``token`` and return a fresh one for the same user."""
    user_id = validate_token(token)
    return _encode(user_id)


def resolve_current_user(db: Session, token: str | None) -> models.User:
    """Validate ``token`` and load the user it refers to."""
    user_id = validate_token(token)
    user = crud.get_user(db, user_id)
    if user is None:
        raise errors.UserNotFound()
    return user
