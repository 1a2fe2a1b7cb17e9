"""FastAPI dependencies for DB sessions and authentication.

Provides:
- get_db: scoped SQLAlchemy session generator.
- get_bearer_token: pulls the token out of the Authorization header.
- get_current_user: resolves the token to a user or raises a 401 error.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from . import errors, models, tokens
from .database import SessionLocal


def get_db():
    """Yield a SQLAlchemy session and ensure it is closed afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the credential of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, credential = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credential.strip() or None


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Require a bearer token; raise ``errors.InvalidToken`` otherwise."""
    token = _extract_bearer(authorization)
    if not token:
        raise errors.InvalidToken("Missing bearer token")
    return token


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(get_bearer_token),
) -> models.User:
    """Require a valid token and return the authenticated user."""
    return tokens.resolve_current_user(db, token)
