"""Register / login / logout / refresh / me.

Ties the user store to the token service. Every function returns ORM users
and raw token strings; building the response envelope is left to the routes.
"""

import logging
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, errors, models, schemas, tokens, utils

logger = logging.getLogger(__name__)


def register(db: Session, user_in: schemas.UserRegister) -> Tuple[models.User, str]:
    """Create the account described by ``user_in`` and issue its first token."""
    if crud.user_exists(db, user_in.email):
        raise errors.DuplicateEmail()

    try:
        user = crud.create_user(
            db,
            name=user_in.name,
            email=user_in.email,
            password_hash=utils.hash_password(user_in.password),
        )
    except IntegrityError:
        # another request registered the same email in between
        db.rollback()
        raise errors.DuplicateEmail()

    logger.info("registered user %s with role %s", user.id, user.role.value)
    return user, tokens.issue_token(user)


def login(db: Session, email: str, password: str) -> Tuple[models.User, str]:
    """Check credentials and issue a token.

    Unknown emails and wrong passwords fail the same way, after the same
    amount of hashing work.
    """
    user = crud.get_user_by_email(db, email)
    password_hash = user.password_hash if user is not None else None
    verified = utils.verify_password(password, password_hash)
    if user is None or not verified:
        logger.info("failed login for %s", utils.normalize_email(email))
        raise errors.InvalidCredentials()

    logger.info("user %s logged in", user.id)
    return user, tokens.issue_token(user)


def logout() -> None:
    """Nothing to do server side: tokens are stateless and expire on their own."""
    return None


def refresh_session(db: Session, token: str) -> Tuple[models.User, str]:
    new_token = tokens.refresh_token(token)
    user = tokens.resolve_current_user(db, new_token)
    return user, new_token


def current_user(db: Session, token: str) -> models.User:
    return tokens.resolve_current_user(db, token)
