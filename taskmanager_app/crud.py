"""CRUD helpers for users and tasks.

This module contains database operations used by the service layer:
- User helpers for registration/login flows, including the atomic
  "first user becomes admin" insert.
- Task CRUD plus listing scoped by owner.
Access control is not checked here; see ``policies``.
"""

import logging
from typing import Any, Mapping, Sequence

from sqlalchemy import case, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from . import models, utils

logger = logging.getLogger(__name__)

ADMIN_INDEX_NAME = "uq_users_single_admin"

# largest value a 64-bit INTEGER primary key can hold
MAX_ID = 2**63 - 1


def _valid_id(value: int) -> bool:
    return 0 < value <= MAX_ID


# -----------------------------------------------------------------------------
# USERS
# -----------------------------------------------------------------------------
def get_user(db: Session, user_id: int) -> models.User | None:
    """Return a user by id or None if not found."""
    if not _valid_id(user_id):
        return None
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> models.User | None:
    """Return a user by normalized email or None if not found."""
    norm = utils.normalize_email(email)
    if not norm:
        return None
    return db.query(models.User).filter(models.User.email == norm).first()


def user_exists(db: Session, email: str) -> bool:
    """Return True if a user with the given email already exists."""
    return get_user_by_email(db, email) is not None


def _insert_user(db: Session, name: str, email: str, password_hash: str, role_expr) -> None:
    stmt = insert(models.User.__table__).from_select(
        ["name", "email", "password_hash", "role"],
        select(
            literal(name),
            literal(email),
            literal(password_hash),
            role_expr,
        ),
    )
    db.execute(stmt)
    db.commit()


def create_user(db: Session, name: str, email: str, password_hash: str) -> models.User:
    """Insert a user, making it admin only if the table was empty.

    The role is decided inside the INSERT itself, so the count and the write
    are one statement. The single-admin unique index catches the case where
    two concurrent inserts both saw an empty table; the loser is stored as a
    plain user. Raises ``IntegrityError`` when the email is already taken.
    """
    email_norm = utils.normalize_email(email)
    first_user_role = case(
        (
            select(func.count(models.User.id)).correlate(None).scalar_subquery() > 0,
            literal(models.Role.user.value),
        ),
        else_=literal(models.Role.admin.value),
    )
    try:
        _insert_user(db, name, email_norm, password_hash, first_user_role)
    except IntegrityError as exc:
        db.rollback()
        if ADMIN_INDEX_NAME not in str(exc.orig) and "users.role" not in str(exc.orig):
            raise
        logger.info("lost the admin race for %s, storing as user", email_norm)
        _insert_user(db, name, email_norm, password_hash, literal(models.Role.user.value))

    return db.query(models.User).filter(models.User.email == email_norm).one()


# -----------------------------------------------------------------------------
# TASKS
# -----------------------------------------------------------------------------
def create_task(
    db: Session,
    owner_id: int,
    title: str,
    description: str | None = None,
    completed: bool = False,
) -> models.Task:
    """Create a task owned by ``owner_id``."""
    obj = models.Task(
        title=title,
        description=description,
        completed=completed,
        owner_id=owner_id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def get_task(db: Session, task_id: int) -> models.Task | None:
    """Return a task by its ID or None if not found."""
    if not _valid_id(task_id):
        return None
    return db.query(models.Task).filter(models.Task.id == task_id).first()


def update_task(db: Session, obj: models.Task, fields: Mapping[str, Any]) -> models.Task:
    """Apply ``fields`` to ``obj``; ownership columns are never touched."""
    for key in ("title", "description", "completed"):
        if key in fields:
            setattr(obj, key, fields[key])
    db.commit()
    db.refresh(obj)
    return obj


def delete_task(db: Session, obj: models.Task) -> None:
    db.delete(obj)
    db.commit()


def list_tasks(db: Session, owner_id: int | None = None, with_owner: bool = False) -> Sequence[models.Task]:
    """List tasks ordered by id; ``owner_id=None`` means every owner."""
    q = db.query(models.Task)
    if owner_id is not None:
        q = q.filter(models.Task.owner_id == owner_id)
    if with_owner:
        q = q.options(selectinload(models.Task.owner))
    return q.order_by(models.Task.id.asc()).all()
