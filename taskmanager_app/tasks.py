"""Task operations on behalf of an authenticated user.

Lookups happen first (404), then the policy check (403), then payload
validation (422), so a caller never learns anything about a task they may
not touch.
"""

import logging
from typing import Any, Mapping, Sequence

import pydantic
from sqlalchemy.orm import Session

from . import crud, errors, models, policies, schemas
from .policies import Action

logger = logging.getLogger(__name__)


def list_tasks(db: Session, actor: models.User) -> Sequence[models.Task]:
    """Admins see every task with its owner; everyone else sees their own."""
    policies.authorize(actor, Action.list)
    if actor.role == models.Role.admin:
        return crud.list_tasks(db, with_owner=True)
    return crud.list_tasks(db, owner_id=actor.id)


def create_task(db: Session, actor: models.User, task_in: schemas.TaskCreate) -> models.Task:
    policies.authorize(actor, Action.create)
    task = crud.create_task(
        db,
        owner_id=actor.id,
        title=task_in.title,
        description=task_in.description,
        completed=task_in.completed,
    )
    logger.info("user %s created task %s", actor.id, task.id)
    return task


def _load(db: Session, actor: models.User, task_id: int, action: Action) -> models.Task:
    task = crud.get_task(db, task_id)
    if task is None:
        raise errors.NotFound()
    policies.authorize(actor, action, task)
    return task


def get_task(db: Session, actor: models.User, task_id: int) -> models.Task:
    return _load(db, actor, task_id, Action.view)


def update_task(db: Session, actor: models.User, task_id: int, fields: Mapping[str, Any]) -> models.Task:
    """Apply a partial update. ``fields`` is the raw request payload."""
    task = _load(db, actor, task_id, Action.update)
    if not isinstance(fields, Mapping):
        raise errors.ValidationError(errors={"body": ["The payload must be a JSON object."]})
    try:
        patch = schemas.TaskUpdate.model_validate(fields)
    except pydantic.ValidationError as exc:
        raise errors.ValidationError(errors=errors.error_map_from_pydantic(exc.errors()))

    task = crud.update_task(db, task, patch.model_dump(exclude_unset=True))
    logger.info("user %s updated task %s", actor.id, task.id)
    return task


def delete_task(db: Session, actor: models.User, task_id: int) -> None:
    task = _load(db, actor, task_id, Action.delete)
    crud.delete_task(db, task)
    logger.info("user %s deleted task %s", actor.id, task_id)
