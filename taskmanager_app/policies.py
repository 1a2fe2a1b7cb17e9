"""Task access rules.

Two roles and implicit ownership are all there is: owners and admins may
view, update and delete a task; anyone authenticated may create tasks and
list (the listing scope is picked in ``tasks.list_tasks``).
"""

import enum
import logging
from typing import Optional

from . import errors, models

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    view = "view"
    update = "update"
    delete = "delete"
    create = "create"
    list = "list"


_OWNER_OR_ADMIN = {Action.view, Action.update, Action.delete}


def can(actor: models.User, action: Action, task: Optional[models.Task] = None) -> bool:
    """Return True when ``actor`` may perform ``action`` on ``task``."""
    action = Action(action)
    if action in _OWNER_OR_ADMIN:
        if task is None:
            return False
        return actor.id == task.owner_id or actor.role == models.Role.admin
    return True


def authorize(actor: models.User, action: Action, task: Optional[models.Task] = None) -> None:
    """Raise ``errors.Forbidden`` unless ``can(actor, action, task)``."""
    action = Action(action)
    if not can(actor, action, task):
        logger.warning(
            "user %s denied %s on task %s",
            actor.id, action.value, task.id if task is not None else None,
        )
        raise errors.Forbidden(f"You are not authorized to {action.value} this task")
