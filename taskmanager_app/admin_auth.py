# taskmanager_app/admin_auth.py
from __future__ import annotations

import logging
from typing import Optional

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from .database import SessionLocal
from . import crud, models, utils

logger = logging.getLogger(__name__)


class AdminAuth(AuthenticationBackend):
    """
    Authentication backend for /admin:
    - real users from the DB (email + password_hash)
    - only users whose role is ``admin`` get in
    - SessionMiddleware keeps the admin's user id in the signed session cookie
    """

    def __init__(self, *, secret_key: str, session_key: str = "admin_user_id") -> None:
        super().__init__(secret_key=secret_key)
        self.session_key = session_key

    async def login(self, request: Request) -> bool:
        """
        sqladmin renders a login form at /admin/login and POSTs here.
        Expected fields: username/email + password.
        """
        form = await request.form()
        email = utils.normalize_email(form.get("username") or form.get("email"))
        password = form.get("password") or ""

        if not email or not password:
            return False

        with SessionLocal() as db:
            user: Optional[models.User] = crud.get_user_by_email(db, email)
            password_hash = user.password_hash if user is not None else None
            if not utils.verify_password(password, password_hash) or user is None:
                return False
            if user.role != models.Role.admin:
                logger.warning("non-admin user %s tried to open the admin panel", user.id)
                return False
            user_id = user.id

        request.session.update({self.session_key: user_id})
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        user_id = request.session.get(self.session_key)
        if not user_id:
            return False
        # the role is re-read so a stale cookie for a missing user is refused
        with SessionLocal() as db:
            user = crud.get_user(db, user_id)
            return user is not None and user.role == models.Role.admin
