from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Depends, Body
from fastapi.middleware.cors import CORSMiddleware

from sqlalchemy.orm import Session

from sqladmin import Admin, ModelView

from .settings import settings
from . import auth, deps, errors, schemas, models, tasks
from .database import engine, create_schema
from .admin_auth import AdminAuth
from .logging_config import configure_logging

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_SCHEMA:
        create_schema()
    yield


# -----------------------------------------------------------------------------
# App & CORS
# -----------------------------------------------------------------------------
app = FastAPI(title="Task Manager", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

errors.register_handlers(app)

# -----------------------------------------------------------------------------
# Admin UI (/admin) with sqladmin, restricted to the admin role
# -----------------------------------------------------------------------------
authentication_backend = AdminAuth(secret_key=settings.admin_session_secret)
admin = Admin(app, engine, authentication_backend=authentication_backend)

class UserAdmin(ModelView, model=models.User):
    column_list = [
        models.User.id,
        models.User.name,
        models.User.email,
        models.User.role,
        models.User.created_at,
    ]
    column_searchable_list = [models.User.email, models.User.name]
    column_sortable_list = [models.User.id, models.User.created_at]
    column_details_exclude_list = [models.User.password_hash]
    can_create = False
    can_edit = False
    can_delete = False
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"

class TaskAdmin(ModelView, model=models.Task):
    column_list = [
        models.Task.id,
        models.Task.title,
        models.Task.completed,
        models.Task.owner_id,
        models.Task.created_at,
        models.Task.updated_at,
    ]
    column_searchable_list = [models.Task.title]
    column_sortable_list = [models.Task.id, models.Task.completed, models.Task.created_at]
    form_excluded_columns = [models.Task.owner, models.Task.created_at, models.Task.updated_at]
    can_create = False
    name = "Task"
    name_plural = "Tasks"
    icon = "fa-solid fa-list-check"

admin.add_view(UserAdmin)
admin.add_view(TaskAdmin)


def _auth_envelope(user: models.User, token: str, message: str | None = None) -> schemas.AuthEnvelope:
    return schemas.AuthEnvelope(
        message=message,
        user=schemas.UserOut.model_validate(user),
        authorization=schemas.AuthorizationOut(token=token),
    )

# -----------------------------------------------------------------------------
# AUTH routes
# -----------------------------------------------------------------------------
@app.post("/auth/register", response_model=schemas.AuthEnvelope, status_code=201)
def register(user_in: schemas.UserRegister, db: Session = Depends(deps.get_db)):
    user, token = auth.register(db, user_in)
    return _auth_envelope(user, token, "User created successfully")

@app.post("/auth/login", response_model=schemas.AuthEnvelope)
def login(credentials: schemas.LoginIn, db: Session = Depends(deps.get_db)):
    user, token = auth.login(db, credentials.email, credentials.password)
    return _auth_envelope(user, token)

@app.post("/auth/logout", response_model=schemas.MessageEnvelope)
def logout(current_user: models.User = Depends(deps.get_current_user)):
    auth.logout()
    return schemas.MessageEnvelope(message="Successfully logged out")

@app.post("/auth/refresh", response_model=schemas.AuthEnvelope)
def refresh(token: str = Depends(deps.get_bearer_token), db: Session = Depends(deps.get_db)):
    user, new_token = auth.refresh_session(db, token)
    return _auth_envelope(user, new_token)

@app.get("/auth/me", response_model=schemas.UserEnvelope)
def me(token: str = Depends(deps.get_bearer_token), db: Session = Depends(deps.get_db)):
    user = auth.current_user(db, token)
    return schemas.UserEnvelope(user=schemas.UserOut.model_validate(user))

# -----------------------------------------------------------------------------
# HEALTH
# -----------------------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}

# -----------------------------------------------------------------------------
# TASK routes
# -----------------------------------------------------------------------------
@app.get("/tasks", response_model=schemas.TaskListEnvelope)
def list_tasks(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
):
    items = tasks.list_tasks(db, current_user)
    out_model = schemas.TaskWithOwnerOut if current_user.is_admin else schemas.TaskOut
    return schemas.TaskListEnvelope(data=[out_model.model_validate(t) for t in items])

@app.post("/tasks", response_model=schemas.TaskEnvelope, status_code=201)
def create_task(
    task_in: schemas.TaskCreate,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
):
    t = tasks.create_task(db, current_user, task_in)
    return schemas.TaskEnvelope(message="Task created successfully", data=schemas.TaskOut.model_validate(t))

@app.get("/tasks/{task_id}", response_model=schemas.TaskEnvelope)
def get_task(
    task_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
):
    t = tasks.get_task(db, current_user, task_id)
    return schemas.TaskEnvelope(data=schemas.TaskOut.model_validate(t))

@app.put("/tasks/{task_id}", response_model=schemas.TaskEnvelope)
def update_task(
    task_id: int,
    fields: Any = Body(...),
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
):
    t = tasks.update_task(db, current_user, task_id, fields)
    return schemas.TaskEnvelope(message="Task updated successfully", data=schemas.TaskOut.model_validate(t))

@app.delete("/tasks/{task_id}", response_model=schemas.MessageEnvelope)
def delete_task(
    task_id: int,
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
):
    tasks.delete_task(db, current_user, task_id)
    return schemas.MessageEnvelope(message="Task deleted successfully")
