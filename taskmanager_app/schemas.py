"""Pydantic schemas for users, authentication, and tasks.

These classes define request and response models used by the FastAPI endpoints:
- UserRegister / LoginIn / UserOut
- AuthorizationOut / AuthEnvelope / UserEnvelope
- TaskCreate / TaskUpdate / TaskOut / TaskWithOwnerOut
- TaskEnvelope / TaskListEnvelope / MessageEnvelope
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator

from .models import Role


# ---------- Users ----------
class UserRegister(BaseModel):
    """Payload for registering a new user."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    password_confirmation: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("The name field is required.")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if len(v) > 255:
            raise ValueError("The email may not be greater than 255 characters.")
        return v

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        # password is absent from info.data when it already failed validation
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("The password confirmation does not match.")
        return v


class LoginIn(BaseModel):
    """Credentials for the login endpoint."""
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    """Public representation of a user."""
    id: int
    name: str
    email: EmailStr
    role: Role
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ---------- Auth ----------
class AuthorizationOut(BaseModel):
    """Bearer token returned after successful authentication."""
    token: str
    type: Literal["bearer"] = "bearer"


class AuthEnvelope(BaseModel):
    status: Literal["success"] = "success"
    message: Optional[str] = None
    user: UserOut
    authorization: AuthorizationOut


class UserEnvelope(BaseModel):
    status: Literal["success"] = "success"
    user: UserOut


class MessageEnvelope(BaseModel):
    status: Literal["success"] = "success"
    message: str


# ---------- Tasks ----------
class TaskCreate(BaseModel):
    """Payload for creating a task. Unknown keys such as owner_id are dropped."""
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    completed: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class TaskUpdate(BaseModel):
    """Partial update; only the keys present in the payload are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        if v is None:
            raise ValueError("The title field may not be null.")
        return v.strip() if isinstance(v, str) else v

    @field_validator("completed", mode="before")
    @classmethod
    def completed_not_null(cls, v):
        if v is None:
            raise ValueError("The completed field may not be null.")
        return v


class TaskOut(BaseModel):
    """Representation of a task returned by the API."""
    id: int
    title: str
    description: Optional[str]
    completed: bool
    owner_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskWithOwnerOut(TaskOut):
    """Task joined with its owner, used for admin listings."""
    owner: UserOut


class TaskEnvelope(BaseModel):
    status: Literal["success"] = "success"
    message: Optional[str] = None
    data: TaskOut


class TaskListEnvelope(BaseModel):
    status: Literal["success"] = "success"
    data: List[Union[TaskWithOwnerOut, TaskOut]]
