"""Pydantic schemas for users and sessions."""

from datetime import datetime

from pydantic import Field

from projecthub.models.enums import UserRole
from projecthub.schemas.common import CamelModel


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole
    skills: list[str] | None = None


class UserDetailsOut(UserOut):
    joined_at: datetime | None = None


class LoginBody(CamelModel):
    email: str
    password: str


class RegisterBody(CamelModel):
    """First user of a company; must be an admin."""

    name: str = Field(min_length=1, max_length=255)
    email: str
    password: str = Field(min_length=1)
    role: UserRole = UserRole.ADMIN
    skills: list[str] | None = None
    company_id: int | None = None


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str
    password: str = Field(min_length=1)
    role: UserRole = UserRole.MEMBER
    skills: list[str] | None = None


class UserUpdate(CamelModel):
    """Partial update. Company and password are not editable here."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = None
    role: UserRole | None = None
    skills: list[str] | None = None


class InvitedUserRegisterBody(CamelModel):
    token: str
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    skills: list[str] | None = None
