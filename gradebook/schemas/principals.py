"""Authenticated principals and the login session.

``Principal`` is a tagged union on ``role``; code that branches on the kind
of principal matches on the concrete class, never on role strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AdminPrincipal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    role: Literal["admin"] = "admin"
    id: str
    name: str
    email: str


class TeacherPrincipal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    role: Literal["teacher"] = "teacher"
    id: str
    name: str
    email: str
    is_active: bool


class StudentPrincipal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    role: Literal["student"] = "student"
    id: str
    name: str
    username: str
    grade_level: Optional[str] = None
    teacher_id: str


Principal = Annotated[
    Union[AdminPrincipal, TeacherPrincipal, StudentPrincipal],
    Field(discriminator="role"),
]


class AuthSession(BaseModel):
    """The authenticated principal for one client.

    Created by ``AuthenticationGateway.login`` and ended by ``logout``; it is
    passed explicitly to whatever needs to know who is acting.
    """

    principal: Principal
    token_version: int = 0
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    closed: bool = False

    @property
    def role(self) -> str:
        return self.principal.role

    def close(self) -> None:
        self.closed = True
