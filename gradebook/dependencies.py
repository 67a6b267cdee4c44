"""FastAPI dependencies: bearer token to ``AuthSession``."""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from gradebook.db import get_db
from gradebook.errors import AccountDisabled, InvalidCredentials
from gradebook.models import Role, Teacher
from gradebook.schemas.principals import AuthSession
from gradebook.services import access
from gradebook.services.auth import RECORD_TYPES, to_principal
from gradebook.services.store import reading
from gradebook.utils.security import decode_token


def get_auth_session(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> AuthSession:
    """Rebuild the caller's session from the ``Authorization: Bearer`` header.

    The account is reloaded on every request, so a teacher deactivated after
    logging in is locked out at once, and a token issued before the account's
    last logout or password reset is refused.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise InvalidCredentials("Not logged in.")

    payload = decode_token(authorization[7:])
    if not payload or "sub" not in payload or "role" not in payload:
        raise InvalidCredentials("Session expired or invalid. Log in again.")

    try:
        model = RECORD_TYPES[Role(payload["role"])]
    except ValueError as exc:
        raise InvalidCredentials("Session expired or invalid. Log in again.") from exc

    with reading(db):
        record = db.get(model, payload["sub"])
    if record is None:
        raise InvalidCredentials("Session expired or invalid. Log in again.")
    if payload.get("ver", 0) != record.token_version:
        raise InvalidCredentials("Session ended. Log in again.")
    if isinstance(record, Teacher) and not record.is_active:
        raise AccountDisabled()
    return AuthSession(principal=to_principal(record), token_version=record.token_version)


def require_admin(session: AuthSession = Depends(get_auth_session)) -> AuthSession:
    access.ensure_can_manage_teachers(session)
    return session


def require_teacher(session: AuthSession = Depends(get_auth_session)) -> AuthSession:
    access.ensure_teacher(session)
    return session


def require_student(session: AuthSession = Depends(get_auth_session)) -> AuthSession:
    access.ensure_student(session)
    return session
