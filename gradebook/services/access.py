"""Authorization checks.

Each check matches the principal's concrete type; a new principal type has to
be handled here explicitly or the check raises ``TypeError``.
"""

from gradebook.errors import PermissionDenied
from gradebook.models import Student, Subject
from gradebook.schemas.principals import (
    AdminPrincipal,
    AuthSession,
    StudentPrincipal,
    TeacherPrincipal,
)


def _active_principal(session: AuthSession):
    if session.closed:
        raise PermissionDenied("The session has ended. Log in again.")
    return session.principal


def can_read_student(session: AuthSession, student: Student) -> bool:
    principal = _active_principal(session)
    if isinstance(principal, AdminPrincipal):
        return True
    if isinstance(principal, TeacherPrincipal):
        return student.teacher_id == principal.id
    if isinstance(principal, StudentPrincipal):
        return student.id == principal.id
    raise TypeError(f"unhandled principal type: {type(principal).__name__}")


def can_modify_student(session: AuthSession, student: Student) -> bool:
    """Only the owning teacher edits a student, its subjects and its grades."""
    principal = _active_principal(session)
    if isinstance(principal, AdminPrincipal):
        return False
    if isinstance(principal, TeacherPrincipal):
        return student.teacher_id == principal.id
    if isinstance(principal, StudentPrincipal):
        return False
    raise TypeError(f"unhandled principal type: {type(principal).__name__}")


def can_manage_teachers(session: AuthSession) -> bool:
    principal = _active_principal(session)
    if isinstance(principal, AdminPrincipal):
        return True
    if isinstance(principal, (TeacherPrincipal, StudentPrincipal)):
        return False
    raise TypeError(f"unhandled principal type: {type(principal).__name__}")


def ensure_can_read_student(session: AuthSession, student: Student) -> None:
    if not can_read_student(session, student):
        raise PermissionDenied()


def ensure_can_modify_student(session: AuthSession, student: Student) -> None:
    if not can_modify_student(session, student):
        raise PermissionDenied()


def ensure_can_read_subject(session: AuthSession, subject: Subject) -> None:
    ensure_can_read_student(session, subject.student)


def ensure_can_modify_subject(session: AuthSession, subject: Subject) -> None:
    ensure_can_modify_student(session, subject.student)


def ensure_can_manage_teachers(session: AuthSession) -> None:
    if not can_manage_teachers(session):
        raise PermissionDenied()


def ensure_teacher(session: AuthSession) -> TeacherPrincipal:
    principal = _active_principal(session)
    if not isinstance(principal, TeacherPrincipal):
        raise PermissionDenied("Teacher access required.")
    return principal


def ensure_student(session: AuthSession) -> StudentPrincipal:
    principal = _active_principal(session)
    if not isinstance(principal, StudentPrincipal):
        raise PermissionDenied("Student access required.")
    return principal
