"""Authentication gateway: login, registration and account management.

Login resolves an identifier against administrators (by email), then teachers
(by email), then students (by username). The first class that knows the
identifier decides the result; a wrong password there fails the login rather
than trying the next class.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional, Union

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradebook.errors import (
    AccountDisabled,
    DuplicateCredential,
    HasDependentRecords,
    InvalidCredentials,
    InvalidUsernameFormat,
    NotFound,
    ValidationFailed,
)
from gradebook.models import Admin, Grade, Role, Student, Subject, Teacher
from gradebook.schemas.principals import (
    AdminPrincipal,
    AuthSession,
    StudentPrincipal,
    TeacherPrincipal,
)
from gradebook.services.store import reading, transaction
from gradebook.services.subjects import clean_subject_name
from gradebook.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

PrincipalRecord = Union[Admin, Teacher, Student]

RECORD_TYPES = {
    Role.ADMIN: Admin,
    Role.TEACHER: Teacher,
    Role.STUDENT: Student,
}


def to_principal(record: PrincipalRecord):
    """Copy the non-secret fields of a stored account into its principal type."""
    if isinstance(record, Admin):
        return AdminPrincipal.model_validate(record)
    if isinstance(record, Teacher):
        return TeacherPrincipal.model_validate(record)
    if isinstance(record, Student):
        return StudentPrincipal.model_validate(record)
    raise TypeError(f"not a principal record: {record!r}")


def _require(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationFailed(f"{field} is required.")
    return value


def _check_email(email: Optional[str]) -> str:
    email = _require(email, "Email")
    if "@" not in email:
        raise ValidationFailed("Email must contain '@'.")
    return email


def _check_username(username: Optional[str]) -> str:
    username = _require(username, "Username")
    if "@" in username:
        raise InvalidUsernameFormat()
    return username


def _check_password(password: Optional[str]) -> str:
    if not password:
        raise ValidationFailed("Password is required.")
    return password


class AuthenticationGateway:
    """Accounts and sessions over one SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # === Sessions ===

    def login(self, identifier: str, password: str) -> AuthSession:
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise InvalidCredentials()

        with reading(self.db):
            admin = self.db.scalar(select(Admin).where(Admin.email == identifier))
            if admin is not None:
                return self._open_session(admin, password)

            teacher = self.db.scalar(select(Teacher).where(Teacher.email == identifier))
            if teacher is not None:
                return self._open_session(teacher, password)

            # Student usernames never contain "@", an email can only be an admin or teacher
            if "@" not in identifier:
                student = self.db.scalar(select(Student).where(Student.username == identifier))
                if student is not None:
                    return self._open_session(student, password)

        logger.info("Login failed: unknown identifier")
        raise InvalidCredentials()

    def _open_session(self, record: PrincipalRecord, password: str) -> AuthSession:
        if not verify_password(password, record.password_hash):
            logger.info("Login failed: wrong password for %s", record.id)
            raise InvalidCredentials()
        if isinstance(record, Teacher) and not record.is_active:
            logger.info("Login refused: teacher %s is disabled", record.id)
            raise AccountDisabled()
        session = AuthSession(principal=to_principal(record), token_version=record.token_version)
        logger.info("Login succeeded: %s %s", session.role, record.id)
        return session

    def logout(self, session: AuthSession) -> None:
        """End ``session`` and revoke every token issued to its principal."""
        model = RECORD_TYPES[Role(session.role)]
        with transaction(self.db):
            record = self.db.get(model, session.principal.id)
            if record is not None:
                record.token_version += 1
        session.close()
        logger.info("Logout: %s %s", session.role, session.principal.id)

    # === Registration ===

    def register_admin(self, name: str, email: str, password: str) -> AdminPrincipal:
        admin = Admin(
            name=_require(name, "Name"),
            email=_check_email(email),
            password_hash=hash_password(_check_password(password)),
        )
        with reading(self.db):
            taken = self.db.scalar(select(Admin.id).where(Admin.email == admin.email))
        if taken is not None:
            raise DuplicateCredential()
        self._insert(admin)
        logger.info("Registered admin %s", admin.id)
        return to_principal(admin)

    def register_teacher(self, name: str, email: str, password: str) -> TeacherPrincipal:
        """Register an active teacher.

        The email pre-check only spares a round trip; the unique constraint on
        ``teachers.email`` decides when two registrations race.
        """
        teacher = Teacher(
            name=_require(name, "Name"),
            email=_check_email(email),
            password_hash=hash_password(_check_password(password)),
            is_active=True,
        )
        with reading(self.db):
            taken = self.db.scalar(select(Teacher.id).where(Teacher.email == teacher.email))
        if taken is not None:
            raise DuplicateCredential()
        self._insert(teacher)
        logger.info("Registered teacher %s", teacher.id)
        return to_principal(teacher)

    def register_student(
        self,
        name: str,
        username: str,
        password: str,
        owner_teacher_id: str,
        grade_level: Optional[str] = None,
        subjects: Iterable[str] = (),
    ) -> StudentPrincipal:
        """Register a student for ``owner_teacher_id``.

        Initial subjects are inserted in the same transaction, so a failure
        leaves neither the student nor any subject behind.
        """
        username = _check_username(username)
        name = _require(name, "Name")
        _check_password(password)
        subject_names = []
        for raw in subjects:
            subject_name = clean_subject_name(raw)
            if subject_name not in subject_names:
                subject_names.append(subject_name)

        with reading(self.db):
            if self.db.get(Teacher, owner_teacher_id) is None:
                raise NotFound("Teacher not found.")
            taken = self.db.scalar(select(Student.id).where(Student.username == username))
        if taken is not None:
            raise DuplicateCredential()

        student = Student(
            name=name,
            username=username,
            password_hash=hash_password(password),
            grade_level=(grade_level or "").strip() or None,
            teacher_id=owner_teacher_id,
        )
        try:
            with transaction(self.db):
                self.db.add(student)
                self.db.flush()
                for subject_name in subject_names:
                    self.db.add(
                        Subject(
                            student_id=student.id,
                            teacher_id=owner_teacher_id,
                            name=subject_name,
                        )
                    )
        except IntegrityError as exc:
            raise DuplicateCredential() from exc
        logger.info(
            "Registered student %s for teacher %s with %d subjects",
            student.id,
            owner_teacher_id,
            len(subject_names),
        )
        return to_principal(student)

    def _insert(self, record: PrincipalRecord) -> None:
        try:
            with transaction(self.db):
                self.db.add(record)
        except IntegrityError as exc:
            raise DuplicateCredential() from exc

    # === Lookups ===

    def get_teacher(self, teacher_id: str) -> Teacher:
        with reading(self.db):
            teacher = self.db.get(Teacher, teacher_id)
        if teacher is None:
            raise NotFound("Teacher not found.")
        return teacher

    def get_student(self, student_id: str) -> Student:
        with reading(self.db):
            student = self.db.get(Student, student_id)
        if student is None:
            raise NotFound("Student not found.")
        return student

    def find_active_teacher(self, email: str) -> Teacher:
        """Transfer recipients are looked up by email among active teachers."""
        with reading(self.db):
            teacher = self.db.scalar(
                select(Teacher).where(Teacher.email == email.strip(), Teacher.is_active.is_(True))
            )
        if teacher is None:
            raise NotFound("No active teacher with that email.")
        return teacher

    def list_teachers(self) -> list[Teacher]:
        with reading(self.db):
            return list(self.db.scalars(select(Teacher).order_by(Teacher.name)))

    def list_students(self, owner_teacher_id: str, search: Optional[str] = None) -> list[Student]:
        query = select(Student).where(Student.teacher_id == owner_teacher_id)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.where(
                or_(func.lower(Student.name).like(pattern), func.lower(Student.username).like(pattern))
            )
        with reading(self.db):
            return list(self.db.scalars(query.order_by(Student.name)))

    # === Students ===

    def update_student(
        self,
        student_id: str,
        name: Optional[str] = None,
        username: Optional[str] = None,
        grade_level: Optional[str] = None,
    ) -> StudentPrincipal:
        student = self.get_student(student_id)
        if username is not None:
            username = _check_username(username)
            if username != student.username:
                with reading(self.db):
                    taken = self.db.scalar(select(Student.id).where(Student.username == username))
                if taken is not None:
                    raise DuplicateCredential()
        try:
            with transaction(self.db):
                if name is not None:
                    student.name = _require(name, "Name")
                if username is not None:
                    student.username = username
                if grade_level is not None:
                    student.grade_level = grade_level.strip() or None
        except IntegrityError as exc:
            raise DuplicateCredential() from exc
        logger.info("Updated student %s", student_id)
        return to_principal(student)

    def delete_student(self, student_id: str, cascade: bool = False) -> None:
        """Delete a student.

        Without ``cascade`` a student that still has subjects or grades is
        refused and nothing is deleted.
        """
        student = self.get_student(student_id)
        with reading(self.db):
            subject_count = self.db.scalar(
                select(func.count(Subject.id)).where(Subject.student_id == student_id)
            )
            grade_count = self.db.scalar(
                select(func.count(Grade.id))
                .join(Subject, Grade.subject_id == Subject.id)
                .where(Subject.student_id == student_id)
            )
        if (subject_count or grade_count) and not cascade:
            raise HasDependentRecords(
                f"The student still has {subject_count} subject(s) and {grade_count} grade(s)."
            )
        with transaction(self.db):
            self.db.delete(student)
        logger.info(
            "Deleted student %s (%d subjects, %d grades)", student_id, subject_count, grade_count
        )

    def transfer_student(self, student_id: str, new_owner_teacher_id: str) -> StudentPrincipal:
        """Move a student and all of its subjects to another teacher, atomically."""
        student = self.get_student(student_id)
        recipient = self.get_teacher(new_owner_teacher_id)
        if not recipient.is_active:
            raise ValidationFailed("Students can only be transferred to an active teacher.")
        if recipient.id == student.teacher_id:
            raise ValidationFailed("The student already belongs to that teacher.")

        previous_owner = student.teacher_id
        with transaction(self.db):
            student.teacher = recipient
            self.db.flush()
            self._reassign_subjects(student.id, recipient.id)
        logger.info(
            "Transferred student %s from teacher %s to %s", student_id, previous_owner, recipient.id
        )
        return to_principal(student)

    def _reassign_subjects(self, student_id: str, teacher_id: str) -> None:
        self.db.execute(
            update(Subject)
            .where(Subject.student_id == student_id)
            .values(teacher_id=teacher_id)
            .execution_options(synchronize_session="fetch")
        )

    # === Teachers ===

    def set_teacher_active(self, teacher_id: str, active: bool) -> TeacherPrincipal:
        teacher = self.get_teacher(teacher_id)
        with transaction(self.db):
            teacher.is_active = active
        logger.info("Teacher %s %s", teacher_id, "activated" if active else "deactivated")
        return to_principal(teacher)

    def toggle_teacher_active(self, teacher_id: str) -> TeacherPrincipal:
        teacher = self.get_teacher(teacher_id)
        return self.set_teacher_active(teacher_id, not teacher.is_active)

    def update_teacher_password(self, teacher_id: str, new_password: str) -> None:
        teacher = self.get_teacher(teacher_id)
        password_hash = hash_password(_check_password(new_password))
        with transaction(self.db):
            teacher.password_hash = password_hash
            teacher.token_version += 1
        logger.info("Password reset for teacher %s", teacher_id)

    def delete_teacher(self, teacher_id: str) -> int:
        """Delete a teacher with their students and, through them, subjects and grades.

        Returns the number of students removed.
        """
        teacher = self.get_teacher(teacher_id)
        student_count = len(teacher.students)
        with transaction(self.db):
            self.db.delete(teacher)
        logger.info("Deleted teacher %s and %d students", teacher_id, student_count)
        return student_count

