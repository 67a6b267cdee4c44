"""Subjects assigned to a student."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gradebook.errors import DuplicateSubject, NotFound, ValidationFailed
from gradebook.models import Student, Subject
from gradebook.services.store import reading, transaction

logger = logging.getLogger(__name__)


def clean_subject_name(name: Optional[str]) -> str:
    """Trim surrounding whitespace. Names stay case-sensitive: "Math" and "math" differ."""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailed("Subject name is required.")
    return cleaned


class SubjectService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_subject(self, subject_id: str) -> Subject:
        with reading(self.db):
            subject = self.db.get(Subject, subject_id)
        if subject is None:
            raise NotFound("Subject not found.")
        return subject

    def list_subjects(self, student_id: str) -> list[Subject]:
        with reading(self.db):
            return list(
                self.db.scalars(
                    select(Subject).where(Subject.student_id == student_id).order_by(Subject.name)
                )
            )

    def assign_subject(self, student_id: str, name: str) -> Subject:
        """Add a subject to a student; it belongs to the student's current teacher."""
        name = clean_subject_name(name)
        with reading(self.db):
            student = self.db.get(Student, student_id)
            if student is None:
                raise NotFound("Student not found.")
            existing = self.db.scalar(
                select(Subject.id).where(Subject.student_id == student_id, Subject.name == name)
            )
        if existing is not None:
            raise DuplicateSubject()

        subject = Subject(student_id=student.id, teacher_id=student.teacher_id, name=name)
        try:
            with transaction(self.db):
                self.db.add(subject)
        except IntegrityError as exc:
            raise DuplicateSubject() from exc
        logger.info("Assigned subject %s to student %s", subject.id, student_id)
        return subject

    def remove_subject(self, subject_id: str) -> None:
        """Delete a subject together with all of its grades."""
        subject = self.get_subject(subject_id)
        with transaction(self.db):
            self.db.delete(subject)
        logger.info("Removed subject %s", subject_id)
