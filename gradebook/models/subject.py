"""Subject model: one course a student takes."""

from datetime import datetime
from typing import List

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.db import Base
from gradebook.models.principal import Student, new_id, utcnow


class Subject(Base):
    """A subject belongs to exactly one student.

    ``teacher_id`` duplicates the student's owner so teacher-scoped queries
    need no join; transfers update both.
    """

    __tablename__ = "subjects"
    __table_args__ = (UniqueConstraint("student_id", "name", name="uq_subject_student_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    teacher_id: Mapped[str] = mapped_column(
        ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    student: Mapped[Student] = relationship(back_populates="subjects")
    grades: Mapped[List["Grade"]] = relationship(  # noqa: F821
        back_populates="subject", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name={self.name}, student_id={self.student_id})>"
