"""Grade model: one value in one slot of a grade sheet."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.db import Base
from gradebook.models.enums import GradeCategory
from gradebook.models.principal import new_id, utcnow
from gradebook.models.subject import Subject


class Grade(Base):
    """At most one row per ``(subject, year, period, category, slot)``.

    A cleared slot has no row; there is no "present but empty" state.
    """

    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint(
            "subject_id", "year", "period", "category", "slot_index", name="uq_grade_slot"
        ),
        CheckConstraint("value >= 0 AND value <= 10", name="ck_grade_value_range"),
        CheckConstraint("slot_index >= 0", name="ck_grade_slot_index"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    subject_id: Mapped[str] = mapped_column(
        ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[GradeCategory] = mapped_column(Enum(GradeCategory), nullable=False)
    slot_index: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    subject: Mapped[Subject] = relationship(back_populates="grades")

    def __repr__(self) -> str:
        return (
            f"<Grade(subject_id={self.subject_id}, {self.year}/{self.period}, "
            f"{self.category.value}[{self.slot_index}]={self.value})>"
        )
