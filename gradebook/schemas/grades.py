"""Grade sheet request/response models."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from gradebook.models.enums import GradeCategory

# Fixed number of slots per category on a grade sheet
SLOT_COUNTS: dict[GradeCategory, int] = {
    GradeCategory.TASKS: 4,
    GradeCategory.EXAMS: 3,
    GradeCategory.PRESENTATIONS: 3,
}

MIN_GRADE = Decimal("0")
MAX_GRADE = Decimal("10")

# Stored grades keep two decimal places
GRADE_PLACES = Decimal("0.01")


def _empty_slots(category: GradeCategory) -> list[Optional[Decimal]]:
    return [None] * SLOT_COUNTS[category]


class GradeSheet(BaseModel):
    """The grades of one subject in one year and period.

    ``None`` marks an empty slot. Blank strings coming from form inputs are
    read as empty.
    """

    tasks: list[Optional[Decimal]] = Field(
        default_factory=lambda: _empty_slots(GradeCategory.TASKS)
    )
    exams: list[Optional[Decimal]] = Field(
        default_factory=lambda: _empty_slots(GradeCategory.EXAMS)
    )
    presentations: list[Optional[Decimal]] = Field(
        default_factory=lambda: _empty_slots(GradeCategory.PRESENTATIONS)
    )

    @field_validator("tasks", "exams", "presentations", mode="before")
    @classmethod
    def _blank_to_none(cls, values: Any) -> Any:
        if isinstance(values, (list, tuple)):
            return [None if v == "" else v for v in values]
        return values

    @field_validator("tasks", "exams", "presentations")
    @classmethod
    def _check_slots(cls, values: list[Optional[Decimal]], info) -> list[Optional[Decimal]]:
        expected = SLOT_COUNTS[GradeCategory(info.field_name)]
        if len(values) != expected:
            raise ValueError(f"{info.field_name} must have exactly {expected} slots")
        rounded = []
        for value in values:
            if value is not None:
                if not MIN_GRADE <= value <= MAX_GRADE:
                    raise ValueError(f"grade {value} is outside {MIN_GRADE}-{MAX_GRADE}")
                value = value.quantize(GRADE_PLACES, rounding=ROUND_HALF_UP)
            rounded.append(value)
        return rounded

    def slots(self, category: GradeCategory) -> list[Optional[Decimal]]:
        return getattr(self, category.value)


class StatusInfo(BaseModel):
    label: str
    tier: int


class PeriodSummary(BaseModel):
    """Derived view of a grade sheet."""

    task_average: Decimal
    exam_average: Decimal
    presentation_average: Decimal
    final_grade: Decimal
    status: StatusInfo


class GradeSheetResponse(BaseModel):
    subject_id: str
    year: int
    period: str
    grades: GradeSheet
    summary: PeriodSummary


class PeriodOverview(BaseModel):
    period: str
    grades: GradeSheet
    summary: PeriodSummary


class YearOverview(BaseModel):
    year: int
    periods: list[PeriodOverview]


class SubjectOverview(BaseModel):
    subject_id: str
    name: str
    years: list[YearOverview]
