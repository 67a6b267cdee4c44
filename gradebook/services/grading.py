"""Grade engine: averages, weighted final grade and status.

Pure functions, no I/O. Every view that shows a period's result goes through
``summarize`` so the grading rules exist in exactly one place.

Rounding: values are computed on ``Decimal`` and rounded to two places with
``ROUND_HALF_UP`` (``7.605`` becomes ``7.61``), which is how the numbers are
read on a report card.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from gradebook.models.enums import GradeCategory
from gradebook.schemas.grades import GradeSheet, PeriodSummary, StatusInfo

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")

# Fixed weights; they sum to 1
WEIGHTS: dict[GradeCategory, Decimal] = {
    GradeCategory.TASKS: Decimal("0.4"),
    GradeCategory.EXAMS: Decimal("0.4"),
    GradeCategory.PRESENTATIONS: Decimal("0.2"),
}


class GradeStatus(enum.Enum):
    """Qualitative result. Value is ``(label, tier, lower bound)``; tier 1 is best."""

    EXCELLENT = ("Excellent", 1, Decimal("9.0"))
    GOOD = ("Good", 2, Decimal("7.0"))
    ACCEPTABLE = ("Acceptable", 3, Decimal("5.0"))
    INSUFFICIENT = ("Insufficient", 4, Decimal("0"))

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def tier(self) -> int:
        return self.value[1]

    @property
    def threshold(self) -> Decimal:
        return self.value[2]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() avoids binary float artefacts such as 8.1 -> 8.0999...
        return Decimal(str(value))
    return Decimal(value)


def _round(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _is_absent(value: Optional[Number]) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def average(values: Iterable[Optional[Number]]) -> Decimal:
    """Mean of the present values, ``0.00`` when none are present."""
    present = [_to_decimal(v) for v in values if not _is_absent(v)]
    if not present:
        return _round(Decimal(0))
    return _round(sum(present, Decimal(0)) / len(present))


def final_grade(task_avg: Number, exam_avg: Number, presentation_avg: Number) -> Decimal:
    """Weighted final grade, 40% tasks, 40% exams, 20% presentations."""
    total = (
        WEIGHTS[GradeCategory.TASKS] * _to_decimal(task_avg)
        + WEIGHTS[GradeCategory.EXAMS] * _to_decimal(exam_avg)
        + WEIGHTS[GradeCategory.PRESENTATIONS] * _to_decimal(presentation_avg)
    )
    return _round(total)


def status(grade: Number) -> GradeStatus:
    """Highest tier whose lower bound ``grade`` reaches; bounds are inclusive."""
    value = _to_decimal(grade)
    for candidate in GradeStatus:
        if value >= candidate.threshold:
            return candidate
    return GradeStatus.INSUFFICIENT


def summarize(sheet: GradeSheet) -> PeriodSummary:
    """Compose ``average``, ``final_grade`` and ``status`` for one sheet."""
    task_avg = average(sheet.tasks)
    exam_avg = average(sheet.exams)
    presentation_avg = average(sheet.presentations)
    final = final_grade(task_avg, exam_avg, presentation_avg)
    result = status(final)
    return PeriodSummary(
        task_average=task_avg,
        exam_average=exam_avg,
        presentation_average=presentation_avg,
        final_grade=final,
        status=StatusInfo(label=result.label, tier=result.tier),
    )
