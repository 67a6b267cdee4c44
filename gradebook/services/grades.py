"""Grade sheets: reading and saving the grades of one subject, year and period.

A slot is either absent (no row) or holds a value. Saving a sheet inserts,
updates or deletes rows so the store matches the sheet exactly.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from gradebook.errors import NotFound, TransientFailure, ValidationFailed
from gradebook.models import PERIODS, Grade, GradeCategory, Student, Subject
from gradebook.schemas.grades import (
    SLOT_COUNTS,
    GradeSheet,
    GradeSheetResponse,
    PeriodOverview,
    SubjectOverview,
    YearOverview,
)
from gradebook.services.grading import summarize
from gradebook.services.store import reading, transaction

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100

SlotKey = tuple[GradeCategory, int]


def check_term(year: int, period: str) -> None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationFailed(f"Year must be between {MIN_YEAR} and {MAX_YEAR}.")
    if period not in PERIODS:
        raise ValidationFailed(f"Period must be one of: {', '.join(PERIODS)}.")


def sheet_from_rows(rows: Iterable[Grade]) -> GradeSheet:
    slots: dict[GradeCategory, list[Optional[Decimal]]] = {
        category: [None] * count for category, count in SLOT_COUNTS.items()
    }
    for row in rows:
        values = slots[row.category]
        if row.slot_index < len(values):
            values[row.slot_index] = row.value
    return GradeSheet(**{category.value: values for category, values in slots.items()})


class GradeService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _subject(self, subject_id: str) -> Subject:
        subject = self.db.get(Subject, subject_id)
        if subject is None:
            raise NotFound("Subject not found.")
        return subject

    def _rows(self, subject_id: str, year: int, period: str) -> dict[SlotKey, Grade]:
        rows = self.db.scalars(
            select(Grade).where(
                Grade.subject_id == subject_id, Grade.year == year, Grade.period == period
            )
        )
        return {(row.category, row.slot_index): row for row in rows}

    def get_sheet(self, subject_id: str, year: int, period: str) -> GradeSheetResponse:
        check_term(year, period)
        with reading(self.db):
            self._subject(subject_id)
            sheet = sheet_from_rows(self._rows(subject_id, year, period).values())
        return GradeSheetResponse(
            subject_id=subject_id, year=year, period=period, grades=sheet, summary=summarize(sheet)
        )

    def save_sheet(
        self, subject_id: str, year: int, period: str, sheet: GradeSheet
    ) -> GradeSheetResponse:
        """Persist every slot of ``sheet`` in one transaction.

        If another writer inserts one of the same slots first, the unique key
        rejects our insert; the save is then replayed once, turning the insert
        into an update (last write wins).
        """
        check_term(year, period)
        with reading(self.db):
            self._subject(subject_id)

        for attempt in (1, 2):
            try:
                with transaction(self.db):
                    changes = self._apply(subject_id, year, period, sheet)
                break
            except IntegrityError as exc:
                if attempt == 2:
                    raise TransientFailure(
                        "The grade sheet was changed by someone else. Reload and try again."
                    ) from exc
                logger.info("Grade slot race on subject %s, replaying save", subject_id)

        logger.info(
            "Saved grades for subject %s %s/%s: %d inserted, %d updated, %d deleted",
            subject_id,
            year,
            period,
            *changes,
        )
        return self.get_sheet(subject_id, year, period)

    def _apply(
        self, subject_id: str, year: int, period: str, sheet: GradeSheet
    ) -> tuple[int, int, int]:
        existing = self._rows(subject_id, year, period)
        inserted = updated = deleted = 0
        for category in GradeCategory:
            for slot_index, value in enumerate(sheet.slots(category)):
                row = existing.get((category, slot_index))
                if value is None:
                    if row is not None:
                        self.db.delete(row)
                        deleted += 1
                elif row is None:
                    self.db.add(
                        Grade(
                            subject_id=subject_id,
                            year=year,
                            period=period,
                            category=category,
                            slot_index=slot_index,
                            value=value,
                        )
                    )
                    inserted += 1
                elif row.value != value:
                    row.value = value
                    updated += 1
        self.db.flush()
        return inserted, updated, deleted

    def set_grade(
        self,
        subject_id: str,
        year: int,
        period: str,
        category: GradeCategory,
        slot_index: int,
        value: Optional[Decimal],
    ) -> GradeSheetResponse:
        """Fill, change or clear a single slot."""
        if not 0 <= slot_index < SLOT_COUNTS[category]:
            raise ValidationFailed(
                f"{category.value} has slots 0-{SLOT_COUNTS[category] - 1}."
            )
        current = self.get_sheet(subject_id, year, period).grades
        values = list(current.slots(category))
        values[slot_index] = value
        try:
            sheet = current.model_copy(update={category.value: values})
            sheet = GradeSheet.model_validate(sheet.model_dump())
        except ValueError as exc:
            raise ValidationFailed(str(exc)) from exc
        return self.save_sheet(subject_id, year, period, sheet)

    def available_years(self, subject_id: str, today: Optional[date] = None) -> list[int]:
        """Years with grades for the subject plus the current year, newest first."""
        current_year = (today or date.today()).year
        with reading(self.db):
            self._subject(subject_id)
            years = set(
                self.db.scalars(select(Grade.year).where(Grade.subject_id == subject_id).distinct())
            )
        years.add(current_year)
        return sorted(years, reverse=True)

    def student_overview(self, student_id: str) -> list[SubjectOverview]:
        """All subjects of a student with their grades by year and period."""
        with reading(self.db):
            if self.db.get(Student, student_id) is None:
                raise NotFound("Student not found.")
            subjects = list(
                self.db.scalars(
                    select(Subject)
                    .where(Subject.student_id == student_id)
                    .options(selectinload(Subject.grades))
                    .order_by(Subject.name)
                )
            )

        overview = []
        for subject in subjects:
            terms: dict[int, dict[str, list[Grade]]] = defaultdict(lambda: defaultdict(list))
            for grade in subject.grades:
                terms[grade.year][grade.period].append(grade)
            years = []
            for year in sorted(terms, reverse=True):
                periods = []
                for period in sorted(terms[year], key=_period_order):
                    sheet = sheet_from_rows(terms[year][period])
                    periods.append(
                        PeriodOverview(period=period, grades=sheet, summary=summarize(sheet))
                    )
                years.append(YearOverview(year=year, periods=periods))
            overview.append(SubjectOverview(subject_id=subject.id, name=subject.name, years=years))
        return overview


def _period_order(period: str) -> int:
    return PERIODS.index(period) if period in PERIODS else len(PERIODS)
