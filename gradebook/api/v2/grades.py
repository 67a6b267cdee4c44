"""Grade sheets, the student dashboard and the grade calculator."""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gradebook.db import get_db
from gradebook.dependencies import get_auth_session, require_student, require_teacher
from gradebook.models import GradeCategory
from gradebook.schemas.grades import GradeSheet, GradeSheetResponse, PeriodSummary, SubjectOverview
from gradebook.schemas.principals import AuthSession
from gradebook.services import access
from gradebook.services.auth import AuthenticationGateway
from gradebook.services.grades import GradeService
from gradebook.services.grading import summarize
from gradebook.services.subjects import SubjectService

router = APIRouter()


# === Schemas ===

class SlotUpdate(BaseModel):
    value: Optional[Decimal] = None


class YearsResponse(BaseModel):
    years: List[int]


# === Endpoints ===

@router.post("/summary", response_model=PeriodSummary)
def summary(sheet: GradeSheet, session: AuthSession = Depends(get_auth_session)):
    """Averages, final grade and status of an unsaved sheet."""
    return summarize(sheet)


@router.get("/overview/me", response_model=List[SubjectOverview])
def my_overview(
    session: AuthSession = Depends(require_student), db: Session = Depends(get_db)
):
    return GradeService(db).student_overview(session.principal.id)


@router.get("/overview/{student_id}", response_model=List[SubjectOverview])
def student_overview(
    student_id: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    access.ensure_can_read_student(session, AuthenticationGateway(db).get_student(student_id))
    return GradeService(db).student_overview(student_id)


@router.get("/{subject_id}/years", response_model=YearsResponse)
def available_years(
    subject_id: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    access.ensure_can_read_subject(session, SubjectService(db).get_subject(subject_id))
    return {"years": GradeService(db).available_years(subject_id)}


@router.get("/{subject_id}/{year}/{period}", response_model=GradeSheetResponse)
def get_sheet(
    subject_id: str,
    year: int,
    period: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    access.ensure_can_read_subject(session, SubjectService(db).get_subject(subject_id))
    return GradeService(db).get_sheet(subject_id, year, period)


@router.put("/{subject_id}/{year}/{period}", response_model=GradeSheetResponse)
def save_sheet(
    subject_id: str,
    year: int,
    period: str,
    sheet: GradeSheet,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    """Store the sheet as sent; empty slots delete previously saved grades."""
    access.ensure_can_modify_subject(session, SubjectService(db).get_subject(subject_id))
    return GradeService(db).save_sheet(subject_id, year, period, sheet)


@router.put(
    "/{subject_id}/{year}/{period}/{category}/{slot_index}",
    response_model=GradeSheetResponse,
)
def set_grade(
    subject_id: str,
    year: int,
    period: str,
    category: GradeCategory,
    slot_index: int,
    data: SlotUpdate,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    access.ensure_can_modify_subject(session, SubjectService(db).get_subject(subject_id))
    return GradeService(db).set_grade(subject_id, year, period, category, slot_index, data.value)
