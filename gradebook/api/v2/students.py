"""Students of the logged-in teacher: registration, edits, transfer, subjects."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from gradebook.db import get_db
from gradebook.dependencies import get_auth_session, require_teacher
from gradebook.errors import ValidationFailed
from gradebook.schemas.principals import AuthSession, StudentPrincipal
from gradebook.services import access
from gradebook.services.auth import AuthenticationGateway, to_principal
from gradebook.services.subjects import SubjectService

router = APIRouter()


# === Schemas ===

class StudentCreate(BaseModel):
    name: str
    username: str
    password: str
    grade_level: Optional[str] = None
    subjects: List[str] = Field(default_factory=list)


class StudentUpdate(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    grade_level: Optional[str] = None


class TransferRequest(BaseModel):
    """Recipient by id, or by email as typed on the transfer form."""

    teacher_id: Optional[str] = None
    teacher_email: Optional[str] = None


class SubjectCreate(BaseModel):
    name: str


class SubjectResponse(BaseModel):
    id: str
    student_id: str
    teacher_id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


# === Endpoints ===

@router.get("/", response_model=List[StudentPrincipal])
def list_students(
    search: Optional[str] = None,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    """The teacher's own students, optionally filtered by name or username."""
    students = AuthenticationGateway(db).list_students(session.principal.id, search)
    return [to_principal(student) for student in students]


@router.post("/", response_model=StudentPrincipal, status_code=status.HTTP_201_CREATED)
def register_student(
    data: StudentCreate,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    if not data.subjects:
        raise ValidationFailed("Select at least one subject.")
    return AuthenticationGateway(db).register_student(
        data.name,
        data.username,
        data.password,
        session.principal.id,
        grade_level=data.grade_level,
        subjects=data.subjects,
    )


@router.get("/{student_id}", response_model=StudentPrincipal)
def get_student(
    student_id: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    student = AuthenticationGateway(db).get_student(student_id)
    access.ensure_can_read_student(session, student)
    return to_principal(student)


@router.patch("/{student_id}", response_model=StudentPrincipal)
def update_student(
    student_id: str,
    data: StudentUpdate,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    gateway = AuthenticationGateway(db)
    access.ensure_can_modify_student(session, gateway.get_student(student_id))
    return gateway.update_student(
        student_id, name=data.name, username=data.username, grade_level=data.grade_level
    )


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: str,
    cascade: bool = False,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    """Refuses while the student has subjects or grades unless ``cascade=true``."""
    gateway = AuthenticationGateway(db)
    access.ensure_can_modify_student(session, gateway.get_student(student_id))
    gateway.delete_student(student_id, cascade=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{student_id}/transfer", response_model=StudentPrincipal)
def transfer_student(
    student_id: str,
    data: TransferRequest,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    gateway = AuthenticationGateway(db)
    access.ensure_can_modify_student(session, gateway.get_student(student_id))
    if data.teacher_id:
        recipient_id = data.teacher_id
    elif data.teacher_email:
        recipient_id = gateway.find_active_teacher(data.teacher_email).id
    else:
        raise ValidationFailed("Choose the teacher to transfer the student to.")
    return gateway.transfer_student(student_id, recipient_id)


@router.get("/{student_id}/subjects", response_model=List[SubjectResponse])
def list_subjects(
    student_id: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    access.ensure_can_read_student(session, AuthenticationGateway(db).get_student(student_id))
    return SubjectService(db).list_subjects(student_id)


@router.post(
    "/{student_id}/subjects",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
)
def assign_subject(
    student_id: str,
    data: SubjectCreate,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    access.ensure_can_modify_student(session, AuthenticationGateway(db).get_student(student_id))
    return SubjectService(db).assign_subject(student_id, data.name)
