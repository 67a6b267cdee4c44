"""Administrator panel: teacher accounts."""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gradebook.db import get_db
from gradebook.dependencies import require_admin
from gradebook.schemas.principals import AuthSession, StudentPrincipal, TeacherPrincipal
from gradebook.services.auth import AuthenticationGateway, to_principal

router = APIRouter()


# === Schemas ===

class TeacherOverview(BaseModel):
    teacher: TeacherPrincipal
    students: List[StudentPrincipal]


class PasswordUpdate(BaseModel):
    password: str


# === Endpoints ===

@router.get("/teachers", response_model=List[TeacherOverview])
def list_teachers(
    session: AuthSession = Depends(require_admin), db: Session = Depends(get_db)
):
    gateway = AuthenticationGateway(db)
    return [
        {
            "teacher": to_principal(teacher),
            "students": [to_principal(s) for s in gateway.list_students(teacher.id)],
        }
        for teacher in gateway.list_teachers()
    ]


@router.post("/teachers/{teacher_id}/toggle-active", response_model=TeacherPrincipal)
def toggle_active(
    teacher_id: str,
    session: AuthSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return AuthenticationGateway(db).toggle_teacher_active(teacher_id)


@router.put("/teachers/{teacher_id}/password")
def reset_password(
    teacher_id: str,
    data: PasswordUpdate,
    session: AuthSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    AuthenticationGateway(db).update_teacher_password(teacher_id, data.password)
    return {"message": "Password updated."}


@router.delete("/teachers/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_teacher(
    teacher_id: str,
    session: AuthSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Deletes the teacher with all of their students, subjects and grades."""
    AuthenticationGateway(db).delete_teacher(teacher_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
