"""Single subject endpoints."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from gradebook.api.v2.students import SubjectResponse
from gradebook.db import get_db
from gradebook.dependencies import get_auth_session, require_teacher
from gradebook.schemas.principals import AuthSession
from gradebook.services import access
from gradebook.services.subjects import SubjectService

router = APIRouter()


@router.get("/{subject_id}", response_model=SubjectResponse)
def get_subject(
    subject_id: str,
    session: AuthSession = Depends(get_auth_session),
    db: Session = Depends(get_db),
):
    subject = SubjectService(db).get_subject(subject_id)
    access.ensure_can_read_subject(session, subject)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_subject(
    subject_id: str,
    session: AuthSession = Depends(require_teacher),
    db: Session = Depends(get_db),
):
    """Removes the subject and every grade recorded for it."""
    service = SubjectService(db)
    access.ensure_can_modify_subject(session, service.get_subject(subject_id))
    service.remove_subject(subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
