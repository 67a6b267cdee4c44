"""Login, teacher self-registration and the current session."""

from fastapi import APIRouter, Depends, Form, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from gradebook.db import get_db
from gradebook.dependencies import get_auth_session
from gradebook.schemas.principals import AuthSession, TeacherPrincipal
from gradebook.services.auth import AuthenticationGateway
from gradebook.utils.security import create_token

router = APIRouter()


# === Schemas ===

class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    session: AuthSession


class TeacherCreate(BaseModel):
    name: str
    email: str
    password: str


# === Endpoints ===

@router.post("/login", response_model=LoginResponse)
def login(
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    """Log in with an email (admin, teacher) or a username (student)."""
    session = AuthenticationGateway(db).login(username, password)
    token = create_token(session.principal.id, session.role, session.token_version)
    return {"access_token": token, "token_type": "bearer", "session": session}


@router.post("/register", response_model=TeacherPrincipal, status_code=status.HTTP_201_CREATED)
def register_teacher(data: TeacherCreate, db: Session = Depends(get_db)):
    """Teacher self-registration. Students are registered by their teacher."""
    return AuthenticationGateway(db).register_teacher(data.name, data.email, data.password)


@router.get("/me", response_model=AuthSession)
def me(session: AuthSession = Depends(get_auth_session)):
    return session


@router.post("/logout")
def logout(
    session: AuthSession = Depends(get_auth_session), db: Session = Depends(get_db)
):
    AuthenticationGateway(db).logout(session)
    return {"message": "Logged out."}
