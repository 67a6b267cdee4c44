"""API v2 router package."""

from fastapi import APIRouter

from gradebook.api.v2 import admin, auth, grades, students, subjects

router = APIRouter(prefix="/api/v2")

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(students.router, prefix="/students", tags=["students"])
router.include_router(subjects.router, prefix="/subjects", tags=["subjects"])
router.include_router(grades.router, prefix="/grades", tags=["grades"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
