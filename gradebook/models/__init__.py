"""Model exports."""

from gradebook.models.enums import PERIODS, GradeCategory, Role
from gradebook.models.principal import Admin, Student, Teacher
from gradebook.models.subject import Subject
from gradebook.models.grade import Grade

__all__ = [
    "Admin",
    "Grade",
    "GradeCategory",
    "PERIODS",
    "Role",
    "Student",
    "Subject",
    "Teacher",
]
