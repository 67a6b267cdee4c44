"""Enumerations shared by models, services and schemas."""

import enum


class Role(str, enum.Enum):
    """Principal classes, in login resolution order."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class GradeCategory(str, enum.Enum):
    """Grade groups of a grade sheet.

    Weights and slot counts live in ``gradebook.services.grading``.
    """

    TASKS = "tasks"
    EXAMS = "exams"
    PRESENTATIONS = "presentations"


# Grading terms offered by the grade entry screen
PERIODS = ("Period 1", "Period 2", "Period 3", "Period 4")
