"""Domain error taxonomy.

Services raise these; the API turns them into JSON responses with the
matching status code (see ``gradebook.main``).
"""

from typing import Optional


class GradebookError(Exception):
    """Base class. ``code`` is stable and machine readable."""

    code = "error"
    status_code = 400
    default_message = "Request failed."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(GradebookError):
    code = "invalid_credentials"
    status_code = 401
    default_message = "Incorrect credentials."


class AccountDisabled(GradebookError):
    code = "account_disabled"
    status_code = 403
    default_message = "Your teacher account is disabled. Contact the administrator."


class DuplicateCredential(GradebookError):
    code = "duplicate_credential"
    status_code = 409
    default_message = "That email or username is already registered."


class InvalidUsernameFormat(GradebookError):
    code = "invalid_username_format"
    status_code = 422
    default_message = "Student usernames cannot contain '@'."


class HasDependentRecords(GradebookError):
    code = "has_dependent_records"
    status_code = 409
    default_message = "Remove the student's subjects and grades first."


class TransientFailure(GradebookError):
    """The store could not be reached; retrying later may succeed."""

    code = "transient_failure"
    status_code = 503
    default_message = "Could not reach the database. Check your connection and try again."


class NotFound(GradebookError):
    code = "not_found"
    status_code = 404
    default_message = "Record not found."


class PermissionDenied(GradebookError):
    code = "permission_denied"
    status_code = 403
    default_message = "You are not allowed to access this record."


class DuplicateSubject(GradebookError):
    code = "duplicate_subject"
    status_code = 409
    default_message = "The student already has a subject with that name."


class ValidationFailed(GradebookError):
    code = "validation_failed"
    status_code = 422
    default_message = "Invalid input."
