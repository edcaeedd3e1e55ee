"""Domain exceptions for roster uploads, password resets and notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.employee import Employee

EMPTY_INPUT = "No employee rows found in the uploaded file."
EMPTY_FIELD = "Empty field/s found in CSV row."
INVALID_ROW = "Invalid CSV row: expected 5 fields (serial, name, intranet id, roll in date, roll off date)."
INVALID_SERIAL = "Invalid employee serial format."
SERIAL_NOT_FOUND = "Employee serial does not exist."
INVALID_NAME = "Invalid employee name format."
INVALID_EMAIL = "Invalid intranet id / email address format."
EMAIL_NOT_FOUND = "Employee email does not exist."
INVALID_DATE = "Invalid date format."
INVALID_DATE_RANGE = "Invalid date range: roll in date is after roll off date."
DUPLICATE_ENTRY = "Duplicate entry: employee serial or intranet id already exists."
STORAGE_ERROR = "Unable to save employees, please try again later."


class PumError(Exception):
    pass


class UploadError(PumError):
    reason: str = ""

    def __init__(self, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class EmptyInputError(UploadError):
    reason = EMPTY_INPUT


class InvalidEmployeeError(UploadError):
    """A row failed validation; carries the offending employee snapshot."""

    def __init__(self, employee: Employee | None, reason: str) -> None:
        self.employee = employee
        super().__init__(reason)


class MalformedRowError(InvalidEmployeeError):
    pass


class PatternMismatchError(InvalidEmployeeError):
    pass


class UnknownReferenceError(InvalidEmployeeError):
    pass


class DateValidationError(InvalidEmployeeError):
    pass


class DuplicateEntryError(UploadError):
    reason = DUPLICATE_ENTRY

    def __init__(self, employee: Employee | None = None, reason: str | None = None) -> None:
        self.employee = employee
        super().__init__(reason)


class StorageError(UploadError):
    reason = STORAGE_ERROR


class DirectoryLookupError(PumError):
    pass


class ResetTokenError(PumError):
    pass


class NotificationError(PumError):
    pass
