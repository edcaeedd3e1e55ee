"""Employee models for roster uploads."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Employee(BaseModel):
    """One roster row as uploaded; dates stay in their uploaded text form."""

    serial: str = ""
    full_name: str = ""
    intranet_id: str = ""
    roll_in_date: str = ""
    roll_off_date: str = ""

    @classmethod
    def from_row(cls, row: list[str]) -> Employee:
        padded = list(row[:5]) + [""] * (5 - len(row))
        return cls(
            serial=padded[0],
            full_name=padded[1],
            intranet_id=padded[2],
            roll_in_date=padded[3],
            roll_off_date=padded[4],
        )


class StoredEmployee(Employee):
    """Employee document as persisted, including credentials."""

    role: str
    salt: str
    password_hash: str | None = None


class UploadOutcome(str, Enum):
    SUCCESS = "success"
    EMPTY_INPUT = "empty_input"
    INVALID_ROW = "invalid_row"
    DUPLICATE_ENTRY = "duplicate_entry"
    STORAGE_ERROR = "storage_error"
    NOTIFICATION_FAILED = "notification_failed"


class UploadResult(BaseModel):
    outcome: UploadOutcome
    message: str
    reason: str | None = None
    employee: Employee | None = None
    uploaded: int = 0
    failed_recipients: list[str] = []

    @property
    def ok(self) -> bool:
        return self.outcome == UploadOutcome.SUCCESS
