"""Admin roster upload: parse, validate, persist, notify."""

from __future__ import annotations

import logging
from enum import Enum

from app.core.exceptions import (
    DUPLICATE_ENTRY,
    EMPTY_FIELD,
    EMPTY_INPUT,
    INVALID_ROW,
    STORAGE_ERROR,
    DuplicateEntryError,
    InvalidEmployeeError,
    MalformedRowError,
    NotificationError,
    StorageError,
)
from app.core.protocols import EmployeeStore, Notifier, Validator
from app.models.employee import Employee, UploadOutcome, UploadResult
from app.models.notification import NotificationReport
from app.services.csv_parser import DEFAULT_DELIMITER, parse_rows

logger = logging.getLogger(__name__)

ROW_FIELD_COUNT = 5

SUCCESS_MESSAGE = "uploaded successfully"
INVALID_CSV_TEMPLATE = (
    "Invalid CSV for employee!\n\n"
    "Serial No: {serial} \n"
    "Full Name: {full_name} \n"
    "Intranet Id: {intranet_id} \n"
    "Roll In Date: {roll_in_date} \n"
    "Roll Off date: {roll_off_date} \n\n"
    "Error message: {reason}"
)
NOTIFICATION_FAILED_TEMPLATE = (
    "Employees uploaded, but password reset emails could not be sent to: {recipients}"
)


class NotificationFailurePolicy(str, Enum):
    IGNORE = "ignore"
    REPORT = "report"


def check_row_integrity(row: list[str]) -> None:
    employee = Employee.from_row(row) if row else None
    if len(row) != ROW_FIELD_COUNT:
        raise MalformedRowError(employee, INVALID_ROW)
    if any(not field for field in row):
        raise MalformedRowError(employee, EMPTY_FIELD)


def format_invalid_employee(employee: Employee | None, reason: str) -> str:
    snapshot = employee or Employee()
    return INVALID_CSV_TEMPLATE.format(**snapshot.model_dump(), reason=reason)


class EmployeeUploadService:
    """Fail-fast batch upload; the first bad row rejects the whole file."""

    def __init__(
        self,
        validator: Validator[Employee],
        store: EmployeeStore,
        notifier: Notifier,
        *,
        role: str,
        notification_policy: NotificationFailurePolicy = NotificationFailurePolicy.IGNORE,
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        self.validator = validator
        self.store = store
        self.notifier = notifier
        self.role = role
        self.notification_policy = NotificationFailurePolicy(notification_policy)
        self.delimiter = delimiter

    async def validate_rows(self, raw_text: str) -> list[Employee]:
        """Parse and validate every row, raising on the first failure.

        A serial or intranet id that repeats within the file raises
        ``DuplicateEntryError`` carrying the repeated row.
        """
        validated: list[Employee] = []
        seen_serials: set[str] = set()
        seen_intranet_ids: set[str] = set()
        for row in parse_rows(raw_text, self.delimiter):
            check_row_integrity(row)
            employee = Employee.from_row(row)
            intranet_id = employee.intranet_id.lower()
            if employee.serial in seen_serials or intranet_id in seen_intranet_ids:
                raise DuplicateEntryError(employee)
            seen_serials.add(employee.serial)
            seen_intranet_ids.add(intranet_id)
            await self.validator.validate(employee)
            validated.append(employee)
        return validated

    async def upload(self, raw_text: str) -> UploadResult:
        try:
            batch = await self.validate_rows(raw_text)
        except InvalidEmployeeError as e:
            logger.error("Upload rejected: %s", e.reason)
            return UploadResult(
                outcome=UploadOutcome.INVALID_ROW,
                message=format_invalid_employee(e.employee, e.reason),
                reason=e.reason,
                employee=e.employee,
            )
        except DuplicateEntryError as e:
            logger.error("Upload rejected: row repeated within the file")
            return UploadResult(
                outcome=UploadOutcome.DUPLICATE_ENTRY,
                message=format_invalid_employee(e.employee, e.reason),
                reason=e.reason,
                employee=e.employee,
            )

        if not batch:
            logger.info("Upload rejected: no employee rows")
            return UploadResult(outcome=UploadOutcome.EMPTY_INPUT, message=EMPTY_INPUT, reason=EMPTY_INPUT)

        try:
            await self.store.save_or_update(batch, self.role)
        except DuplicateEntryError as e:
            logger.error("Upload rejected: %s", e.reason)
            return UploadResult(outcome=UploadOutcome.DUPLICATE_ENTRY, message=DUPLICATE_ENTRY, reason=e.reason)
        except StorageError as e:
            logger.error("Upload failed while saving %d employees: %s", len(batch), e.reason)
            return UploadResult(outcome=UploadOutcome.STORAGE_ERROR, message=STORAGE_ERROR, reason=e.reason)

        recipients = [employee.intranet_id for employee in batch]
        try:
            report = await self.notifier.send_password_reset_emails(recipients)
        except NotificationError:
            logger.exception("Notifier failed for %d recipients", len(recipients))
            report = NotificationReport(failed=recipients)

        if report.failed:
            logger.warning("Password reset emails failed for %d of %d recipients", len(report.failed), len(recipients))
            if self.notification_policy is NotificationFailurePolicy.REPORT:
                return UploadResult(
                    outcome=UploadOutcome.NOTIFICATION_FAILED,
                    message=NOTIFICATION_FAILED_TEMPLATE.format(recipients=", ".join(report.failed)),
                    uploaded=len(batch),
                    failed_recipients=report.failed,
                )

        logger.info("Uploaded %d employees with role=%s", len(batch), self.role)
        return UploadResult(outcome=UploadOutcome.SUCCESS, message=SUCCESS_MESSAGE, uploaded=len(batch))
