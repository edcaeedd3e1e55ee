"""Field-level validation of uploaded employee rows."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime

from app.core.exceptions import (
    EMAIL_NOT_FOUND,
    EMPTY_FIELD,
    INVALID_DATE,
    INVALID_DATE_RANGE,
    INVALID_EMAIL,
    INVALID_NAME,
    INVALID_SERIAL,
    SERIAL_NOT_FOUND,
    DateValidationError,
    InvalidEmployeeError,
    MalformedRowError,
    PatternMismatchError,
    UnknownReferenceError,
)
from app.core.protocols import DirectoryLookup
from app.models.employee import Employee

logger = logging.getLogger(__name__)

VALID_SERIAL_REGEX = re.compile(r"^[A-Za-z0-9]{5,9}$")
VALID_NAME_REGEX = re.compile(r"^[^\W\d_]+(?:[ .'-]+[^\W\d_]+)*\.?$")
VALID_EMAIL_REGEX = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$")

DEFAULT_DATE_FORMAT = "%Y-%m-%d"


class EmployeeValidator:
    """Checks an uploaded employee; raises on the first rule that fails.

    Only the two directory checks leave the process; every other rule is a
    pure string check.
    """

    def __init__(self, directory: DirectoryLookup, date_format: str = DEFAULT_DATE_FORMAT) -> None:
        self.directory = directory
        self.date_format = date_format

    async def validate(self, employee: Employee) -> bool:
        self.check_not_empty(employee)
        self.check_serial_format(employee)
        await self.check_serial_exists(employee)
        self.check_name_format(employee)
        self.check_email_format(employee)
        await self.check_email_exists(employee)
        roll_in = self.parse_date(employee, employee.roll_in_date)
        roll_off = self.parse_date(employee, employee.roll_off_date)
        self.check_date_range(employee, roll_in, roll_off)
        return True

    def check_not_empty(self, employee: Employee) -> None:
        values = (
            employee.serial,
            employee.full_name,
            employee.intranet_id,
            employee.roll_in_date,
            employee.roll_off_date,
        )
        if any(not value.strip() for value in values):
            raise self._error(MalformedRowError, employee, EMPTY_FIELD)

    def check_serial_format(self, employee: Employee) -> None:
        self._match(VALID_SERIAL_REGEX, employee, employee.serial, INVALID_SERIAL)

    def check_name_format(self, employee: Employee) -> None:
        self._match(VALID_NAME_REGEX, employee, employee.full_name, INVALID_NAME)

    def check_email_format(self, employee: Employee) -> None:
        self._match(VALID_EMAIL_REGEX, employee, employee.intranet_id, INVALID_EMAIL)

    async def check_serial_exists(self, employee: Employee) -> None:
        if not await self.directory.serial_exists(employee.serial):
            raise self._error(UnknownReferenceError, employee, SERIAL_NOT_FOUND)

    async def check_email_exists(self, employee: Employee) -> None:
        if not await self.directory.email_exists(employee.serial, employee.intranet_id):
            raise self._error(UnknownReferenceError, employee, EMAIL_NOT_FOUND)

    def parse_date(self, employee: Employee, value: str) -> date:
        try:
            return datetime.strptime(value, self.date_format).date()  # noqa: DTZ007
        except ValueError as err:
            raise self._error(DateValidationError, employee, INVALID_DATE) from err

    def check_date_range(self, employee: Employee, roll_in: date, roll_off: date) -> None:
        if roll_in > roll_off:
            raise self._error(DateValidationError, employee, INVALID_DATE_RANGE)

    def _match(self, pattern: re.Pattern[str], employee: Employee, value: str, reason: str) -> None:
        if not pattern.fullmatch(value):
            raise self._error(PatternMismatchError, employee, reason)

    def _error(self, error_cls: type[InvalidEmployeeError], employee: Employee, reason: str) -> InvalidEmployeeError:
        logger.info("Cause of error: %s (serial=%s)", reason, employee.serial)
        return error_cls(employee, reason)
