"""Collaborator interfaces consumed by the upload pipeline and health checks."""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

from app.models.employee import Employee
from app.models.notification import NotificationReport

T_contra = TypeVar("T_contra", contravariant=True)


@runtime_checkable
class Validator(Protocol[T_contra]):
    async def validate(self, entity: T_contra) -> bool: ...


@runtime_checkable
class DirectoryLookup(Protocol):
    """Authoritative employee directory."""

    async def serial_exists(self, serial: str) -> bool: ...

    async def email_exists(self, serial: str, email: str) -> bool: ...


@runtime_checkable
class EmployeeStore(Protocol):
    async def save_or_update(self, batch: list[Employee], role: str) -> list[Employee]: ...

    async def retrieve_salt(self, email: str) -> str | None: ...

    async def update_password(self, email: str, password_hash: str, salt: str) -> None: ...


@runtime_checkable
class Notifier(Protocol):
    async def send_password_reset_emails(self, recipients: list[str]) -> NotificationReport: ...


@runtime_checkable
class HealthCheckable(Protocol):
    """Backing service reported by the health endpoint."""

    initialized: bool

    async def check_connection(self) -> bool: ...
