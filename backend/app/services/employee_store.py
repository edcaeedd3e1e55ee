"""Cosmos DB employee store."""

from __future__ import annotations

import logging
from typing import Any

from azure.core.exceptions import AzureError
from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosBatchOperationError, CosmosHttpResponseError

from app.core.config import Settings
from app.core.exceptions import DuplicateEntryError, StorageError
from app.core.security import generate_salt
from app.models.employee import Employee, StoredEmployee

logger = logging.getLogger(__name__)

# Cosmos DB is limited to 100 operations per transactional batch
MAX_BATCH_OPERATIONS = 100

# Python attribute names → Cosmos DB document keys
_FIELD_MAP: list[tuple[str, str]] = [
    ("serial", "serial"),
    ("full_name", "fullName"),
    ("intranet_id", "intranetId"),
    ("roll_in_date", "rollInDate"),
    ("roll_off_date", "rollOffDate"),
    ("role", "role"),
    ("salt", "salt"),
    ("password_hash", "passwordHash"),
]


def _is_conflict(error: CosmosHttpResponseError) -> bool:
    if error.status_code == 409:
        return True
    responses = getattr(error, "operation_responses", None) or []
    return any(r.get("statusCode") == 409 for r in responses)


class CosmosEmployeeStore:
    """Employee container partitioned by ``/role``.

    Uniqueness of ``id`` (the serial) and of ``/intranetId`` is enforced by
    the container's unique key policy; conflicts surface as HTTP 409.
    """

    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing — EmployeeStore not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("EmployeeStore initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    def _require_container(self) -> Any:
        if not self.container:
            raise StorageError("EmployeeStore not initialized")
        return self.container

    async def save_or_update(self, batch: list[Employee], role: str) -> list[Employee]:
        """Insert a batch of new employees under ``role``.

        Each chunk of up to 100 employees is written as one transactional
        batch; a failing chunk leaves earlier chunks committed.
        """
        container = self._require_container()
        documents = [self._to_document(employee, role) for employee in batch]

        for start in range(0, len(documents), MAX_BATCH_OPERATIONS):
            chunk = documents[start : start + MAX_BATCH_OPERATIONS]
            operations = [("create", (doc,)) for doc in chunk]
            try:
                await container.execute_item_batch(batch_operations=operations, partition_key=role)
            except CosmosBatchOperationError as e:
                if _is_conflict(e):
                    failed = chunk[e.error_index] if 0 <= e.error_index < len(chunk) else {}
                    logger.error("Duplicate employee in batch: serial=%s", failed.get("serial"))
                    raise DuplicateEntryError() from e
                logger.exception("Transactional batch failed at operation %d", e.error_index)
                raise StorageError() from e
            except CosmosHttpResponseError as e:
                if _is_conflict(e):
                    raise DuplicateEntryError() from e
                logger.exception("Cosmos DB write failed (status=%s)", e.status_code)
                raise StorageError() from e
            except AzureError as e:
                logger.exception("Cosmos DB unreachable while saving batch")
                raise StorageError() from e

        logger.info("Saved %d employees with role=%s", len(documents), role)
        return list(batch)

    async def find_by_email(self, email: str) -> StoredEmployee | None:
        container = self._require_container()
        query = "SELECT * FROM c WHERE LOWER(c.intranetId) = @email"
        params: list[dict[str, str]] = [{"name": "@email", "value": email.strip().lower()}]

        try:
            async for item in container.query_items(
                query=query,
                parameters=params,
                enable_cross_partition_query=True,
            ):
                return self._from_document(item)
        except CosmosHttpResponseError as e:
            logger.exception("Employee lookup by email failed")
            raise StorageError() from e
        except AzureError as e:
            logger.exception("Cosmos DB unreachable during employee lookup")
            raise StorageError() from e
        return None

    async def retrieve_salt(self, email: str) -> str | None:
        employee = await self.find_by_email(email)
        return employee.salt if employee else None

    async def update_password(self, email: str, password_hash: str, salt: str) -> None:
        container = self._require_container()
        employee = await self.find_by_email(email)
        if employee is None:
            raise StorageError(f"No employee with intranet id {email}")

        try:
            await container.patch_item(
                item=employee.serial,
                partition_key=employee.role,
                patch_operations=[
                    {"op": "set", "path": "/passwordHash", "value": password_hash},
                    {"op": "set", "path": "/salt", "value": salt},
                ],
            )
        except CosmosHttpResponseError as e:
            logger.exception("Password update failed for serial=%s", employee.serial)
            raise StorageError() from e
        except AzureError as e:
            logger.exception("Cosmos DB unreachable during password update for serial=%s", employee.serial)
            raise StorageError() from e

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            query = "SELECT VALUE COUNT(1) FROM c"
            async for _ in self.container.query_items(
                query=query,
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    def _to_document(self, employee: Employee, role: str) -> dict[str, Any]:
        stored = StoredEmployee(**employee.model_dump(), role=role, salt=generate_salt())
        data = stored.model_dump()
        doc: dict[str, Any] = {"id": stored.serial}
        for python_key, cosmos_key in _FIELD_MAP:
            doc[cosmos_key] = data[python_key]
        return doc

    def _from_document(self, raw: dict[str, Any]) -> StoredEmployee:
        data: dict[str, Any] = {}
        for python_key, cosmos_key in _FIELD_MAP:
            data[python_key] = raw.get(cosmos_key) or ""
        data["serial"] = data["serial"] or raw.get("id") or ""
        data["password_hash"] = data["password_hash"] or None
        return StoredEmployee(**data)
