from __future__ import annotations

import base64
import time

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt
from starlette.testclient import TestClient

from app.core.config import settings
from app.core.dependencies import get_current_user, get_password_reset_service, get_upload_service
from app.core.exceptions import DuplicateEntryError, StorageError
from app.main import app
from app.models.auth import UserInfo
from app.models.employee import Employee
from app.models.notification import NotificationReport
from app.services.employee_validator import EmployeeValidator
from app.services.password_reset_service import PasswordResetService
from app.services.upload_service import EmployeeUploadService

SAMPLE_CSV = "serial,name,email,rollin,rolloff\n12345,Jane Doe,jane@x.com,2024-01-01,2024-06-01"

HEADER_BLOCK_CSV = (
    "Admin list upload\n"
    "Generated by PUM\n"
    "\n"
    "Serial,Full Name,Intranet Id,Roll In Date,Roll Off Date\n"
    "12345,Jane Doe,jane@x.com,2024-01-01,2024-06-01\n"
    "\n"
    "67890,John Smith,john.smith@x.com,2024-02-01,2024-12-31\n"
    "--------------------------------\n"
)


TEST_TENANT_ID = "test-tenant-00000000-0000-0000-0000-000000000000"
TEST_CLIENT_ID = "test-client-00000000-0000-0000-0000-000000000000"
TEST_KID = "test-kid-1"


def _int_to_base64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return base64.urlsafe_b64encode(value.to_bytes(byte_length, byteorder="big")).rstrip(b"=").decode("ascii")


def make_access_token(
    private_pem: str,
    *,
    roles: list[str] | None = None,
    expired: bool = False,
    audience: str = TEST_CLIENT_ID,
) -> str:
    now = int(time.time())
    claims = {
        "oid": "admin-oid-1",
        "name": "Pum Admin",
        "preferred_username": "pum.admin@x.com",
        "roles": roles if roles is not None else [settings.ADMIN_ROLE],
        "iss": f"https://login.microsoftonline.com/{TEST_TENANT_ID}/v2.0",
        "aud": audience,
        "exp": now - 3600 if expired else now + 3600,
        "iat": now - 60,
        "nbf": now - 60,
    }
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": TEST_KID})


def make_csv(*rows: str) -> str:
    return "serial,name,email,rollin,rolloff\n" + "\n".join(rows)


def valid_row(index: int) -> str:
    return f"1000{index},Employee Number,emp{index}@x.com,2024-01-01,2024-06-01"


class FakeDirectory:
    def __init__(
        self,
        *,
        serial_found: bool = True,
        email_found: bool = True,
        fail_if_called: bool = False,
        events: list[str] | None = None,
    ) -> None:
        self.serial_found = serial_found
        self.email_found = email_found
        self.fail_if_called = fail_if_called
        self.events = events if events is not None else []
        self.serial_calls: list[str] = []
        self.email_calls: list[tuple[str, str]] = []

    async def serial_exists(self, serial: str) -> bool:
        if self.fail_if_called:
            pytest.fail(f"directory lookup for serial {serial} should not happen")
        self.serial_calls.append(serial)
        self.events.append(f"serial:{serial}")
        return self.serial_found

    async def email_exists(self, serial: str, email: str) -> bool:
        if self.fail_if_called:
            pytest.fail(f"directory lookup for email {email} should not happen")
        self.email_calls.append((serial, email))
        self.events.append(f"email:{email}")
        return self.email_found


class FakeEmployeeStore:
    def __init__(self, *, error: Exception | None = None, events: list[str] | None = None) -> None:
        self.error = error
        self.events = events if events is not None else []
        self.saved: list[tuple[list[Employee], str]] = []
        self.salts: dict[str, str] = {}
        self.passwords: dict[str, tuple[str, str]] = {}

    async def save_or_update(self, batch: list[Employee], role: str) -> list[Employee]:
        self.events.append("save")
        if self.error:
            raise self.error
        self.saved.append((list(batch), role))
        return list(batch)

    async def retrieve_salt(self, email: str) -> str | None:
        return self.salts.get(email)

    async def update_password(self, email: str, password_hash: str, salt: str) -> None:
        if email not in self.salts:
            raise StorageError(f"No employee with intranet id {email}")
        self.salts[email] = salt
        self.passwords[email] = (password_hash, salt)


class FakeNotifier:
    def __init__(self, *, failed: list[str] | None = None, events: list[str] | None = None) -> None:
        self.failed = failed or []
        self.events = events if events is not None else []
        self.calls: list[list[str]] = []

    async def send_password_reset_emails(self, recipients: list[str]) -> NotificationReport:
        self.events.append("notify")
        self.calls.append(list(recipients))
        sent = [r for r in recipients if r not in self.failed]
        return NotificationReport(sent=sent, failed=[r for r in recipients if r in self.failed])


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def directory(events):
    return FakeDirectory(events=events)


@pytest.fixture
def store(events):
    return FakeEmployeeStore(events=events)


@pytest.fixture
def notifier(events):
    return FakeNotifier(events=events)


@pytest.fixture
def upload_service(directory, store, notifier):
    return EmployeeUploadService(EmployeeValidator(directory), store, notifier, role="ADMIN")


@pytest.fixture
def duplicate_store(events):
    return FakeEmployeeStore(error=DuplicateEntryError(), events=events)


@pytest.fixture
def reset_service(store):
    store.salts["jane@x.com"] = "a1b2c3d4e5f60718293a4b5c6d7e8f90"
    return PasswordResetService(
        store,
        server_url="https://pum.example.com/",
        reset_path="/online-pum-ui/resetPassword/resetPasswordLink",
    )


@pytest.fixture(autouse=True)
def _auth_settings():
    original_tenant = settings.AZURE_AD_TENANT_ID
    original_client = settings.AZURE_AD_CLIENT_ID
    settings.AZURE_AD_TENANT_ID = TEST_TENANT_ID
    settings.AZURE_AD_CLIENT_ID = TEST_CLIENT_ID
    yield
    settings.AZURE_AD_TENANT_ID = original_tenant
    settings.AZURE_AD_CLIENT_ID = original_client


@pytest.fixture
def rsa_test_keys():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("utf-8")

    pub = private_key.public_key().public_numbers()
    jwk_dict = {
        "kty": "RSA",
        "kid": TEST_KID,
        "use": "sig",
        "alg": "RS256",
        "n": _int_to_base64url(pub.n),
        "e": _int_to_base64url(pub.e),
    }
    return private_pem, {"keys": [jwk_dict]}


@pytest.fixture
def admin_user():
    return UserInfo(id="admin-1", name="Pum Admin", email="pum.admin@x.com", roles=[settings.ADMIN_ROLE])


@pytest.fixture
def viewer_user():
    return UserInfo(id="viewer-1", name="Viewer User", email="viewer@x.com", roles=["viewer"])


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def upload_client(upload_service, admin_user):
    app.dependency_overrides[get_upload_service] = lambda: upload_service
    app.dependency_overrides[get_current_user] = lambda: admin_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def password_client(reset_service):
    app.dependency_overrides[get_password_reset_service] = lambda: reset_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(admin_user):
    app.dependency_overrides[get_current_user] = lambda: admin_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def viewer_client(viewer_user):
    app.dependency_overrides[get_current_user] = lambda: viewer_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
