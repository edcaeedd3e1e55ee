from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from app.core.config import settings
from app.core.dependencies import get_upload_service
from app.core.exceptions import DUPLICATE_ENTRY, DirectoryLookupError
from app.main import app
from tests.conftest import SAMPLE_CSV, make_csv

UPLOAD_URL = "/api/v1/uploads/admins"


def _csv_file(content: str | bytes, content_type: str = "text/csv") -> dict:
    return {"file": ("roster.csv", content, content_type)}


def test_upload_success(upload_client, store, notifier):
    response = upload_client.post(UPLOAD_URL, files=_csv_file(SAMPLE_CSV))

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "success"
    assert data["message"] == "uploaded successfully"
    assert data["uploaded"] == 1
    assert response.headers["location"] == "http://testserver/employee/"
    assert store.saved[0][1] == "ADMIN"
    assert notifier.calls == [["jane@x.com"]]


def test_upload_with_bom(upload_client):
    response = upload_client.post(UPLOAD_URL, files=_csv_file(b"\xef\xbb\xbf" + SAMPLE_CSV.encode()))
    assert response.status_code == 200


def test_upload_invalid_row(upload_client, store):
    csv_text = make_csv("12345,Jane Doe,not-an-email,2024-01-01,2024-06-01")

    response = upload_client.post(UPLOAD_URL, files=_csv_file(csv_text))

    assert response.status_code == 400
    data = response.json()
    assert data["outcome"] == "invalid_row"
    assert data["message"].startswith("Invalid CSV for employee!")
    assert data["employee"]["intranet_id"] == "not-an-email"
    assert store.saved == []


def test_upload_empty_file(upload_client):
    response = upload_client.post(UPLOAD_URL, files=_csv_file("serial,name,email,rollin,rolloff\n"))

    assert response.status_code == 400
    assert response.json()["outcome"] == "empty_input"


def test_upload_duplicate_entry(upload_client, upload_service, duplicate_store, notifier):
    upload_service.store = duplicate_store

    response = upload_client.post(UPLOAD_URL, files=_csv_file(SAMPLE_CSV))

    assert response.status_code == 409
    assert response.json()["message"] == DUPLICATE_ENTRY
    assert notifier.calls == []


def test_upload_malformed_row_with_repeated_serial(upload_client, store):
    csv_text = make_csv("12345,Jane Doe,jane@x.com,2024-01-01,2024-06-01", "12345,broken")

    response = upload_client.post(UPLOAD_URL, files=_csv_file(csv_text))

    assert response.status_code == 400
    assert response.json()["outcome"] == "invalid_row"
    assert store.saved == []


def test_upload_repeated_serial_in_file(upload_client, store, notifier):
    csv_text = make_csv(
        "12345,Jane Doe,jane@x.com,2024-01-01,2024-06-01",
        "12345,Janet Doe,janet@x.com,2024-01-01,2024-06-01",
    )

    response = upload_client.post(UPLOAD_URL, files=_csv_file(csv_text))

    assert response.status_code == 409
    data = response.json()
    assert data["outcome"] == "duplicate_entry"
    assert data["employee"]["full_name"] == "Janet Doe"
    assert store.saved == []
    assert notifier.calls == []


def test_upload_unsupported_content_type(upload_client):
    response = upload_client.post(UPLOAD_URL, files=_csv_file(b"%PDF-1.4", "application/pdf"))

    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]


def test_upload_too_large(upload_client):
    content = b"a" * (settings.MAX_UPLOAD_SIZE + 1)

    response = upload_client.post(UPLOAD_URL, files=_csv_file(content))

    assert response.status_code == 400
    assert "too large" in response.json()["detail"]


def test_upload_not_utf8(upload_client):
    response = upload_client.post(UPLOAD_URL, files=_csv_file(b"\xff\xfe\x00bad"))

    assert response.status_code == 400
    assert "UTF-8" in response.json()["detail"]


def test_upload_directory_unavailable(admin_client):
    service = MagicMock()
    service.upload = AsyncMock(side_effect=DirectoryLookupError("Directory unreachable"))
    app.dependency_overrides[get_upload_service] = lambda: service

    response = admin_client.post(UPLOAD_URL, files=_csv_file(SAMPLE_CSV))

    assert response.status_code == 502


def test_upload_requires_file(upload_client):
    response = upload_client.post(UPLOAD_URL)
    assert response.status_code == 422
