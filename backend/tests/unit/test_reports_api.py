from __future__ import annotations

import io

from openpyxl import load_workbook

from app.services.utilization_report import XLSX_MEDIA_TYPE

REPORT_URL = "/api/v1/reports/utilization"


def test_utilization_report_download(admin_client):
    payload = {
        "periods": ["Jan", "Feb"],
        "rows": [{"serial": "12345", "full_name": "Jane Doe", "hours": {"Jan": 160, "Feb": 150}, "ytd": 98}],
        "file_name": "utilization-2024.xlsx",
    }

    response = admin_client.post(REPORT_URL, json=payload)

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert response.headers["content-disposition"] == 'attachment; filename="utilization-2024.xlsx"'
    sheet = load_workbook(io.BytesIO(response.content)).active
    assert [c.value for c in sheet[2]] == ["12345", "Jane Doe", 160, 150, "98%"]


def test_utilization_report_requires_periods(admin_client):
    response = admin_client.post(REPORT_URL, json={"periods": [], "rows": []})
    assert response.status_code == 422


def test_utilization_report_rejects_negative_ytd(admin_client):
    payload = {"periods": ["Jan"], "rows": [{"serial": "1", "full_name": "A", "ytd": -1}]}
    response = admin_client.post(REPORT_URL, json=payload)
    assert response.status_code == 422
