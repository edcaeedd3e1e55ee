"""Utilization report request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class UtilizationRow(BaseModel):
    serial: str
    full_name: str
    hours: dict[str, float] = {}
    ytd: int = Field(..., ge=0, description="Year-to-date utilization in percent")


class UtilizationReportRequest(BaseModel):
    periods: list[str] = Field(..., min_length=1)
    rows: list[UtilizationRow]
    file_name: str = Field(default="utilization.xlsx", pattern=r"^[\w.\- ]+\.xlsx$")
