"""Signed-in admin as seen by the API."""

from __future__ import annotations

from pydantic import BaseModel


class UserInfo(BaseModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    roles: list[str] = []

    def has_any_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)
