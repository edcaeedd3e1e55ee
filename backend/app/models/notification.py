"""Models for password-reset emails and token checks."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NotificationReport(BaseModel):
    sent: list[str] = []
    failed: list[str] = []

    @property
    def all_sent(self) -> bool:
        return not self.failed


class ResetLinkEmailRequest(BaseModel):
    """Ad-hoc reset-link mail; ``text`` holds one ``{link}`` placeholder."""

    recipient_addresses: list[str] = Field(..., min_length=1)
    subject: str | None = None
    text: str = Field(default="Please use the link below to set your password:\n\n{link}")


class ResetPasswordToken(BaseModel):
    email: str = Field(..., min_length=3)
    token: str = Field(..., min_length=1)


class ResetPasswordRequest(ResetPasswordToken):
    new_password: str = Field(..., min_length=8, max_length=128)


class TokenValidationResponse(BaseModel):
    email: str
    valid: bool
