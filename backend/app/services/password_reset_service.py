from __future__ import annotations

import logging
from urllib.parse import urlencode

from app.core.config import Settings
from app.core.exceptions import ResetTokenError
from app.core.protocols import EmployeeStore
from app.core.security import (
    DEFAULT_EXPIRY_MINUTES,
    create_reset_token,
    decode_reset_token,
    generate_salt,
    hash_password,
)
from app.models.notification import ResetPasswordRequest

logger = logging.getLogger(__name__)


class PasswordResetService:
    """Issues and checks reset links signed with each employee's salt."""

    def __init__(
        self,
        store: EmployeeStore,
        *,
        server_url: str,
        reset_path: str,
        expiry_minutes: int = DEFAULT_EXPIRY_MINUTES,
    ) -> None:
        self.store = store
        self.server_url = server_url.rstrip("/")
        self.reset_path = reset_path
        self.expiry_minutes = expiry_minutes

    @classmethod
    def from_settings(cls, store: EmployeeStore, settings: Settings) -> PasswordResetService:
        return cls(
            store,
            server_url=settings.SERVER_URL,
            reset_path=settings.RESET_PASSWORD_PATH,
            expiry_minutes=settings.RESET_TOKEN_EXPIRY_MINUTES,
        )

    async def _salt_for(self, email: str) -> str:
        salt = await self.store.retrieve_salt(email)
        if not salt:
            raise ResetTokenError(f"No employee registered with intranet id {email}")
        return salt

    async def generate_token(self, email: str) -> str:
        salt = await self._salt_for(email)
        return create_reset_token(email, salt, expires_minutes=self.expiry_minutes)

    async def build_reset_link(self, email: str) -> str:
        token = await self.generate_token(email)
        query = urlencode({"email": email, "token": token})
        return f"{self.server_url}{self.reset_path}?{query}"

    async def validate_token(self, email: str, token: str) -> bool:
        try:
            salt = await self._salt_for(email)
            claims = decode_reset_token(token, salt)
        except ResetTokenError as e:
            logger.info("Reset token for %s rejected: %s", email, e)
            return False
        return claims.get("sub") == email

    async def reset_password(self, request: ResetPasswordRequest) -> None:
        if not await self.validate_token(request.email, request.token):
            raise ResetTokenError("Invalid or expired reset token")

        salt = generate_salt()
        await self.store.update_password(request.email, hash_password(request.new_password, salt), salt)
        logger.info("Password reset for %s", request.email)
