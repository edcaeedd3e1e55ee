from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from app.core.config import Settings
from app.core.exceptions import DirectoryLookupError

logger = logging.getLogger(__name__)


class DirectoryService:
    """REST client for the corporate employee directory."""

    def __init__(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.api_key = ""
        self.timeout_seconds = 15.0

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.DIRECTORY_API_URL:
            logger.warning("Directory API URL missing — DirectoryService not initialized")
            return

        self.base_url = settings.DIRECTORY_API_URL.rstrip("/")
        self.api_key = settings.DIRECTORY_API_KEY
        self.timeout_seconds = settings.DIRECTORY_TIMEOUT_SECONDS
        self.initialized = True

    async def close(self) -> None:
        self.initialized = False
        self.base_url = ""
        self.api_key = ""

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["api-key"] = self.api_key
        return headers

    async def find_employee(self, serial: str) -> dict[str, Any] | None:
        if not self.initialized:
            raise DirectoryLookupError("DirectoryService not initialized")

        url = f"{self.base_url}/employees/{quote(serial, safe='')}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=self._headers()) as response:
                    if response.status == 200:
                        return await response.json()
                    if response.status == 404:
                        return None

                    error_text = await response.text()
                    raise DirectoryLookupError(f"Directory lookup failed: {response.status} - {error_text}")
        except aiohttp.ClientError as e:
            logger.error("Directory lookup for serial=%s failed: %s", serial, e)
            raise DirectoryLookupError(f"Directory unreachable: {e}") from e

    async def serial_exists(self, serial: str) -> bool:
        return await self.find_employee(serial) is not None

    async def email_exists(self, serial: str, email: str) -> bool:
        record = await self.find_employee(serial)
        if not record:
            return False
        found = record.get("email") or record.get("intranetId") or ""
        return found.strip().lower() == email.strip().lower()

    async def check_connection(self) -> bool:
        if not self.initialized:
            return False

        timeout = aiohttp.ClientTimeout(total=10)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(f"{self.base_url}/health", headers=self._headers()) as response:
                    return response.status == 200
        except Exception:
            logger.exception("DirectoryService connection check failed")
            return False
