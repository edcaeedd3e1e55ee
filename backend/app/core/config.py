import sys
from typing import Literal

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    AZURE_AD_TENANT_ID: str = ""
    AZURE_AD_CLIENT_ID: str = ""
    ADMIN_ROLE: str = "PUM.Admin"

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "opum-db"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employee"

    DIRECTORY_API_URL: str = ""
    DIRECTORY_API_KEY: str = ""
    DIRECTORY_TIMEOUT_SECONDS: float = 15.0

    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: float = 12.0
    EMAIL_SENDER: str = ""
    EMAIL_SUBJECT: str = "Online PUM - Set your password"

    SERVER_URL: str = "http://localhost:8080"
    RESET_PASSWORD_PATH: str = "/online-pum-ui/resetPassword/resetPasswordLink"
    RESET_TOKEN_EXPIRY_MINUTES: int = 1440

    UPLOAD_ROLE: str = "ADMIN"
    UPLOAD_DATE_FORMAT: str = "%Y-%m-%d"
    MAX_UPLOAD_SIZE: int = 2 * 1024 * 1024
    NOTIFICATION_FAILURE_POLICY: Literal["ignore", "report"] = "ignore"

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
