from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.core.config import Settings, settings
from app.services.directory_service import DirectoryService
from app.services.employee_store import CosmosEmployeeStore
from app.services.employee_validator import EmployeeValidator
from app.services.notification_service import SmtpNotifier
from app.services.password_reset_service import PasswordResetService
from app.services.upload_service import EmployeeUploadService

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings)

    employee_store = CosmosEmployeeStore()
    directory = DirectoryService()
    password_reset_service = PasswordResetService.from_settings(employee_store, settings)
    notifier = SmtpNotifier(password_reset_service)

    try:
        await employee_store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize EmployeeStore — continuing without DB")
    try:
        await directory.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize DirectoryService — continuing without directory")
    try:
        await notifier.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize SmtpNotifier — continuing without email")

    application.state.employee_store = employee_store
    application.state.directory = directory
    application.state.password_reset_service = password_reset_service
    application.state.notifier = notifier
    application.state.upload_service = EmployeeUploadService(
        EmployeeValidator(directory, settings.UPLOAD_DATE_FORMAT),
        employee_store,
        notifier,
        role=settings.UPLOAD_ROLE,
        notification_policy=settings.NOTIFICATION_FAILURE_POLICY,
    )
    yield
    await employee_store.close()
    await directory.close()
    await notifier.close()


app = FastAPI(
    title="Online PUM Admin API",
    description="Admin roster uploads, password resets and utilization reports",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:4200",
        "http://localhost:8080",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Online PUM Admin API"}
