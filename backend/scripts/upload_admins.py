#!/usr/bin/env python3
"""Upload an admin roster CSV without going through the HTTP API.

Run from the backend/ directory:

    python3 scripts/upload_admins.py roster.csv [--dry-run] [--verbose]

With --dry-run the file is parsed and validated against the directory only;
nothing is saved and no emails are sent.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from app.core.config import Settings  # noqa: E402
from app.core.exceptions import DirectoryLookupError, DuplicateEntryError, InvalidEmployeeError  # noqa: E402
from app.models.employee import UploadOutcome  # noqa: E402
from app.services.directory_service import DirectoryService  # noqa: E402
from app.services.employee_store import CosmosEmployeeStore  # noqa: E402
from app.services.employee_validator import EmployeeValidator  # noqa: E402
from app.services.notification_service import SmtpNotifier  # noqa: E402
from app.services.password_reset_service import PasswordResetService  # noqa: E402
from app.services.upload_service import EmployeeUploadService, format_invalid_employee  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate and upload a list of admin employees from a CSV file",
    )
    parser.add_argument("csv_file", type=Path, help="Roster CSV file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate rows only (no save, no emails)",
    )
    parser.add_argument(
        "--role",
        default=None,
        help="Role tag for the uploaded employees (default: UPLOAD_ROLE setting)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    return parser.parse_args(argv)


def build_upload_service(
    settings: Settings,
    store: CosmosEmployeeStore,
    directory: DirectoryService,
    notifier: SmtpNotifier,
    role: str | None = None,
) -> EmployeeUploadService:
    return EmployeeUploadService(
        EmployeeValidator(directory, settings.UPLOAD_DATE_FORMAT),
        store,
        notifier,
        role=role or settings.UPLOAD_ROLE,
        notification_policy=settings.NOTIFICATION_FAILURE_POLICY,
    )


async def run(args: argparse.Namespace) -> int:
    settings = Settings()
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    raw_text = args.csv_file.read_text(encoding="utf-8-sig")

    store = CosmosEmployeeStore()
    directory = DirectoryService()
    notifier = SmtpNotifier(PasswordResetService.from_settings(store, settings))
    await directory.initialize(settings)
    if not args.dry_run:
        await store.initialize(settings)
        await notifier.initialize(settings)

    service = build_upload_service(settings, store, directory, notifier, args.role)
    try:
        if args.dry_run:
            try:
                employees = await service.validate_rows(raw_text)
            except (InvalidEmployeeError, DuplicateEntryError) as e:
                logger.error(format_invalid_employee(e.employee, e.reason))
                return 1
            logger.info("[DRY RUN] %d rows valid, nothing saved", len(employees))
            return 0

        result = await service.upload(raw_text)
    except DirectoryLookupError:
        logger.exception("Employee directory unavailable")
        return 2
    finally:
        await store.close()
        await directory.close()
        await notifier.close()

    if result.outcome in (UploadOutcome.SUCCESS, UploadOutcome.NOTIFICATION_FAILED):
        logger.info("Uploaded %d employees: %s", result.uploaded, result.message)
        return 0
    logger.error(result.message)
    return 1


def main() -> None:
    args = parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
