"""Run the QR/session sweep outside the web process (cron, scheduler)."""

from __future__ import annotations

import argparse
import importlib
import json

from dotenv import load_dotenv

from qr_attendance.config import get_settings_module
from qr_attendance.container import build_container
from qr_attendance.core.enums import CleanupType
from qr_attendance.main import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--type", choices=[t.value for t in CleanupType], default=CleanupType.ALL.value)
    parser.add_argument("--days-old", type=int, default=None)
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(settings)
    container = build_container(settings)

    days_old = args.days_old if args.days_old is not None else container.settings.cleanup_default_days
    report = container.cleanup_service.sweep(CleanupType(args.type), days_old=days_old)
    print(json.dumps({"totalDeleted": report.total_deleted, "results": report.to_dict(), "warnings": report.warnings}))


if __name__ == "__main__":
    main()
