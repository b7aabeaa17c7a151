"""CLI entry point for marking past-due scheduled items as overdue.

Meant for a daily cron job.

Usage:
    python -m rentledger.cli.overdue --tenant 1 [--as-of 2025-03-01]

Exit Codes:
    0 - Success (also when nothing was overdue)
    1 - Failure: Error encountered; no status was changed
"""

import argparse
import logging
import sys
from datetime import date
from typing import Optional, Sequence

from rentledger.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mark past-due scheduled items as overdue")
    parser.add_argument("--tenant", type=int, required=True, help="Tenant id")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Reference date YYYY-MM-DD (default: today)",
    )
    parser.add_argument("--no-notify", action="store_true", help="Do not send the overdue alert")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the overdue CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)
    setup_server_logging()

    from rentledger.services import SessionLocal
    from rentledger.services.notification_service import NotificationService
    from rentledger.services.schedule_service import ScheduleService

    db = SessionLocal()
    try:
        items = ScheduleService(db).mark_overdue(args.tenant, as_of=args.as_of)
        logger.info(f"Overdue run finished: tenant={args.tenant}, marked={len(items)}")
        if items and not args.no_notify:
            NotificationService().notify_overdue(args.tenant, items)
        return 0
    except Exception as e:
        logger.error(f"Overdue run failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
