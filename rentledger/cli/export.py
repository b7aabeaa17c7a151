"""CLI entry point for exporting the payment ledger as CSV.

Usage:
    python -m rentledger.cli.export --tenant 1 [--contract 7] [--output ledger.csv]

Without --output the CSV is written to stdout.

Exit Codes:
    0 - Success: CSV written
    1 - Failure: Error encountered; nothing useful was written

Logging:
    Logs go to LOG_FILE only, so stdout carries nothing but the CSV
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from rentledger.services.errors import LedgerError
from rentledger.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export the payment ledger as CSV")
    parser.add_argument("--tenant", type=int, required=True, help="Tenant id")
    parser.add_argument("--contract", type=int, default=None, help="Limit the export to one contract")
    parser.add_argument("--output", default=None, help="Output file (default: stdout)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the ledger export CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)
    setup_server_logging(console=args.output is not None)

    from rentledger.services import SessionLocal
    from rentledger.services.report_service import ReportService

    db = SessionLocal()
    try:
        reports = ReportService(db)
        rows = reports.ledger_rows(args.tenant, args.contract)
        if args.output:
            with open(args.output, "w", newline="", encoding="utf-8") as stream:
                count = reports.export_csv(rows, stream)
        else:
            count = reports.export_csv(rows, sys.stdout)
        logger.info(f"Ledger export finished: tenant={args.tenant}, contract={args.contract}, rows={count}")
        return 0
    except (LedgerError, OSError) as e:
        logger.error(f"Ledger export failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Ledger export failed: {e}", exc_info=True)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
