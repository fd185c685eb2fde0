"""Download envelopes by id, as combined PDFs, or by search criteria."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from typing import Optional

from docvault.app import DownloadApplication
from docvault.auth import AuthenticationError
from docvault.config import ConfigError
from docvault.schema import SearchCriteria


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc


def build_criteria(args: argparse.Namespace) -> SearchCriteria:
    status: Optional[str] = args.status
    if status and status.lower() == "any":
        status = None
    return SearchCriteria(from_date=args.from_date, to_date=args.to_date, status=status)


async def run_download(args: argparse.Namespace) -> None:
    app = DownloadApplication()
    try:
        envelope_ids = args.envelope_id or []
        if args.combined and envelope_ids:
            report = await app.download_combined(envelope_ids)
        elif args.combined:
            report = await app.download_combined_by_criteria(build_criteria(args))
        elif envelope_ids:
            report = await app.download_specific(envelope_ids)
        else:
            report = await app.download_by_criteria(build_criteria(args))
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    finally:
        await app.shutdown()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download signed envelopes and their certificates.")
    parser.add_argument(
        "--envelope-id",
        action="append",
        help="Envelope to download (repeatable). Without it, envelopes are found by search criteria.",
    )
    parser.add_argument(
        "--combined",
        action="store_true",
        help="Fetch one merged PDF (documents + certificate) per envelope.",
    )
    parser.add_argument("--from-date", type=parse_date, help="Search start date (default: 30 days ago).")
    parser.add_argument("--to-date", type=parse_date, help="Search end date (default: today).")
    parser.add_argument(
        "--status",
        default="completed",
        help="Envelope status filter for searches; 'any' disables it (default: completed).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        asyncio.run(run_download(args))
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except AuthenticationError as exc:
        print(f"Authentication failed: {exc}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
