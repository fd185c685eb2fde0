"""List one page of envelopes without downloading anything."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from docvault.app import DownloadApplication
from docvault.auth import AuthenticationError
from docvault.config import ConfigError
from docvault.cli.download import build_criteria, parse_date
from docvault.schema import EnvelopePage


def format_page(page: EnvelopePage) -> str:
    if not page.envelopes:
        return "No envelopes matched the search criteria."
    lines = [f"Envelopes on this page: {len(page.envelopes)} (total matching: {page.total_set_size})", ""]
    for index, envelope in enumerate(page.envelopes, start=1):
        lines.append(f"{index}. {envelope.envelope_id}")
        lines.append(f"   Subject: {envelope.subject or 'No subject'}")
        lines.append(f"   Status: {envelope.status}")
        lines.append(f"   Created: {envelope.created_at}")
        lines.append(f"   Last change: {envelope.status_changed_at}")
    lines.append("")
    lines.append("By status:")
    for status, count in sorted(page.status_counts().items()):
        lines.append(f"   {status}: {count}")
    return "\n".join(lines)


async def run_listing(args: argparse.Namespace) -> None:
    app = DownloadApplication()
    try:
        page = await app.list_envelopes(build_criteria(args))
        print(format_page(page))
    finally:
        await app.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="List envelopes matching a search.")
    parser.add_argument("--from-date", type=parse_date, help="Search start date (default: 30 days ago).")
    parser.add_argument("--to-date", type=parse_date, help="Search end date (default: today).")
    parser.add_argument("--status", default="any", help="Status filter; 'any' lists every status (default).")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        asyncio.run(run_listing(args))
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except AuthenticationError as exc:
        print(f"Authentication failed: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
