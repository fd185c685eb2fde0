"""Utility script to download a single envelope and print the run report."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from docvault.app import DownloadApplication


async def _run(*, envelope_id: str, combined: bool) -> None:
    app = DownloadApplication()
    try:
        if combined:
            report = await app.download_combined([envelope_id])
        else:
            report = await app.download_specific([envelope_id])
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        print(f"Rate gate: {json.dumps(app.rate_stats().to_dict())}")
    finally:
        await app.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(description="Download one envelope and print the report.")
    parser.add_argument("envelope_id", help="Envelope identifier")
    parser.add_argument("--combined", action="store_true", help="Fetch the merged PDF instead of each document")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    asyncio.run(_run(envelope_id=args.envelope_id, combined=args.combined))


if __name__ == "__main__":
    main()
