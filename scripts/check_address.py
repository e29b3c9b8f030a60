#!/usr/bin/env python3
"""Check addresses against the OFAC sanctions list.

Runs a single synchronization (live list or a local copy of
``sdn_advanced.xml``) and reports whether each address is sanctioned.

Usage
-----
::

    python scripts/check_address.py 1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa
    python scripts/check_address.py --file sdn_advanced.xml ADDR1 ADDR2

Options::

    --file PATH          Read the list from PATH instead of downloading it
    --feature-id ID      Target FeatureTypeID (repeatable, default: 344)
    --json               Output as machine-readable JSON
    --verbose, -v        Enable debug logging

Exit status is 0 when no address is sanctioned, 1 when at least one is,
and 2 when the list could not be synchronized.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyofac import AddressVerifier, FileSanctionsSource, SanctionsConfig  # noqa: E402


def _format_date(ts: int | None) -> str:
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts, UTC).date().isoformat()


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Check cryptocurrency addresses against the OFAC SDN list.",
    )
    parser.add_argument("addresses", nargs="+", help="Addresses to check")
    parser.add_argument("--file", help="Read sdn_advanced.xml from FILE instead of downloading it")
    parser.add_argument(
        "--feature-id",
        action="append",
        dest="feature_ids",
        help="Target FeatureTypeID (repeatable, default: 344)",
    )
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {"auto_start": False}
    if args.feature_ids:
        overrides["feature_type_ids"] = tuple(args.feature_ids)
    config = SanctionsConfig.from_env(**overrides)
    source = FileSanctionsSource(args.file) if args.file else None

    async with AddressVerifier(config, source=source) as verifier:
        report = await verifier.sync()
        results = {address: verifier.is_sanctioned(address) for address in args.addresses}

    if args.json_mode:
        payload = {
            "sync": report.model_dump(mode="json"),
            "published": _format_date(report.published_at),
            "results": results,
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(f"sync      : {report.outcome} ({report.total} addresses, published {_format_date(report.published_at)})")
        if report.error:
            print(f"error     : {report.error}", file=sys.stderr)
        for address, sanctioned in results.items():
            print(f"{'SANCTIONED' if sanctioned else 'clean':<10}: {address}")

    if not report.ok and report.total == 0:
        return 2
    return 1 if any(results.values()) else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
