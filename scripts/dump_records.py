#!/usr/bin/env python3
"""Dump every record file the platestore client can fetch.

Lists the records directory and prints, per file, the parsed record
fields **and** the raw decoded text so malformed files are easy to spot.

Usage
-----
Set environment variables and run::

    export PLATESTORE_OWNER="you"
    export PLATESTORE_REPO="plates-db"
    export PLATESTORE_TOKEN="ghp_..."
    python scripts/dump_records.py

Options::

    --search AB          Only dump plates whose key contains AB
    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from platestore import PlateStoreClient, StoreConfig, display_key, load_config  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def main() -> None:
    parser = argparse.ArgumentParser(description="Dump all plate record files.")
    parser.add_argument("--search", default="", help="Only dump keys containing this text")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--output", type=Path, default=None, help="Write output to FILE")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = load_config() or StoreConfig.from_env()
    dumped: list[dict[str, Any]] = []
    out: list[str] = []

    async with PlateStoreClient(config) as client:
        entries = await client.search(args.search)

    for entry in entries:
        key = display_key(entry, config)
        record = entry.record
        item: dict[str, Any] = {
            "key": key,
            "path": entry.path,
            "sha": entry.handle.sha if entry.handle else None,
            "parsed": record.dump_wire() if record is not None else None,
            "raw": entry.raw,
        }
        dumped.append(item)

        out.append(_section(f"{key}  ({entry.path})"))
        if record is None:
            out.append("  !! not a valid plate record")
        else:
            for field, value in record.dump_wire().items():
                out.append(f"  {field}: {value}")
        out.append("\n  ── raw ──")
        out.append(entry.raw)

    text = json.dumps(dumped, indent=2, ensure_ascii=False) if args.json else "\n".join(out)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {len(dumped)} records to {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    asyncio.run(main())
