"""Command line interface for platestore.

Usage
-----
Save the target repository once, then look up, save and list plates::

    platestore configure --owner you --repo plates-db --token ghp_...
    platestore lookup "ab12 cde"
    platestore save AB12CDE --notes "seen twice" --flag "no tax"
    platestore list --search AB

Configuration is read from ``~/.config/platestore/config.json`` (or
``--config``/``PLATESTORE_CONFIG``) and falls back to ``PLATESTORE_*``
environment variables.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import warnings
from pathlib import Path

from platestore.client import PlateStoreClient
from platestore.config import StoreConfig, load_config, save_config
from platestore.exceptions import PlateConflictError, PlateStoreError, PlateValidationWarning
from platestore.listing import build_rows

_logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_CONFLICT = 2


def _resolve_config(path: Path | None) -> StoreConfig:
    config = load_config(path)
    if config is None:
        config = StoreConfig.from_env()
    return config


def _cmd_configure(args: argparse.Namespace) -> int:
    existing = load_config(args.config)
    config = StoreConfig(
        owner=args.owner if args.owner is not None else (existing.owner if existing else ""),
        repo=args.repo if args.repo is not None else (existing.repo if existing else ""),
        branch=args.branch if args.branch is not None else (existing.branch if existing else ""),
        token=args.token if args.token is not None else (existing.token if existing else None),
    )
    target = save_config(config, args.config)
    print(f"Config saved locally to {target}.")
    return 0


async def _cmd_lookup(args: argparse.Namespace) -> int:
    async with PlateStoreClient(_resolve_config(args.config)) as client:
        found = await client.lookup(args.plate)
    if found.record is None:
        print(f"No existing plate found for {found.plate}; you can add it.")
        return 0
    if args.json:
        print(json.dumps(found.record.dump_wire(), indent=2, ensure_ascii=False))
    else:
        record = found.record
        print(f"Plate:    {record.plate}")
        print(f"Owner:    {record.owner}")
        print(f"Notes:    {record.notes}")
        print(f"Flagged:  {'yes ' + record.flag_reason if record.flagged else 'no'}")
        print(f"Added:    {record.added_at or 'unknown'} by {record.added_by or 'unknown'}")
    return 0


async def _cmd_save(args: argparse.Namespace) -> int:
    async with PlateStoreClient(_resolve_config(args.config)) as client:
        found = await client.lookup(args.plate)
        previous = found.record
        if args.flag is not None:
            flagged, flag_reason = True, args.flag
        elif args.unflag or previous is None:
            flagged, flag_reason = False, ""
        else:
            flagged, flag_reason = previous.flagged, previous.flag_reason
        # Fields not given on the command line keep their stored values.
        record = await client.save(
            found.plate,
            owner=args.owner if args.owner is not None else (previous.owner if previous else ""),
            notes=args.notes if args.notes is not None else (previous.notes if previous else ""),
            flagged=flagged,
            flag_reason=flag_reason,
            handle=found.handle,
        )
    print(f"{'Updated' if previous else 'Added'} plate {record.plate}.")
    return 0


async def _cmd_list(args: argparse.Namespace) -> int:
    async with PlateStoreClient(_resolve_config(args.config)) as client:
        config = client.config
        entries = await client.list_records()
    rows = build_rows(entries, config, args.search or "")
    if not rows:
        print("No plates saved yet.")
        return 0
    for row in rows:
        print(row.summary())
    _logger.info("Loaded %d plates", len(entries))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="platestore", description="Manage plate records stored in a repository")
    parser.add_argument("--config", type=Path, default=None, help="Path to the persisted config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    configure = sub.add_parser("configure", help="Save repository owner/name/branch/token locally")
    configure.add_argument("--owner")
    configure.add_argument("--repo")
    configure.add_argument("--branch")
    configure.add_argument("--token")

    lookup = sub.add_parser("lookup", help="Normalize a plate and show its record")
    lookup.add_argument("plate")
    lookup.add_argument("--json", action="store_true", help="Print the stored JSON body")

    save = sub.add_parser("save", help="Add or update a plate record")
    save.add_argument("plate")
    save.add_argument("--owner")
    save.add_argument("--notes")
    flag = save.add_mutually_exclusive_group()
    flag.add_argument("--flag", metavar="REASON", help="Flag the plate with a reason")
    flag.add_argument("--unflag", action="store_true", help="Clear the flag")

    listing = sub.add_parser("list", help="List saved plates")
    listing.add_argument("--search", default="", help="Only show plates containing this text")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # The validation warning is already logged.
    warnings.simplefilter("ignore", PlateValidationWarning)

    if args.command == "configure":
        return _cmd_configure(args)

    handlers = {"lookup": _cmd_lookup, "save": _cmd_save, "list": _cmd_list}
    try:
        return asyncio.run(handlers[args.command](args))
    except PlateConflictError as exc:
        print(f"Save failed: the record changed since it was loaded ({exc}). Look it up again and retry.", file=sys.stderr)
        return EXIT_CONFLICT
    except (PlateStoreError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
