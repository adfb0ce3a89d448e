#!/usr/bin/env python3
"""Update a namespace's tilesheets from local tiles and sync the wiki registry."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.tilesheet_core.config import load_sync_config
from packages.tilesheet_core.errors import TilesheetError
from packages.tilesheet_core.registry.client import LocalRegistry, MediaWikiRegistry
from packages.tilesheet_core.registry.credentials import DEFAULT_CREDENTIALS_PATH, load_credentials
from packages.tilesheet_core.sheets.prompts import ConsoleConfirmationProvider, console_sizes_provider
from packages.tilesheet_core.sheets.sync import TilesheetSynchronizer

logger = logging.getLogger("tilesheet_core.tools.update_tilesheet")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Update tilesheets for one namespace")
    parser.add_argument("namespace", nargs="?", help="Mod abbreviation / tilesheet namespace")
    parser.add_argument(
        "--credentials",
        type=Path,
        default=DEFAULT_CREDENTIALS_PATH,
        help="Bot credential file (default: ftb.json)",
    )
    parser.add_argument(
        "--offline",
        type=Path,
        default=None,
        help="Use a local registry directory instead of the wiki",
    )
    parser.add_argument("--tiles-dir", type=Path, default=None, help="Root of per-namespace tile folders")
    parser.add_argument("--work-dir", type=Path, default=None, help="Directory for sheets and review lists")
    parser.add_argument("--layer-width", type=int, default=None, help="Cells per side of one depth layer")
    parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Skip lossless recompression of written sheets",
    )
    parser.add_argument("--json", action="store_true", help="Print the run report as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    namespace = args.namespace
    if not namespace:
        print("Enter mod abbreviation:")
        namespace = input("> ").strip()

    try:
        config = load_sync_config(
            namespace,
            tiles_root=args.tiles_dir,
            work_dir=args.work_dir,
            layer_width=args.layer_width,
            optimizer_command=() if args.no_optimize else None,
        )
        if args.offline is not None:
            registry = LocalRegistry(args.offline)
        else:
            registry = MediaWikiRegistry.from_credentials(load_credentials(args.credentials))

        synchronizer = TilesheetSynchronizer(
            config,
            registry,
            confirmation=ConsoleConfirmationProvider(),
            sizes_provider=console_sizes_provider(),
        )
        report = synchronizer.run()
    except TilesheetError as exc:
        print(f"ERR: {exc}")
        return 1
    except OSError as exc:
        logger.exception("[TOOL] I/O failure")
        print(f"ERR: {exc}")
        return 1

    if args.json:
        print(json.dumps(report.as_dict(), indent=2))
    else:
        print(f"Updated {config.namespace}: {len(report.added)} added, {len(report.deleted)} deleted")
        for error in report.errors:
            print(f"WARN: {error}")
        for name in report.failed_uploads:
            print(f"WARN: upload failed for {name}")
        for chunk in report.failed_chunks:
            print(f"WARN: registry update failed: {chunk}")
    return 0 if report.ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
