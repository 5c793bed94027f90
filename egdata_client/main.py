#!/usr/bin/env python3
"""
EGData Client - Console Entry Point

Runs the background agent, or a single operation against the same engine.

Usage:
    egdata-client run
    egdata-client scan
    egdata-client upload
    egdata-client settings --set upload_interval=30
    egdata-client clear-uploaded
"""
import sys
import json
import asyncio
import argparse
from pathlib import Path
from typing import List, Optional

from loguru import logger

from egdata_client.core.bootstrap import ApplicationBuilder, run_until_stopped
from egdata_client.core.errors import AgentError
from egdata_client.core.paths import AgentPaths, default_app_data_dir, default_manifests_dir
from egdata_client.library.service import LibrarySyncService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="egdata-client",
        description="Collects installed Epic Games manifests and uploads them to EGData"
    )
    parser.add_argument("--app-data-dir", type=Path, default=None,
                        help="Directory for settings, upload records and logs")
    parser.add_argument("--manifests-dir", type=Path, default=None,
                        help="Launcher manifest directory to scan")
    parser.add_argument("--debug", action="store_true", help="Verbose console logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    subparsers.add_parser("run", help="Run the background agent (default)")
    subparsers.add_parser("scan", help="Scan once and list installed games")
    subparsers.add_parser("upload", help="Scan once and upload every manifest")

    settings_parser = subparsers.add_parser("settings", help="Show or change settings")
    settings_parser.add_argument("--set", dest="assignments", action="append", default=[],
                                 metavar="KEY=VALUE", help="Setting to change (repeatable)")

    subparsers.add_parser("clear-uploaded", help="Forget which manifests were uploaded")
    return parser


def parse_assignment(text: str):
    """Split KEY=VALUE; VALUE is read as JSON when possible."""
    key, sep, raw = text.partition("=")
    if not sep or not key:
        raise ValueError(f"Expected KEY=VALUE, got '{text}'")
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key.strip(), value


async def run_command(args, paths: AgentPaths) -> int:
    builder = ApplicationBuilder("EGData Client", paths).with_logging(debug=args.debug)

    if args.command in (None, "run"):
        await run_until_stopped(builder)
        return 0

    locator = await builder.with_scheduler(False).build()
    service = locator.get_system(LibrarySyncService)

    try:
        if args.command == "scan":
            records = await service.scan_now()
            for record in records:
                print(f"{record.display_name}\t{record.version}\t{record.install_location}")

        elif args.command == "upload":
            await service.scan_now()
            results = await service.upload_all()
            for status in results:
                print(f"{status.app_name}\t{status.status.value}\t{status.message or ''}")

        elif args.command == "settings":
            for assignment in args.assignments:
                key, value = parse_assignment(assignment)
                locator.config.update(key, value)
            print(json.dumps(service.get_settings().model_dump(), indent=2))

        elif args.command == "clear-uploaded":
            await service.clear_uploaded_manifests()

    except (AgentError, ValueError) as e:
        logger.error(str(e))
        return 1
    finally:
        await locator.stop_all()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the console application."""
    args = build_parser().parse_args(argv)
    paths = AgentPaths(
        app_data_dir=args.app_data_dir or default_app_data_dir(),
        manifests_dir=args.manifests_dir or default_manifests_dir(),
    )
    try:
        return asyncio.run(run_command(args, paths))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
