"""
Command-line entry point for competition ingestion.

Run with: python -m servers.comp_ingest [--source ID] [--list]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

from .config.loader import load_config
from .errors import AdapterNotFound, ConfigError, StorageError
from .service import CatalogService

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOT_FOUND = 2


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="comp_ingest",
        description="Ingest competition listings into a deduplicated catalog.",
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--store", help="JSON catalog file (overrides config)")
    parser.add_argument("--source", help="Run only this source id")
    parser.add_argument("--list", action="store_true", help="List sources and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point. Returns a process exit code."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return EXIT_FAILED

    if args.store:
        config["storage"]["path"] = args.store

    try:
        service = CatalogService.from_config(config)

        if args.list:
            for source_id in await service.list_sources():
                print(source_id)
            return EXIT_OK

        result = await service.run_ingestion(args.source)
    except AdapterNotFound as e:
        print(str(e), file=sys.stderr)
        return EXIT_NOT_FOUND
    except StorageError as e:
        print(f"Storage error: {e}", file=sys.stderr)
        return EXIT_FAILED

    print(json.dumps(result, indent=2))
    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
