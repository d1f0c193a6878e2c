"""Command-line interface for weather alerts."""

import argparse
import asyncio
import json
import logging
import sys

from weather_alerts.config import Settings, get_settings
from weather_alerts.exceptions import ConfigError, LoadError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run_once(settings: Settings, verbose: bool = False) -> int:
    """Run a single alert check and print its summary as JSON."""
    from weather_alerts.database.connection import close_db, get_session_factory, init_db
    from weather_alerts.database.store import SqlAlchemyAlertStore
    from weather_alerts.rules.engine import BatchRunner

    await init_db(settings.database_url)
    runner = BatchRunner.from_settings(settings, SqlAlchemyAlertStore(get_session_factory()))
    try:
        result = await runner.run_batch()
    except LoadError as e:
        print(json.dumps({"error": str(e)}))
        return 1
    finally:
        await runner.aclose()
        await close_db()

    if verbose:
        print(result.model_dump_json(indent=2))
    else:
        print(json.dumps(result.summary()))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Weather Alerts - Notify users when their weather conditions are met"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Check all alert rules once and print a JSON summary"
    )
    run_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print every rule's outcome, not just the counts",
    )

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve", help="Serve the alert check endpoint over HTTP"
    )
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings = get_settings()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "run":
        return asyncio.run(run_once(settings, verbose=args.verbose))

    import uvicorn

    from weather_alerts.api import create_app

    uvicorn.run(
        create_app(),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
