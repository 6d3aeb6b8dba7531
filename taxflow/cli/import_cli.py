"""
Command-line interface for order imports.

Usage:
    python -m taxflow.cli.import_cli import --input <file.csv> [options]

With --stream, progress events are written to stdout as server-sent-event
frames and Ctrl+C cancels the import (rows inserted by it are rolled back).
Without --stream, the final summary is printed as JSON.

Exit codes: 0 finished, 1 failed, 2 unparseable input, 130 cancelled.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from taxflow.config import SettingsLoader
from taxflow.core.exceptions import ParseError, SessionNotFound
from taxflow.core.jurisdiction.factory import build_resolver
from taxflow.observability.logger import get_logger, setup_logger
from taxflow.observability.metrics import start_metrics_server
from taxflow.streaming.service import ImportService, ImportStream

from .common import add_database_arguments, open_store

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARSE_ERROR = 2
EXIT_CANCELLED = 130


async def stream_import(service: ImportService, stream: ImportStream) -> int:
    """
    Print events until the terminal one. SIGINT cancels the session.

    Returns:
        Exit code
    """
    loop = asyncio.get_running_loop()

    def request_cancel() -> None:
        try:
            service.cancel_session(stream.session_id)
            print("Cancelling import...", file=sys.stderr)
        except SessionNotFound:
            logger.info(f"Session {stream.session_id} already finished, nothing to cancel")

    loop.add_signal_handler(signal.SIGINT, request_cancel)
    try:
        async for event in stream:
            sys.stdout.write(event.to_sse())
            sys.stdout.flush()
    finally:
        loop.remove_signal_handler(signal.SIGINT)

    outcome = await stream.wait()
    if outcome is None:
        return EXIT_FAILED
    return EXIT_CANCELLED if outcome.cancelled else EXIT_OK


async def import_command(args: argparse.Namespace) -> int:
    """
    Execute the import command.

    Args:
        args: Command-line arguments

    Returns:
        Exit code
    """
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file not found: {args.input}")
        return EXIT_FAILED

    overrides = {}
    if args.resolver:
        overrides["resolver_strategy"] = args.resolver
    if args.chunk_size:
        overrides["chunk_size"] = args.chunk_size
    try:
        settings = SettingsLoader(args.config).load()
        if overrides:
            settings = settings.model_validate({**settings.model_dump(), **overrides})
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        return EXIT_FAILED

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    try:
        store = open_store(args)
    except Exception as e:
        logger.error(f"Cannot open order store: {e}", exc_info=True)
        return EXIT_FAILED
    resolver = build_resolver(settings)
    service = ImportService(store, resolver, settings=settings)

    try:
        try:
            rows = service.parse_csv(input_path)
        except ParseError as e:
            logger.error(f"Invalid CSV: {e}")
            print(f"Invalid CSV: {e}", file=sys.stderr)
            return EXIT_PARSE_ERROR

        logger.info(f"Importing {len(rows)} rows from {input_path} (strategy: {settings.resolver_strategy})")

        if args.stream:
            stream = await service.start_streaming_import(rows)
            return await stream_import(service, stream)

        summary = await service.import_synchronously(rows)
        print(summary.model_dump_json(indent=2))
        return EXIT_OK

    except Exception as e:
        logger.error(f"Error during import: {e}", exc_info=True)
        return EXIT_FAILED
    finally:
        await resolver.aclose()
        store.close()


def main():
    """Main CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Import geolocated orders and compute NY sales tax",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import into PostgreSQL, print a JSON summary
  python -m taxflow.cli.import_cli import --input data/orders.csv

  # Stream progress events; Ctrl+C cancels and rolls back
  python -m taxflow.cli.import_cli import --input data/orders.csv --stream

  # Offline dry run against an in-memory store
  python -m taxflow.cli.import_cli import --input data/orders.csv --store memory
        """
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $LOG_LEVEL or INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    import_parser = subparsers.add_parser("import", help="Import an order CSV file")
    import_parser.add_argument(
        "--input",
        required=True,
        help="Path to input CSV file"
    )
    import_parser.add_argument(
        "--stream",
        action="store_true",
        help="Stream progress events to stdout and allow cancellation"
    )
    import_parser.add_argument(
        "--store",
        choices=["memory", "postgres"],
        default="postgres",
        help="Order store (default: postgres)"
    )
    import_parser.add_argument(
        "--resolver",
        choices=["bounding_box", "census"],
        default=None,
        help="Jurisdiction resolver (default: from settings)"
    )
    import_parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Rows resolved concurrently per chunk (default: from settings)"
    )
    import_parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/import_settings.yaml)"
    )
    import_parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port"
    )
    add_database_arguments(import_parser)

    args = parser.parse_args()

    if args.log_level:
        setup_logger(level=args.log_level)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_FAILED)

    if args.command == "import":
        sys.exit(asyncio.run(import_command(args)))


if __name__ == "__main__":
    main()
