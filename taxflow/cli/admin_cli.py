"""
Admin CLI for managing the order store.

Usage:
    python -m taxflow.cli.admin_cli init-db [options]
    python -m taxflow.cli.admin_cli list [--page N] [--limit N] [--state NY] [--min-total X] [--max-total X]
    python -m taxflow.cli.admin_cli create --latitude <lat> --longitude <lon> --subtotal <amount> [--timestamp <iso>]
    python -m taxflow.cli.admin_cli clear --yes

Every command accepts an already open store, so several commands can run
against one in-memory store in the same process.
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from taxflow.config import load_settings
from taxflow.core.exceptions import RowValidationError
from taxflow.core.jurisdiction.factory import build_resolver
from taxflow.observability.logger import get_logger
from taxflow.services import OrderService
from taxflow.warehouse.order_store import OrderStore
from taxflow.warehouse.schema_mgmt import SchemaManager

from .common import add_database_arguments, open_pool, open_store

logger = get_logger(__name__)


def init_db_command(args, store: OrderStore | None = None):
    """
    Create the orders table and its indexes.

    Args:
        args: Command line arguments
        store: Unused; the schema is created through a fresh pool
    """
    if args.store == "memory":
        print("In-memory store needs no schema")
        return

    pool = open_pool(args)
    try:
        SchemaManager(pool).ensure_schema()
        print("Schema ready: orders")
    except Exception as e:
        logger.error(f"Error creating schema: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        pool.close()


def list_command(args, store: OrderStore | None = None):
    """
    Print one page of orders, newest first.

    Args:
        args: Command line arguments
        store: Open store (opened from args if None)
    """
    store = store if store is not None else open_store(args)
    service = OrderService(store)

    try:
        page = service.list_orders(
            page=args.page,
            limit=args.limit,
            state=args.state,
            min_total=args.min_total,
            max_total=args.max_total,
        )

        if not page.orders:
            print("\nNo orders found.")
            return

        print(f"\n{'ID':>8} {'Region':<34} {'Subtotal':>10} {'Rate':>8} {'Tax':>9} {'Total':>10}")
        print(f"{'-' * 84}")
        for order in page.orders:
            print(
                f"{order.id:>8} {order.tax_region[:34]:<34} {order.subtotal:>10} "
                f"{order.composite_tax_rate:>8} {order.tax_amount:>9} {order.total_amount:>10}"
            )
        print(f"\nPage {page.page} of {page.pages} ({page.total} orders)\n")

    except Exception as e:
        logger.error(f"Error listing orders: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)

    finally:
        store.close()


def create_command(args, store: OrderStore | None = None):
    """
    Create one order manually and print its tax breakdown.

    Args:
        args: Command line arguments
        store: Open store (opened from args if None)
    """
    settings = load_settings(args.config)
    store = store if store is not None else open_store(args)
    resolver = build_resolver(settings)
    service = OrderService(store, resolver)

    async def create():
        try:
            return await service.create_order(
                latitude=args.latitude,
                longitude=args.longitude,
                subtotal=args.subtotal,
                timestamp=args.timestamp,
            )
        finally:
            await resolver.aclose()

    try:
        order = asyncio.run(create())
        print(order.model_dump_json(indent=2))

    except RowValidationError as e:
        print(f"\nRejected ({e.code}): {e.message}")
        sys.exit(2)

    except Exception as e:
        logger.error(f"Error creating order: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)

    finally:
        store.close()


def clear_command(args, store: OrderStore | None = None):
    """
    Delete every order.

    Args:
        args: Command line arguments
        store: Open store (opened from args if None)
    """
    if not args.yes:
        print("Refusing to clear orders without --yes")
        sys.exit(1)

    store = store if store is not None else open_store(args)
    try:
        deleted = OrderService(store).clear_orders()
        print(f"Deleted {deleted} orders")
    except Exception as e:
        logger.error(f"Error clearing orders: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        store.close()


def build_parser() -> argparse.ArgumentParser:
    """Build the admin argument parser."""
    parser = argparse.ArgumentParser(
        description="Admin CLI for the order store",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global store options
    parser.add_argument(
        "--store",
        choices=["memory", "postgres"],
        default="postgres",
        help="Order store (default: postgres)"
    )
    add_database_arguments(parser)

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the orders table")

    # list command
    list_parser = subparsers.add_parser("list", help="List orders, newest first")
    list_parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page number (default: 1)"
    )
    list_parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Orders per page, 1-100 (default: 50)"
    )
    list_parser.add_argument(
        "--state",
        help="Filter by state (e.g. NY)"
    )
    list_parser.add_argument(
        "--min-total",
        help="Minimum total amount"
    )
    list_parser.add_argument(
        "--max-total",
        help="Maximum total amount"
    )

    # create command
    create_parser = subparsers.add_parser("create", help="Create an order manually")
    create_parser.add_argument(
        "--latitude",
        required=True,
        help="Delivery latitude"
    )
    create_parser.add_argument(
        "--longitude",
        required=True,
        help="Delivery longitude"
    )
    create_parser.add_argument(
        "--subtotal",
        required=True,
        help="Pre-tax amount"
    )
    create_parser.add_argument(
        "--timestamp",
        help="Order time, ISO-8601 (default: now)"
    )
    create_parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (default: config/import_settings.yaml)"
    )

    # clear command
    clear_parser = subparsers.add_parser("clear", help="Delete all orders")
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deletion"
    )

    return parser


COMMANDS = {
    "init-db": init_db_command,
    "list": list_command,
    "create": create_command,
    "clear": clear_command,
}


def main(argv=None):
    """Main entry point for admin CLI."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    COMMANDS[args.command](args)


if __name__ == "__main__":
    main()
