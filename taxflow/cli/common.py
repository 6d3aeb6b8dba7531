"""
Argument and wiring helpers shared by the taxflow CLIs.
"""

import argparse
import os

from taxflow.warehouse.connection import DatabaseConnectionPool
from taxflow.warehouse.order_store import InMemoryOrderStore, OrderStore
from taxflow.warehouse.postgres_store import PostgresOrderStore
from taxflow.warehouse.schema_mgmt import SchemaManager


def add_database_arguments(parser: argparse.ArgumentParser) -> None:
    """Database connection options; unset values fall back to DB_* env vars."""
    parser.add_argument(
        "--db-host",
        default=None,
        help="Database host (default: $DB_HOST or localhost)"
    )
    parser.add_argument(
        "--db-port",
        type=int,
        default=None,
        help="Database port (default: $DB_PORT or 5432)"
    )
    parser.add_argument(
        "--db-name",
        default=None,
        help="Database name (default: $DB_NAME or orders)"
    )
    parser.add_argument(
        "--db-user",
        default=None,
        help="Database user (default: $DB_USER or taxflow)"
    )
    parser.add_argument(
        "--db-password",
        default=None,
        help="Database password (default: $DB_PASSWORD)"
    )


def open_pool(args: argparse.Namespace) -> DatabaseConnectionPool:
    pool = DatabaseConnectionPool(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )
    pool.open()
    return pool


def open_store(args: argparse.Namespace) -> OrderStore:
    """
    Build the store named by --store.

    The postgres store gets its schema created on first use.
    """
    store_type = getattr(args, "store", None) or os.getenv("TAXFLOW_STORE", "postgres")
    if store_type == "memory":
        return InMemoryOrderStore()

    pool = open_pool(args)
    SchemaManager(pool).ensure_schema()
    return PostgresOrderStore(pool)
