"""
DDL for the orders table.
"""

from .connection import DatabaseConnectionPool

ORDERS_DDL = """
    CREATE TABLE IF NOT EXISTS orders (
        id                 BIGINT PRIMARY KEY,
        latitude           DOUBLE PRECISION NOT NULL,
        longitude          DOUBLE PRECISION NOT NULL,
        subtotal           NUMERIC(12, 2)   NOT NULL CHECK (subtotal > 0),
        timestamp          TEXT             NOT NULL,
        zip_code           TEXT,
        state              TEXT,
        tax_region         TEXT,
        county_fips        CHAR(5),
        state_rate         NUMERIC(8, 6)    NOT NULL DEFAULT 0,
        county_rate        NUMERIC(8, 6)    NOT NULL DEFAULT 0,
        city_rate          NUMERIC(8, 6)    NOT NULL DEFAULT 0,
        special_rate       NUMERIC(8, 6)    NOT NULL DEFAULT 0,
        composite_tax_rate NUMERIC(8, 6)    NOT NULL DEFAULT 0,
        tax_amount         NUMERIC(12, 2)   NOT NULL DEFAULT 0,
        total_amount       NUMERIC(12, 2)   NOT NULL DEFAULT 0,
        jurisdictions      JSONB            NOT NULL DEFAULT '[]'::jsonb,
        import_session_id  TEXT,
        created_at         TIMESTAMPTZ      NOT NULL DEFAULT now()
    )
"""

SESSION_INDEX_DDL = """
    CREATE INDEX IF NOT EXISTS idx_orders_import_session
    ON orders (import_session_id)
    WHERE import_session_id IS NOT NULL
"""


class SchemaManager:
    """
    Creates and drops the order table.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def ensure_schema(self) -> None:
        """Create the orders table and session index if missing."""
        self.pool.execute_command(ORDERS_DDL)
        self.pool.execute_command(SESSION_INDEX_DDL)

    def drop_schema(self) -> None:
        self.pool.execute_command("DROP TABLE IF EXISTS orders")
