"""
PostgreSQL order store.

Upserts use INSERT ... ON CONFLICT (id) DO UPDATE over exactly the supplied
columns, so an update that omits import_session_id leaves the stored tag
alone.
"""

from decimal import Decimal
from typing import Any

from psycopg.types.json import Jsonb

from taxflow.core.models import OrderRecord

from .connection import DatabaseConnectionPool
from .order_store import OrderFilters, OrderStore

ORDER_COLUMNS = (
    "latitude", "longitude", "subtotal", "timestamp", "zip_code", "state",
    "tax_region", "county_fips", "state_rate", "county_rate", "city_rate",
    "special_rate", "composite_tax_rate", "tax_amount", "total_amount",
    "jurisdictions", "import_session_id",
)

SELECT_COLUMNS = ", ".join(("id",) + ORDER_COLUMNS)


class PostgresOrderStore(OrderStore):
    """
    OrderStore backed by the orders table.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize the store.

        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def upsert(self, order_id: int, fields: dict[str, Any]) -> int:
        unknown = set(fields) - set(ORDER_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown order columns: {sorted(unknown)}")

        columns = [c for c in ORDER_COLUMNS if c in fields]
        values = [self._adapt(c, fields[c]) for c in columns]
        placeholders = ", ".join(["%s"] * (len(columns) + 1))
        updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in columns)

        query = f"""
            INSERT INTO orders (id, {", ".join(columns)})
            VALUES ({placeholders})
            ON CONFLICT (id) DO UPDATE SET {updates}
            RETURNING id
        """

        result = self.pool.execute_query(query, (order_id, *values))
        return result[0]["id"]

    def exists(self, order_id: int) -> bool:
        result = self.pool.execute_query("SELECT 1 FROM orders WHERE id = %s", (order_id,))
        return bool(result)

    def delete_where_session(self, session_id: str) -> int:
        return self.pool.execute_command(
            "DELETE FROM orders WHERE import_session_id = %s",
            (session_id,)
        )

    def get(self, order_id: int) -> OrderRecord | None:
        result = self.pool.execute_query(
            f"SELECT {SELECT_COLUMNS} FROM orders WHERE id = %s",
            (order_id,)
        )
        return OrderRecord(**result[0]) if result else None

    def max_id(self) -> int:
        result = self.pool.execute_query("SELECT COALESCE(MAX(id), 0) AS max_id FROM orders")
        return int(result[0]["max_id"])

    def list_orders(self, filters: OrderFilters, limit: int, offset: int) -> list[OrderRecord]:
        where, params = self._where(filters)
        result = self.pool.execute_query(
            f"SELECT {SELECT_COLUMNS} FROM orders {where} ORDER BY id DESC LIMIT %s OFFSET %s",
            (*params, limit, offset)
        )
        return [OrderRecord(**row) for row in result]

    def count(self, filters: OrderFilters | None = None) -> int:
        where, params = self._where(filters or OrderFilters())
        result = self.pool.execute_query(f"SELECT COUNT(*) AS cnt FROM orders {where}", tuple(params))
        return int(result[0]["cnt"])

    def delete_all(self) -> int:
        return self.pool.execute_command("DELETE FROM orders")

    def close(self) -> None:
        self.pool.close()

    @staticmethod
    def _adapt(column: str, value: Any) -> Any:
        if column == "jurisdictions":
            return Jsonb(list(value or []))
        return value

    @staticmethod
    def _where(filters: OrderFilters) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.state is not None:
            clauses.append("state = %s")
            params.append(filters.state)
        if filters.min_total is not None:
            clauses.append("total_amount >= %s")
            params.append(Decimal(filters.min_total))
        if filters.max_total is not None:
            clauses.append("total_amount <= %s")
            params.append(Decimal(filters.max_total))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params
