"""
Order persistence interface and the in-memory implementation.

The import engine only needs upsert/exists/delete_where_session; the rest
backs manual order management. Implementations are called from one writer
at a time per import, but several imports may share a store, so the
in-memory store guards its state with a lock.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from taxflow.core.models import OrderRecord


@dataclass(frozen=True)
class OrderFilters:
    """Optional filters for listing orders."""

    state: str | None = None
    min_total: Decimal | None = None
    max_total: Decimal | None = None

    def matches(self, row: dict[str, Any]) -> bool:
        if self.state is not None and row.get("state") != self.state:
            return False
        if self.min_total is not None and row["total_amount"] < self.min_total:
            return False
        if self.max_total is not None and row["total_amount"] > self.max_total:
            return False
        return True


class OrderStore(ABC):
    """Key-value-by-id store for orders with upsert semantics."""

    @abstractmethod
    def upsert(self, order_id: int, fields: dict[str, Any]) -> int:
        """
        Insert the order, or update the given fields of an existing one.

        Only the supplied fields change on update; anything omitted (for
        example import_session_id) keeps its stored value.

        Returns:
            The stored order id
        """

    @abstractmethod
    def exists(self, order_id: int) -> bool:
        pass

    @abstractmethod
    def delete_where_session(self, session_id: str) -> int:
        """
        Delete every order tagged with the import session.

        Returns:
            Number of orders deleted
        """

    @abstractmethod
    def get(self, order_id: int) -> OrderRecord | None:
        pass

    @abstractmethod
    def max_id(self) -> int:
        """Highest stored id, 0 when empty."""

    @abstractmethod
    def list_orders(self, filters: OrderFilters, limit: int, offset: int) -> list[OrderRecord]:
        """Orders matching the filters, highest id first."""

    @abstractmethod
    def count(self, filters: OrderFilters | None = None) -> int:
        pass

    @abstractmethod
    def delete_all(self) -> int:
        pass

    def close(self) -> None:
        """Release resources held by the store."""


class InMemoryOrderStore(OrderStore):
    """Dict-backed store for tests, demos and dry runs."""

    def __init__(self):
        self._rows: dict[int, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def upsert(self, order_id: int, fields: dict[str, Any]) -> int:
        with self._lock:
            existing = self._rows.get(order_id)
            if existing is None:
                self._rows[order_id] = {"id": order_id, **fields}
            else:
                existing.update(fields)
        return order_id

    def exists(self, order_id: int) -> bool:
        with self._lock:
            return order_id in self._rows

    def delete_where_session(self, session_id: str) -> int:
        with self._lock:
            doomed = [oid for oid, row in self._rows.items() if row.get("import_session_id") == session_id]
            for oid in doomed:
                del self._rows[oid]
        return len(doomed)

    def get(self, order_id: int) -> OrderRecord | None:
        with self._lock:
            row = self._rows.get(order_id)
            return OrderRecord(**row) if row is not None else None

    def max_id(self) -> int:
        with self._lock:
            return max(self._rows, default=0)

    def list_orders(self, filters: OrderFilters, limit: int, offset: int) -> list[OrderRecord]:
        with self._lock:
            matching = [row for _, row in sorted(self._rows.items(), reverse=True) if filters.matches(row)]
            return [OrderRecord(**row) for row in matching[offset:offset + limit]]

    def count(self, filters: OrderFilters | None = None) -> int:
        filters = filters or OrderFilters()
        with self._lock:
            return sum(1 for row in self._rows.values() if filters.matches(row))

    def delete_all(self) -> int:
        with self._lock:
            deleted = len(self._rows)
            self._rows.clear()
        return deleted
