"""
Order management outside of bulk imports: manual entry, paged listing and
clearing the store.
"""

import asyncio
import math
from dataclasses import dataclass, field
from decimal import Decimal

from taxflow.core.jurisdiction import BoundingBoxResolver, JurisdictionResolver
from taxflow.core.models import OrderRecord
from taxflow.core.tax import calculate
from taxflow.core.validators import RowValidator
from taxflow.observability.logger import get_logger
from taxflow.warehouse.order_store import OrderFilters, OrderStore

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class OrderPage:
    """One page of orders plus paging metadata."""

    total: int
    page: int
    limit: int
    pages: int
    orders: list[OrderRecord] = field(default_factory=list)


def normalize_state(state: str | None) -> str | None:
    """Map "NEW YORK" (any case) to "NY"; blank means no filter."""
    if state is None or not state.strip():
        return None
    state = state.strip().upper()
    return "NY" if state == "NEW YORK" else state


class OrderService:
    """
    Manual order creation and queries over an OrderStore.
    """

    def __init__(
        self,
        store: OrderStore,
        resolver: JurisdictionResolver | None = None,
        validator: RowValidator | None = None,
    ):
        self.store = store
        self.resolver = resolver or BoundingBoxResolver()
        self.validator = validator or RowValidator()
        self._create_lock = asyncio.Lock()

    async def create_order(
        self,
        latitude: float | str,
        longitude: float | str,
        subtotal: Decimal | float | str,
        timestamp: str | None = None,
    ) -> OrderRecord:
        """
        Create one order with the next free id.

        Validation, resolution and tax calculation are the same as for an
        imported row. The order carries no import session tag.

        Raises:
            InvalidNumber, InvalidSubtotal, OutOfRegion: Bad input
        """
        async with self._create_lock:
            order_id = await asyncio.to_thread(self.store.max_id) + 1
            valid = self.validator.validate_values(
                latitude, longitude, subtotal, timestamp=timestamp, order_id=order_id
            )
            resolution = await self.resolver.resolve(valid.latitude, valid.longitude)
            breakdown = calculate(valid.subtotal, resolution.jurisdiction)
            record = OrderRecord.from_breakdown(
                order_id=order_id,
                latitude=valid.latitude,
                longitude=valid.longitude,
                subtotal=valid.subtotal,
                timestamp=valid.timestamp,
                breakdown=breakdown,
            )
            await asyncio.to_thread(self.store.upsert, order_id, record.to_fields())

        logger.info(
            f"Created order {order_id} in {record.tax_region}",
            extra={"order_id": order_id, "tax_region": record.tax_region},
        )
        return record

    def list_orders(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        state: str | None = None,
        min_total: Decimal | float | str | None = None,
        max_total: Decimal | float | str | None = None,
    ) -> OrderPage:
        """
        List orders, newest id first.

        Args:
            page: 1-based page number (values below 1 mean 1)
            limit: Page size, clamped to 1..100
            state: State filter; "NEW YORK" is treated as "NY"
            min_total / max_total: Inclusive bounds on total_amount
        """
        page = max(1, page)
        limit = min(max(1, limit), MAX_PAGE_SIZE)
        filters = OrderFilters(
            state=normalize_state(state),
            min_total=None if min_total is None else Decimal(str(min_total)),
            max_total=None if max_total is None else Decimal(str(max_total)),
        )

        total = self.store.count(filters)
        orders = self.store.list_orders(filters, limit=limit, offset=(page - 1) * limit)
        return OrderPage(
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
            orders=orders,
        )

    def clear_orders(self) -> int:
        """Delete every order. Returns the number deleted."""
        deleted = self.store.delete_all()
        logger.info(f"Cleared {deleted} orders", extra={"deleted": deleted})
        return deleted
