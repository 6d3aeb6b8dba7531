"""
Order persistence: store interface, in-memory and PostgreSQL backends.
"""

from .order_store import InMemoryOrderStore, OrderFilters, OrderStore

__all__ = ["OrderStore", "OrderFilters", "InMemoryOrderStore"]
