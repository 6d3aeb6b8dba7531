from .order_service import OrderPage, OrderService, normalize_state

__all__ = ["OrderService", "OrderPage", "normalize_state"]
