"""Services for the fuel kernel (write side, flush-only)."""

from fuel_kernel.services.base import BaseService
from fuel_kernel.services.delivery_order_service import DeliveryOrderService
from fuel_kernel.services.ledger_service import LedgerService

__all__ = [
    "BaseService",
    "DeliveryOrderService",
    "LedgerService",
]
