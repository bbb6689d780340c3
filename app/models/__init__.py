from .base import TimestampMixin, SoftDeleteMixin
from .master import AppUser
from .customer import Customer
from .discount import Discount, DiscountType
from .catalog import Service
from .order import Order, OrderLineItem, OrderStatus
from .audit import AuditLog

__all__ = [
    # Base
    "TimestampMixin", "SoftDeleteMixin",
    # Master
    "AppUser",
    # Customer
    "Customer",
    # Discount
    "Discount", "DiscountType",
    # Catalog
    "Service",
    # Order
    "Order", "OrderLineItem", "OrderStatus",
    # Audit
    "AuditLog",
]
