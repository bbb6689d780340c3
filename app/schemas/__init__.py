# Pydantic Schemas Package
from .order import OrderCreate, OrderUpdate, OrderStatusUpdate, OrderServiceItem, LineItemUpdate
from .discount import DiscountCreate, DiscountUpdate

__all__ = [
    "OrderCreate", "OrderUpdate", "OrderStatusUpdate", "OrderServiceItem", "LineItemUpdate",
    "DiscountCreate", "DiscountUpdate",
]
