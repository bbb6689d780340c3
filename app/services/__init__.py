# Services Package
from .order_service import OrderService
from .order_lifecycle import OrderLifecycle
from .discount_service import DiscountService, DiscountEligibilityChecker
from .pricing import PricingResolver, apply_discount

__all__ = [
    "OrderService",
    "OrderLifecycle",
    "DiscountService",
    "DiscountEligibilityChecker",
    "PricingResolver",
    "apply_discount",
]
