"""
Pricing - line totals and discount application
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.exceptions import InvalidQuantity
from app.models import Discount, DiscountType
from .stores import CatalogStore

CENTS = Decimal("0.01")

@dataclass(frozen=True)
class PricedLine:
    service_id: int
    number_of_unit: int
    unit_price: Decimal
    total_price: Decimal

class PricingResolver:
    """Resolves the current catalog price; the result is captured, not referenced"""

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

    def resolve_line_total(self, service_id: int, quantity: int) -> PricedLine:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantity(f"Quantity for service {service_id} must be a positive integer")

        unit_price = self.catalog.get_unit_price(service_id)
        total = (unit_price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)
        return PricedLine(
            service_id=service_id,
            number_of_unit=quantity,
            unit_price=unit_price,
            total_price=total
        )

def apply_discount(total: Decimal, discount: Optional[Discount]) -> Decimal:
    """Payable amount after a discount; never below zero"""
    if discount is None:
        return total

    if discount.discount_type == DiscountType.PERCENT:
        rate = min(Decimal(discount.amount), Decimal(100)) / Decimal(100)
        payable = total - (total * rate)
    else:
        payable = total - Decimal(discount.amount)

    return max(payable, Decimal("0")).quantize(CENTS, rounding=ROUND_HALF_UP)
