"""
Discount Service - eligibility checks and discount maintenance
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core import transaction_scope
from app.core.exceptions import DiscountInUse, InsufficientPoints, NoFieldsProvided
from app.models import Discount, Order
from app.schemas.discount import DiscountCreate, DiscountUpdate
from .stores import CustomerStore, DiscountStore

logger = logging.getLogger(__name__)

class DiscountEligibilityChecker:
    """
    Decides whether a customer may redeem a discount and spends the points.

    Must run inside the caller's transaction: the customer row stays locked
    until that transaction commits or rolls back.
    """

    def __init__(self, customers: CustomerStore, discounts: DiscountStore):
        self.customers = customers
        self.discounts = discounts

    def check_and_reserve(self, customer_id: int, discount_id: Optional[int]) -> int:
        """Return the points deducted (0 when no discount is requested)"""
        if not discount_id:
            return 0

        balance = self.customers.get_points_for_update(customer_id)
        discount = self.discounts.get_active_discount(discount_id)
        required = discount.required_points

        if balance < required:
            logger.info(
                f"Customer {customer_id} has {balance} points, discount {discount_id} needs {required}"
            )
            raise InsufficientPoints("Customer does not have enough points for discount")

        self.customers.decrement_points(customer_id, required)
        return required

class DiscountService:
    """Discount business logic"""

    @staticmethod
    def get_discounts(db: Session) -> List[Discount]:
        """Live discounts, cheapest first"""
        return db.query(Discount).filter(
            Discount.is_deleted == False
        ).order_by(Discount.required_points, Discount.discount_id).all()

    @staticmethod
    def get_discount_by_id(db: Session, discount_id: int) -> Optional[Discount]:
        return db.query(Discount).filter(
            Discount.discount_id == discount_id,
            Discount.is_deleted == False
        ).first()

    @staticmethod
    def create_discount(db: Session, data: DiscountCreate) -> Discount:
        discount = Discount(
            discount_type=data.discount_type,
            amount=data.amount,
            required_points=data.required_points
        )
        with transaction_scope(db):
            db.add(discount)
        db.refresh(discount)
        return discount

    @staticmethod
    def update_discount(db: Session, discount_id: int, data: DiscountUpdate) -> Optional[Discount]:
        """Update a discount that no order references yet"""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise NoFieldsProvided("No fields to update")

        with transaction_scope(db):
            discount = db.query(Discount).filter(
                Discount.discount_id == discount_id,
                Discount.is_deleted == False
            ).with_for_update().first()
            if not discount:
                return None

            in_use = db.query(Order.order_id).filter(Order.discount_id == discount_id).first()
            if in_use:
                raise DiscountInUse(f"Discount {discount_id} is referenced by an order")

            for field, value in changes.items():
                setattr(discount, field, value)

        db.refresh(discount)
        return discount

    @staticmethod
    def delete_discount(db: Session, discount_id: int) -> bool:
        """Soft delete; returns False when the discount is missing or already deleted"""
        with transaction_scope(db):
            discount = db.query(Discount).filter(
                Discount.discount_id == discount_id,
                Discount.is_deleted == False
            ).with_for_update().first()
            if not discount:
                return False
            discount.is_deleted = True
        return True
