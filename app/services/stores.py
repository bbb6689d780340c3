"""
Store adapters - the narrow data access the order core depends on.

Each store wraps the caller's Session; none of them commits. Locks taken
here (``get_points_for_update``, ``get_active_discount``) belong to the caller's transaction and are
released by its commit or rollback.
"""
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from app.core.exceptions import CustomerNotFound, DiscountNotFound, HandlerNotFound, InsufficientPoints, ServiceNotFound
from app.models import AppUser, Customer, Discount, Service


class CatalogStore:
    def __init__(self, db: Session):
        self.db = db

    def get_unit_price(self, service_id: int) -> Decimal:
        price = self.db.query(Service.service_price_per_unit).filter(
            Service.service_id == service_id,
            Service.is_deleted == False
        ).scalar()
        if price is None:
            raise ServiceNotFound(f"Service {service_id} not found")
        return Decimal(price)


class CustomerStore:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, customer_id: int) -> bool:
        return self.db.query(Customer.customer_id).filter(
            Customer.customer_id == customer_id
        ).first() is not None

    def get_points_for_update(self, customer_id: int) -> int:
        """Read the balance and hold an exclusive row lock until the transaction ends"""
        points = self.db.query(Customer.points).filter(
            Customer.customer_id == customer_id
        ).with_for_update().scalar()
        if points is None:
            raise CustomerNotFound(f"Customer {customer_id} not found")
        return points

    def decrement_points(self, customer_id: int, amount: int) -> None:
        # Guarded in SQL as well, so the balance cannot go negative even without the lock
        result = self.db.execute(
            update(Customer)
            .where(Customer.customer_id == customer_id, Customer.points >= amount)
            .values(points=Customer.points - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientPoints("Customer does not have enough points for discount")
        # Drop any cached balance so later reads in this session see the new value
        customer = self.db.identity_map.get(identity_key(Customer, customer_id))
        if customer is not None:
            self.db.expire(customer, ["points"])


class DiscountStore:
    def __init__(self, db: Session):
        self.db = db

    def get_active_discount(self, discount_id: int) -> Discount:
        """Shared row lock: edits and soft deletes wait until the caller's transaction ends"""
        discount = self.db.query(Discount).filter(
            Discount.discount_id == discount_id,
            Discount.is_deleted == False
        ).with_for_update(read=True).first()
        if discount is None:
            raise DiscountNotFound(f"Discount {discount_id} not found")
        return discount


class StaffStore:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, user_id: int) -> bool:
        return self.db.query(AppUser.user_id).filter(
            AppUser.user_id == user_id
        ).first() is not None

    def require(self, user_id: int) -> None:
        if not self.exists(user_id):
            raise HandlerNotFound(f"Handler {user_id} not found")
