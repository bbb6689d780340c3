"""
Order Service - order creation transaction and read projections
"""
import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional, Tuple

from dateutil import parser as date_parser
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core import transaction_scope
from app.core.exceptions import (
    CustomerNotFound, DuplicateService, EmptyOrder, InvalidDateFormat, InvalidDateRange,
    MissingDateRange, OrderDeskError, OrderNotFound, StorageError
)
from app.models import Order, OrderLineItem, OrderStatus
from app.schemas.order import OrderCreate
from .audit_service import record_audit
from .discount_service import DiscountEligibilityChecker
from .pricing import PricingResolver, apply_discount
from .stores import CatalogStore, CustomerStore, DiscountStore, StaffStore

logger = logging.getLogger(__name__)

EPOCH = date(1970, 1, 1)


class CreationStage(str, enum.Enum):
    STARTED = "STARTED"
    DISCOUNT_CHECKED = "DISCOUNT_CHECKED"
    HEADER_INSERTED = "HEADER_INSERTED"
    LINES_INSERTED = "LINES_INSERTED"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


@dataclass
class CreatedOrder:
    order: Order
    lines: List[OrderLineItem]
    points_deducted: int
    total_order_price: Decimal
    payable_price: Decimal


def order_total(order: Order) -> Decimal:
    return sum((line.total_price for line in order.services), Decimal("0"))


def live_discount(order: Order):
    """Discount of an order, hidden once the discount is soft-deleted"""
    if order.discount is not None and not order.discount.is_deleted:
        return order.discount
    return None


def resolve_date_window(start: Optional[str], end: Optional[str], today: Optional[date] = None) -> Tuple[datetime, datetime]:
    """
    Turn optional ``start``/``end`` date strings into an inclusive window
    from the first to the last instant of the given days.
    """
    if not start and not end:
        raise MissingDateRange("Start or end date is required.")

    try:
        start_day = date_parser.isoparse(start).date() if start else EPOCH
        end_day = date_parser.isoparse(end).date() if end else (today or date.today())
    except ValueError:
        raise InvalidDateFormat("Invalid date format.")

    if start_day > end_day:
        raise InvalidDateRange("Start date cannot be after end date.")

    return datetime.combine(start_day, time.min), datetime.combine(end_day, time.max)


class OrderService:
    """Order business logic"""

    @staticmethod
    def create_order(db: Session, order_data: OrderCreate) -> CreatedOrder:
        """
        Create an order with its priced lines in a single transaction.

        When a discount is requested the customer row is locked, the points
        are checked and deducted, then the header and every line are
        inserted. Any failure rolls back all of it, including the deduction.
        """
        services = list(order_data.services or [])
        if not services:
            raise EmptyOrder("At least one service must be provided")

        seen = set()
        for item in services:
            if item.service_id in seen:
                raise DuplicateService(f"Service {item.service_id} is listed more than once")
            seen.add(item.service_id)

        customers = CustomerStore(db)
        checker = DiscountEligibilityChecker(customers, DiscountStore(db))
        pricing = PricingResolver(CatalogStore(db))

        stage = CreationStage.STARTED
        try:
            with transaction_scope(db):
                StaffStore(db).require(order_data.handler_id)

                if order_data.discount_id:
                    points_deducted = checker.check_and_reserve(order_data.customer_id, order_data.discount_id)
                else:
                    if not customers.exists(order_data.customer_id):
                        raise CustomerNotFound(f"Customer {order_data.customer_id} not found")
                    points_deducted = 0
                stage = CreationStage.DISCOUNT_CHECKED

                order = Order(
                    customer_id=order_data.customer_id,
                    handler_id=order_data.handler_id,
                    discount_id=order_data.discount_id or None,
                    order_status=OrderStatus.PENDING
                )
                db.add(order)
                db.flush()
                stage = CreationStage.HEADER_INSERTED

                lines = []
                total = Decimal("0")
                for item in services:
                    priced = pricing.resolve_line_total(item.service_id, item.number_of_unit)
                    line = OrderLineItem(
                        order_id=order.order_id,
                        service_id=priced.service_id,
                        number_of_unit=priced.number_of_unit,
                        total_price=priced.total_price
                    )
                    db.add(line)
                    lines.append(line)
                    total += priced.total_price
                db.flush()
                stage = CreationStage.LINES_INSERTED

                record_audit(
                    db, "orders", order.order_id, "INSERT",
                    after_data={
                        "customer_id": order.customer_id,
                        "discount_id": order.discount_id,
                        "points_deducted": points_deducted,
                        "services": [
                            {"service_id": l.service_id, "number_of_unit": l.number_of_unit, "total_price": str(l.total_price)}
                            for l in lines
                        ],
                    },
                    performed_by=order_data.handler_id
                )
        except OrderDeskError as e:
            logger.warning(f"Order creation {CreationStage.ROLLED_BACK.value} after {stage.value}: {e.error} - {e.message}")
            raise
        except SQLAlchemyError:
            logger.exception(f"Order creation {CreationStage.ROLLED_BACK.value} after {stage.value}")
            raise StorageError("Failed to create order")

        stage = CreationStage.COMMITTED
        db.refresh(order)
        logger.info(
            f"Order {order.order_id} {stage.value}: customer={order.customer_id} "
            f"lines={len(lines)} total={total} points_deducted={points_deducted}"
        )

        return CreatedOrder(
            order=order,
            lines=lines,
            points_deducted=points_deducted,
            total_order_price=total,
            payable_price=apply_discount(total, live_discount(order))
        )

    @staticmethod
    def get_orders(db: Session, page: int = 1, limit: int = 10) -> Tuple[List[Order], int]:
        """Live orders, newest first, with pagination"""
        query = db.query(Order).filter(Order.is_deleted == False)

        total = query.count()

        orders = query.options(
            joinedload(Order.discount),
            selectinload(Order.services)
        ).order_by(Order.order_date.desc(), Order.order_id.desc())\
            .offset((page - 1) * limit)\
            .limit(limit)\
            .all()

        return orders, total

    @staticmethod
    def search_orders(db: Session, start: Optional[str] = None, end: Optional[str] = None) -> List[Order]:
        """Live orders whose order_date falls inside the inclusive day window"""
        window_start, window_end = resolve_date_window(start, end)

        return db.query(Order).options(
            joinedload(Order.discount),
            selectinload(Order.services)
        ).filter(
            Order.is_deleted == False,
            Order.order_date.between(window_start, window_end)
        ).order_by(Order.order_date.desc(), Order.order_id.desc()).all()

    @staticmethod
    def get_order_by_id(db: Session, order_id: int) -> Optional[Order]:
        """Get a live order by ID"""
        return db.query(Order).filter(
            Order.order_id == order_id,
            Order.is_deleted == False
        ).first()

    @staticmethod
    def get_order_detail(db: Session, order_id: int) -> Order:
        order = db.query(Order).options(
            joinedload(Order.discount),
            selectinload(Order.services).joinedload(OrderLineItem.service)
        ).filter(
            Order.order_id == order_id,
            Order.is_deleted == False
        ).first()
        if not order:
            raise OrderNotFound("Order not found")
        return order

