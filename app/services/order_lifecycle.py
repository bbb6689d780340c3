"""
Order Lifecycle - status transitions, partial updates, soft delete and line edits
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy.orm import Session

from app.core import transaction_scope
from app.core.exceptions import (
    DuplicateService, EmptyOrder, InvalidStatusTransition, LineItemNotFound,
    NoFieldsProvided, OrderNotEditable, OrderNotFound
)
from app.models import Order, OrderLineItem, OrderStatus
from app.schemas.order import OrderUpdate
from .audit_service import record_audit
from .pricing import CENTS, PricingResolver
from .stores import CatalogStore, DiscountStore, StaffStore

logger = logging.getLogger(__name__)


class OrderLifecycle:
    """Mutations of existing, live orders"""

    # Valid status transitions
    STATUS_TRANSITIONS = {
        OrderStatus.PENDING: [OrderStatus.CONFIRMED, OrderStatus.CANCELLED],
        OrderStatus.CONFIRMED: [OrderStatus.COMPLETED, OrderStatus.CANCELLED],
        OrderStatus.COMPLETED: [],
        OrderStatus.CANCELLED: [],
    }

    # Lines may only change before the order is settled
    EDITABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)

    @staticmethod
    def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
        return current == new or new in OrderLifecycle.STATUS_TRANSITIONS.get(current, [])

    @staticmethod
    def _get_live_order(db: Session, order_id: int) -> Order:
        order = db.query(Order).filter(
            Order.order_id == order_id,
            Order.is_deleted == False
        ).with_for_update().first()
        if not order:
            raise OrderNotFound("Order not found")
        return order

    @staticmethod
    def _apply_status(order: Order, new_status: OrderStatus) -> None:
        current = order.order_status
        if not OrderLifecycle.can_transition(current, new_status):
            raise InvalidStatusTransition(
                f"Cannot transition from {current.value} to {new_status.value}"
            )
        order.order_status = new_status

    @staticmethod
    def update_status(db: Session, order_id: int, new_status: OrderStatus, performed_by: Optional[int] = None) -> Order:
        """Status-only fast path"""
        with transaction_scope(db):
            order = OrderLifecycle._get_live_order(db, order_id)
            old_status = order.order_status
            OrderLifecycle._apply_status(order, new_status)

            if old_status != new_status:
                record_audit(
                    db, "orders", order_id, "STATUS_CHANGE",
                    before_data={"order_status": old_status.value},
                    after_data={"order_status": new_status.value},
                    performed_by=performed_by
                )

        db.refresh(order)
        if old_status != new_status:
            logger.info(f"Order {order_id} status {old_status.value} -> {new_status.value}")
        return order

    @staticmethod
    def update_order(db: Session, order_id: int, patch: OrderUpdate, performed_by: Optional[int] = None) -> Order:
        """Apply whichever of status, handler and discount the patch carries"""
        changes = patch.changes()
        if not changes:
            raise NoFieldsProvided("No fields to update")

        with transaction_scope(db):
            order = OrderLifecycle._get_live_order(db, order_id)
            before = {
                "order_status": order.order_status.value,
                "handler_id": order.handler_id,
                "discount_id": order.discount_id,
            }

            if "order_status" in changes:
                OrderLifecycle._apply_status(order, changes["order_status"])

            if "handler_id" in changes:
                StaffStore(db).require(changes["handler_id"])
                order.handler_id = changes["handler_id"]

            if "discount_id" in changes:
                discount_id = changes["discount_id"]
                if discount_id is not None:
                    DiscountStore(db).get_active_discount(discount_id)
                order.discount_id = discount_id

            record_audit(
                db, "orders", order_id, "UPDATE",
                before_data=before,
                after_data={
                    "order_status": order.order_status.value,
                    "handler_id": order.handler_id,
                    "discount_id": order.discount_id,
                },
                performed_by=performed_by
            )

        db.refresh(order)
        return order

    @staticmethod
    def delete_order(db: Session, order_id: int, performed_by: Optional[int] = None) -> None:
        """Soft delete; a second delete of the same order is OrderNotFound"""
        with transaction_scope(db):
            order = OrderLifecycle._get_live_order(db, order_id)
            order.is_deleted = True
            record_audit(db, "orders", order_id, "DELETE", performed_by=performed_by)

        logger.info(f"Order {order_id} soft-deleted")

    # ===================== LINE ITEMS =====================

    @staticmethod
    def _get_editable_order(db: Session, order_id: int) -> Order:
        order = OrderLifecycle._get_live_order(db, order_id)
        if order.order_status not in OrderLifecycle.EDITABLE_STATUSES:
            raise OrderNotEditable(f"Order is {order.order_status.value}; services cannot be changed")
        return order

    @staticmethod
    def _get_line(db: Session, order_id: int, service_id: int) -> OrderLineItem:
        line = db.query(OrderLineItem).filter(
            OrderLineItem.order_id == order_id,
            OrderLineItem.service_id == service_id
        ).first()
        if not line:
            raise LineItemNotFound(f"Service {service_id} is not part of order {order_id}")
        return line

    @staticmethod
    def add_line_item(db: Session, order_id: int, service_id: int, number_of_unit: int, performed_by: Optional[int] = None) -> OrderLineItem:
        """Add a service priced at the current catalog price"""
        with transaction_scope(db):
            OrderLifecycle._get_editable_order(db, order_id)

            exists = db.query(OrderLineItem).filter(
                OrderLineItem.order_id == order_id,
                OrderLineItem.service_id == service_id
            ).first()
            if exists:
                raise DuplicateService(f"Service {service_id} is already part of order {order_id}")

            priced = PricingResolver(CatalogStore(db)).resolve_line_total(service_id, number_of_unit)
            line = OrderLineItem(
                order_id=order_id,
                service_id=service_id,
                number_of_unit=priced.number_of_unit,
                total_price=priced.total_price
            )
            db.add(line)
            record_audit(
                db, "order_service", f"{order_id}:{service_id}", "INSERT",
                after_data={"number_of_unit": priced.number_of_unit, "total_price": str(priced.total_price)},
                performed_by=performed_by
            )

        db.refresh(line)
        return line

    @staticmethod
    def update_line_item(db: Session, order_id: int, service_id: int, number_of_unit: int, performed_by: Optional[int] = None) -> OrderLineItem:
        """Change a quantity, keeping the unit price captured when the line was added"""
        with transaction_scope(db):
            OrderLifecycle._get_editable_order(db, order_id)
            line = OrderLifecycle._get_line(db, order_id, service_id)

            before = {"number_of_unit": line.number_of_unit, "total_price": str(line.total_price)}
            unit_price = Decimal(line.total_price) / line.number_of_unit
            line.number_of_unit = number_of_unit
            line.total_price = (unit_price * number_of_unit).quantize(CENTS, rounding=ROUND_HALF_UP)

            record_audit(
                db, "order_service", f"{order_id}:{service_id}", "UPDATE",
                before_data=before,
                after_data={"number_of_unit": line.number_of_unit, "total_price": str(line.total_price)},
                performed_by=performed_by
            )

        db.refresh(line)
        return line

    @staticmethod
    def remove_line_item(db: Session, order_id: int, service_id: int, performed_by: Optional[int] = None) -> None:
        with transaction_scope(db):
            OrderLifecycle._get_editable_order(db, order_id)
            line = OrderLifecycle._get_line(db, order_id, service_id)

            line_count = db.query(OrderLineItem).filter(OrderLineItem.order_id == order_id).count()
            if line_count <= 1:
                raise EmptyOrder("An order must keep at least one service")

            db.delete(line)
            record_audit(db, "order_service", f"{order_id}:{service_id}", "DELETE", performed_by=performed_by)
