"""
Order Models
"""
import enum

from sqlalchemy import Column, Integer, Numeric, DateTime, Enum, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from app.core import Base
from .base import TimestampMixin, SoftDeleteMixin

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class Order(Base, TimestampMixin, SoftDeleteMixin):
    """Order Header"""
    __tablename__ = "orders"

    order_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=False, index=True)
    order_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    handler_id = Column(Integer, ForeignKey("app_user.user_id"), nullable=False)
    order_status = Column(
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PENDING,
        nullable=False
    )
    discount_id = Column(Integer, ForeignKey("discounts.discount_id"))

    # Relationships
    customer = relationship("Customer", back_populates="orders")
    handler = relationship("AppUser", back_populates="handled_orders")
    discount = relationship("Discount", back_populates="orders")
    services = relationship("OrderLineItem", back_populates="order", order_by="OrderLineItem.service_id")

class OrderLineItem(Base):
    """Order line: one service and its quantity, priced at insertion"""
    __tablename__ = "order_service"

    order_id = Column(Integer, ForeignKey("orders.order_id"), primary_key=True)
    service_id = Column(Integer, ForeignKey("services.service_id"), primary_key=True)
    number_of_unit = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="services")
    service = relationship("Service")

    __table_args__ = (
        CheckConstraint("number_of_unit > 0", name="ck_order_service_units_positive"),
    )
