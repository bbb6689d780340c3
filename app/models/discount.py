"""
Discount Models
"""
import enum

from sqlalchemy import Column, Integer, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from app.core import Base
from .base import TimestampMixin, SoftDeleteMixin

class DiscountType(str, enum.Enum):
    PERCENT = "percent"
    FIXED = "fixed"

class Discount(Base, TimestampMixin, SoftDeleteMixin):
    """Points-redeemable discount"""
    __tablename__ = "discounts"

    discount_id = Column(Integer, primary_key=True, autoincrement=True)
    discount_type = Column(
        Enum(DiscountType, name="discount_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    amount = Column(Integer, nullable=False)  # percent off, or fixed currency units
    required_points = Column(Integer, default=0, nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="discount")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_discounts_amount_positive"),
        CheckConstraint("required_points >= 0", name="ck_discounts_required_points_non_negative"),
    )
