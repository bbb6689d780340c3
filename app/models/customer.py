"""
Customer Models
"""
from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship
from app.core import Base
from .base import TimestampMixin

class Customer(Base, TimestampMixin):
    """Customer with a loyalty point balance"""
    __tablename__ = "customers"

    customer_id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200))
    points = Column(Integer, default=0, server_default="0", nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="customer")

    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_customers_points_non_negative"),
    )
