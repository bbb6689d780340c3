"""
Master Tables: AppUser (staff accounts)
"""
from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from app.core import Base
from .base import TimestampMixin

class AppUser(Base, TimestampMixin):
    """Application User"""
    __tablename__ = "app_user"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    full_name = Column(String(200))
    hashed_password = Column(String(255))
    role = Column(String(20), default="staff", nullable=False)  # admin, staff, customer
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    handled_orders = relationship("Order", back_populates="handler")
