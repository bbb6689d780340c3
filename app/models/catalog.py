"""
Catalog Models
"""
from sqlalchemy import Column, Integer, String, Numeric
from app.core import Base
from .base import TimestampMixin, SoftDeleteMixin

class Service(Base, TimestampMixin, SoftDeleteMixin):
    """Sellable service (catalog item)"""
    __tablename__ = "services"

    service_id = Column(Integer, primary_key=True, autoincrement=True)
    service_name = Column(String(200), nullable=False)
    service_price_per_unit = Column(Numeric(12, 2), nullable=False)
