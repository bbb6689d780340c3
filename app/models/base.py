"""
Base Model Mixins
"""
from sqlalchemy import Boolean, Column, DateTime, false, func

class TimestampMixin:
    """Mixin for created_at and updated_at timestamps"""
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

class SoftDeleteMixin:
    """Mixin for logical deletion; rows stay in the table"""
    is_deleted = Column(Boolean, default=False, server_default=false(), nullable=False, index=True)
