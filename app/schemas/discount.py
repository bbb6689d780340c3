"""
Discount Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional

from app.models.discount import DiscountType

class DiscountCreate(BaseModel):
    discount_type: DiscountType
    amount: int = Field(..., gt=0)
    required_points: int = Field(..., ge=0)

class DiscountUpdate(BaseModel):
    discount_type: Optional[DiscountType] = None
    amount: Optional[int] = Field(None, gt=0)
    required_points: Optional[int] = Field(None, ge=0)
