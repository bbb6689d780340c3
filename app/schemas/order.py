"""
Order Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List

from app.models.order import OrderStatus

class OrderServiceItem(BaseModel):
    service_id: int = Field(..., gt=0)
    number_of_unit: int = Field(..., gt=0)

class OrderCreate(BaseModel):
    customer_id: int = Field(..., gt=0)
    handler_id: int = Field(..., gt=0)
    discount_id: Optional[int] = Field(None, gt=0)
    services: List[OrderServiceItem] = Field(..., min_length=1)

class OrderStatusUpdate(BaseModel):
    order_status: OrderStatus

class OrderUpdate(BaseModel):
    """
    Partial update. Only fields sent by the client count as present;
    an explicit ``discount_id: null`` clears the discount.
    """
    order_status: Optional[OrderStatus] = None
    handler_id: Optional[int] = Field(None, gt=0)
    discount_id: Optional[int] = Field(None, gt=0)

    def changes(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        # null status/handler mean "not provided"; only discount may be cleared
        for field in ("order_status", "handler_id"):
            if data.get(field, ...) is None:
                data.pop(field)
        return data

class LineItemUpdate(BaseModel):
    number_of_unit: int = Field(..., gt=0)
