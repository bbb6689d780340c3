"""
API Router - JSON Endpoints
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.core import get_db, settings
from app.models import AppUser, Order, OrderLineItem
from app.services import OrderService, OrderLifecycle, apply_discount
from app.services.order_service import live_discount, order_total
from app.schemas.order import OrderCreate, OrderUpdate, OrderStatusUpdate, OrderServiceItem, LineItemUpdate

# Import sub-routers
from app.api.auth import router as auth_router, require_roles
from app.api.discounts import router as discounts_router

api_router = APIRouter(tags=["API"])

# Include sub-routers
api_router.include_router(auth_router)
api_router.include_router(discounts_router)

staff_only = require_roles("admin", "staff")

# ===================== SERIALIZERS =====================

def serialize_line(line: OrderLineItem, with_name: bool = False) -> dict:
    data = {
        "service_id": line.service_id,
        "number_of_unit": line.number_of_unit,
        "total_price": float(line.total_price or 0),
    }
    if with_name:
        data["service_name"] = line.service.service_name if line.service else None
    return data

def serialize_order(order: Order, with_services: bool = False) -> dict:
    discount = live_discount(order)
    total = order_total(order)
    data = {
        "order_id": order.order_id,
        "customer_id": order.customer_id,
        "order_date": order.order_date.isoformat() if order.order_date else None,
        "handler_id": order.handler_id,
        "order_status": order.order_status.value,
        "discount_id": order.discount_id,
        "discount_type": discount.discount_type.value if discount else None,
        "discount_amount": discount.amount if discount else None,
        "total_order_price": float(total),
        "payable_price": float(apply_discount(total, discount)),
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }
    if with_services:
        data["services"] = [serialize_line(line, with_name=True) for line in order.services]
    return data

# ===================== ORDERS =====================

@api_router.get("/orders")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    orders, total = OrderService.get_orders(db, page, limit)
    return {
        "success": True,
        "data": [serialize_order(o) for o in orders],
        "pagination": {
            "total_record": total,
            "page": page,
            "limit": limit
        }
    }

@api_router.get("/orders/search")
def search_orders(
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    orders = OrderService.search_orders(db, start, end)
    return {"success": True, "data": [serialize_order(o) for o in orders]}

@api_router.get("/orders/{order_id}")
def get_order(order_id: int, db: Session = Depends(get_db)):
    order = OrderService.get_order_detail(db, order_id)
    return serialize_order(order, with_services=True)

@api_router.post("/orders", status_code=status.HTTP_201_CREATED)
def create_order(order_data: OrderCreate, db: Session = Depends(get_db)):
    created = OrderService.create_order(db, order_data)

    order = serialize_order(created.order, with_services=True)
    order["points_deducted"] = created.points_deducted
    return {"message": "Order created", "order": order}

@api_router.put("/orders/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(staff_only)
):
    order = OrderLifecycle.update_status(db, order_id, data.order_status, performed_by=current_user.user_id)
    return {"message": "Order status updated", "order": serialize_order(order)}

@api_router.put("/orders/{order_id}")
def update_order(
    order_id: int,
    data: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(staff_only)
):
    order = OrderLifecycle.update_order(db, order_id, data, performed_by=current_user.user_id)
    return {"message": "Order updated", "order": serialize_order(order)}

@api_router.delete("/orders/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(staff_only)
):
    OrderLifecycle.delete_order(db, order_id, performed_by=current_user.user_id)
    return {"message": "Order deleted"}

# ===================== ORDER SERVICES =====================

@api_router.post("/orders/{order_id}/services", status_code=status.HTTP_201_CREATED)
def add_service_to_order(
    order_id: int,
    item: OrderServiceItem,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(staff_only)
):
    line = OrderLifecycle.add_line_item(
        db, order_id, item.service_id, item.number_of_unit, performed_by=current_user.user_id
    )
    return {"message": "Service added to order", "service": serialize_line(line)}

@api_router.put("/orders/{order_id}/services/{service_id}")
def update_order_service(
    order_id: int,
    service_id: int,
    data: LineItemUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(staff_only)
):
    line = OrderLifecycle.update_line_item(
        db, order_id, service_id, data.number_of_unit, performed_by=current_user.user_id
    )
    return {"message": "Service quantity updated", "service": serialize_line(line)}

@api_router.delete("/orders/{order_id}/services/{service_id}")
def remove_service_from_order(
    order_id: int,
    service_id: int,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(staff_only)
):
    OrderLifecycle.remove_line_item(db, order_id, service_id, performed_by=current_user.user_id)
    return {"message": "Service removed from order"}
