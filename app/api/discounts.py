from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core import get_db
from app.models import AppUser, Discount
from app.services import DiscountService
from app.schemas.discount import DiscountCreate, DiscountUpdate
from app.api.auth import require_roles

router = APIRouter(prefix="/discounts", tags=["Discounts"])

def serialize_discount(discount: Discount) -> dict:
    return {
        "discount_id": discount.discount_id,
        "discount_type": discount.discount_type.value,
        "amount": discount.amount,
        "required_points": discount.required_points,
    }

@router.get("")
def list_discounts(db: Session = Depends(get_db)):
    """Live discounts"""
    return {"success": True, "data": [serialize_discount(d) for d in DiscountService.get_discounts(db)]}

@router.get("/{discount_id}")
def get_discount(discount_id: int, db: Session = Depends(get_db)):
    discount = DiscountService.get_discount_by_id(db, discount_id)
    if not discount:
        raise HTTPException(status_code=404, detail="Discount not found")
    return serialize_discount(discount)

@router.post("", status_code=status.HTTP_201_CREATED)
def create_discount(
    data: DiscountCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_roles("admin", "staff"))
):
    discount = DiscountService.create_discount(db, data)
    return {"message": "Discount created", "discount": serialize_discount(discount)}

@router.put("/{discount_id}")
def update_discount(
    discount_id: int,
    data: DiscountUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_roles("admin", "staff"))
):
    """Update a discount no order has used yet"""
    discount = DiscountService.update_discount(db, discount_id, data)
    if not discount:
        raise HTTPException(status_code=404, detail="Discount not found")
    return {"message": "Discount updated", "discount": serialize_discount(discount)}

@router.delete("/{discount_id}")
def delete_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(require_roles("admin", "staff"))
):
    if not DiscountService.delete_discount(db, discount_id):
        raise HTTPException(status_code=404, detail="Discount not found")
    return {"message": "Discount deleted"}
