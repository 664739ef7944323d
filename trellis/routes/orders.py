"""Checkout and order history. Signed-in users only."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trellis import orders
from trellis.database import get_db
from trellis.identity import Identity, require_user
from trellis.schemas import CheckoutRequest, OrderOut

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=201)
def checkout(request: CheckoutRequest, db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    """Turn the user's cart into a pending order and empty the cart."""
    return orders.checkout(
        db,
        identity,
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        shipping_address=request.shipping_address,
    )


@router.get("", response_model=List[OrderOut])
def list_orders(db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    return orders.list_orders(db, identity)


@router.get("/{order_number}", response_model=OrderOut)
def get_order(order_number: str, db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    return orders.get_order(db, identity, order_number)
