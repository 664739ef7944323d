"""
Cart endpoints.

The cart owner is named explicitly (``identity`` in the body or path). Line
item updates and deletes are additionally scoped to the caller when the
request carries an identity: the item must belong to its user id or its
session id.
"""
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trellis import cart
from trellis.database import get_db
from trellis.identity import Identity, get_identity
from trellis.schemas import (
    AddToCartRequest,
    CartItemOut,
    CartTotals,
    PathId,
    SuccessResponse,
    UpdateCartItemRequest,
)

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("/{identity}", response_model=List[CartItemOut])
def get_cart(identity: str, db: Session = Depends(get_db)):
    return cart.get_cart(db, identity)


@router.get("/{identity}/totals", response_model=CartTotals)
def get_totals(identity: str, db: Session = Depends(get_db)):
    """Subtotal, tax, shipping and total from live catalog prices."""
    return CartTotals.model_validate(asdict(cart.compute_totals(db, identity)))


@router.post("", response_model=CartItemOut, status_code=201)
def add_to_cart(request: AddToCartRequest, db: Session = Depends(get_db)):
    """Adding a product already in the cart increments its quantity."""
    return cart.add_to_cart(db, request.identity, request.product_id, request.quantity)


@router.put("/{line_item_id}", response_model=CartItemOut)
def update_cart_item(
    line_item_id: PathId,
    request: UpdateCartItemRequest,
    db: Session = Depends(get_db),
    caller: Identity = Depends(get_identity),
):
    return cart.update_quantity(db, line_item_id, request.quantity, identity=caller)


@router.delete("/session/{identity}", response_model=SuccessResponse)
def clear_cart(identity: str, db: Session = Depends(get_db)):
    cart.clear_cart(db, identity)
    return SuccessResponse()


@router.delete("/{line_item_id}", response_model=SuccessResponse)
def remove_cart_item(
    line_item_id: PathId,
    db: Session = Depends(get_db),
    caller: Identity = Depends(get_identity),
):
    cart.remove_from_cart(db, line_item_id, identity=caller)
    return SuccessResponse()
