"""
Checkout stub and order history for signed-in users.

Checkout: compute totals for the user's cart from live prices, write the
order with a price snapshot per item, then delete the cart rows. Both steps
commit together. No payment provider is called; orders start as "pending".
"""
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from trellis.cart import compute_totals
from trellis.errors import InvalidRequest, NotFound
from trellis.identity import Identity, authenticated_user_id
from trellis.logger import get_logger
from trellis.models import CartItem, Order, OrderItem

logger = get_logger("orders")


def _new_order_number() -> str:
    return f"ORD-{uuid.uuid4().hex[:12].upper()}"


def checkout(
    db: Session,
    identity: Identity,
    customer_name: str,
    customer_email: str,
    shipping_address: Optional[Dict[str, Any]] = None,
) -> Order:
    user_id = authenticated_user_id(identity)
    totals = compute_totals(db, user_id)
    if not totals.items:
        raise InvalidRequest("Cart is empty")

    order = Order(
        order_number=_new_order_number(),
        user_id=user_id,
        customer_name=customer_name,
        customer_email=customer_email,
        shipping_address=shipping_address,
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        total=totals.total,
        status="pending",
    )
    for line in totals.items:
        order.items.append(OrderItem(
            product_id=line.product_id,
            product_name=line.product_name,
            quantity=line.quantity,
            price=line.unit_price,
        ))
    db.add(order)
    db.query(CartItem).filter(CartItem.session_id == user_id).delete(synchronize_session=False)
    db.commit()
    db.refresh(order)

    logger.info(
        "orders: method=checkout user_id=%s order_number=%s total=%s items=%s",
        user_id, order.order_number, order.total, len(order.items),
    )
    return order


def list_orders(db: Session, identity: Identity) -> List[Order]:
    user_id = authenticated_user_id(identity)
    return (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def get_order(db: Session, identity: Identity, order_number: str) -> Order:
    user_id = authenticated_user_id(identity)
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.user_id == user_id, Order.order_number == order_number)
        .first()
    )
    if order is None:
        raise NotFound("Order not found")
    return order
