"""
Cart ledger: quantity-per-product line items keyed by identity.

Line item rows:
  id            integer PK
  session_id    owning identity key (user id or anonymous session id)
  product_id    reference into the catalog (not owning)
  quantity      1 .. max_line_quantity
  UNIQUE (session_id, product_id)

Adding a product already in the cart increments the existing row through an
atomic upsert. Totals are derived on every read from live catalog prices;
nothing price-related is stored on the line item.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from trellis.catalog import find_product
from trellis.config import get_config
from trellis.database import upsert_insert, utcnow
from trellis.errors import InvalidRequest, NotFound
from trellis.identity import Identity
from trellis.logger import get_logger
from trellis.models import CartItem, Product

logger = get_logger("cart")

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class TotalsLine:
    line_item_id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass
class CartTotalsResult:
    items: List[TotalsLine] = field(default_factory=list)
    item_count: int = 0
    subtotal: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    shipping: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    missing_product_ids: List[int] = field(default_factory=list)


def get_cart(db: Session, identity_key: str) -> List[CartItem]:
    """All line items for the identity, newest first."""
    return (
        db.query(CartItem)
        .filter(CartItem.session_id == identity_key)
        .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        .all()
    )


def add_to_cart(db: Session, identity_key: str, product_id: int, quantity: int = 1) -> CartItem:
    """
    Add ``quantity`` of a product, merging into the existing line item if there is one.
    Stock is not checked; adding an out-of-stock product is logged. A merge
    that would pass the line item limit is rejected and leaves the row as it was.
    """
    logger.info("cart: method=add_to_cart identity=%s product_id=%s quantity=%s", identity_key, product_id, quantity)
    limit = get_config().max_line_quantity
    _check_quantity(quantity, limit)
    product = find_product(db, product_id)
    if product is None:
        raise NotFound("Product not found")
    existing = _line_for_product(db, identity_key, product_id)
    if existing is not None and existing.quantity + quantity > limit:
        raise InvalidRequest(f"Quantity in cart cannot exceed {limit}")
    if not product.in_stock:
        logger.warning("cart: method=add_to_cart identity=%s product_id=%s out_of_stock=true", identity_key, product_id)

    table = CartItem.__table__
    stmt = upsert_insert(db, CartItem).values(
        session_id=identity_key,
        product_id=product_id,
        quantity=quantity,
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.session_id, table.c.product_id],
        set_={"quantity": table.c.quantity + stmt.excluded.quantity},
        where=(table.c.quantity + stmt.excluded.quantity) <= limit,
    )
    result = db.execute(stmt)
    db.commit()
    if result.rowcount == 0:
        # a concurrent add filled the line item between the check and the upsert
        raise InvalidRequest(f"Quantity in cart cannot exceed {limit}")

    item = _line_for_product(db, identity_key, product_id)
    logger.info(
        "cart: method=add_to_cart identity=%s product_id=%s result=success line_item_id=%s quantity=%s",
        identity_key, product_id, item.id, item.quantity,
    )
    return item


def _check_quantity(quantity: int, limit: int) -> None:
    if quantity < 1:
        raise InvalidRequest("Quantity must be at least 1")
    if quantity > limit:
        raise InvalidRequest(f"Quantity cannot exceed {limit}")


def _line_for_product(db: Session, identity_key: str, product_id: int) -> Optional[CartItem]:
    return (
        db.query(CartItem)
        .filter(CartItem.session_id == identity_key, CartItem.product_id == product_id)
        .first()
    )


def _find_line_item(db: Session, line_item_id: int, identity: Optional[Identity]) -> CartItem:
    """
    Line item by id. When the caller carries an identity the item must belong
    to one of its keys: a signed-in visitor still owns the cart of their session.
    """
    query = db.query(CartItem).filter(CartItem.id == line_item_id)
    keys = [key for key in (identity.user_id, identity.session_id) if key] if identity else []
    if keys:
        query = query.filter(CartItem.session_id.in_(keys))
    item = query.first()
    if item is None:
        raise NotFound("Cart item not found")
    return item


def update_quantity(db: Session, line_item_id: int, quantity: int, identity: Optional[Identity] = None) -> CartItem:
    """
    Set a line item's quantity. Zero or negative is rejected; removing a line
    item is only done through ``remove_from_cart``.
    """
    logger.info("cart: method=update_quantity line_item_id=%s quantity=%s", line_item_id, quantity)
    if quantity < 1:
        raise InvalidRequest("Quantity must be at least 1; remove the item to drop it from the cart")
    _check_quantity(quantity, get_config().max_line_quantity)
    item = _find_line_item(db, line_item_id, identity)
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def remove_from_cart(db: Session, line_item_id: int, identity: Optional[Identity] = None) -> None:
    logger.info("cart: method=remove_from_cart line_item_id=%s", line_item_id)
    item = _find_line_item(db, line_item_id, identity)
    db.delete(item)
    db.commit()


def clear_cart(db: Session, identity_key: str) -> int:
    """Delete every line item of the identity. Returns the number of rows removed."""
    removed = (
        db.query(CartItem)
        .filter(CartItem.session_id == identity_key)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("cart: method=clear_cart identity=%s removed=%s", identity_key, removed)
    return removed


def compute_totals(db: Session, identity_key: str) -> CartTotalsResult:
    """
    Subtotal, tax and total from the live catalog price of every line item.

    A line item whose product no longer exists is excluded and logged.
    Shipping is a flat configured amount (zero by default).
    """
    config = get_config()
    items = get_cart(db, identity_key)
    product_ids = {item.product_id for item in items}
    products = {}
    if product_ids:
        products = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}

    result = CartTotalsResult()
    subtotal = Decimal("0")
    for item in items:
        product = products.get(item.product_id)
        if product is None:
            logger.warning(
                "cart: method=compute_totals identity=%s line_item_id=%s product_id=%s result=excluded reason=product_missing",
                identity_key, item.id, item.product_id,
            )
            result.missing_product_ids.append(item.product_id)
            continue
        unit_price = Decimal(str(product.price))
        line_total = unit_price * item.quantity
        subtotal += line_total
        result.item_count += item.quantity
        result.items.append(TotalsLine(
            line_item_id=item.id,
            product_id=product.id,
            product_name=product.name,
            quantity=item.quantity,
            unit_price=to_cents(unit_price),
            line_total=to_cents(line_total),
        ))

    result.subtotal = to_cents(subtotal)
    result.tax = to_cents(subtotal * Decimal(str(config.tax_rate)))
    result.shipping = to_cents(Decimal(str(config.shipping_cost))) if result.items else Decimal("0.00")
    result.total = result.subtotal + result.tax + result.shipping
    return result
