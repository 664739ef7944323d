"""
SQLAlchemy database models.
These are the authoritative source of truth for all storefront data.

The relational store is authoritative for:
- Products (canonical attributes and the live price)
- Carts and cart line items
- Per-identity interaction sets (recently viewed, comparison, favorites)
- Ratings, orders, AI side tables (embeddings, SEO meta, chat log)

Identity keys are plain strings: an authenticated user id or an anonymous
session id. Uniqueness constraints encode the "at most one row per ..."
invariants so mutations can be written as atomic upserts.
"""

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Text, UniqueConstraint, Index,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from trellis.config import MAX_LINE_QUANTITY
from trellis.database import Base, utcnow


class Product(Base):
    """
    Product catalog.
    ``price`` is the current price; every derived total reads it live.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, index=True)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)  # for discount display
    category = Column(String(100), nullable=False, index=True)
    image = Column(Text, nullable=False)
    tags = Column(JSON, nullable=True)
    featured = Column(Boolean, default=False, nullable=False)
    in_stock = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class ProductSpec(Base):
    __tablename__ = "product_specs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False, index=True)
    spec_name = Column(String(255), nullable=False)
    spec_value = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class CartItem(Base):
    """
    One cart line item. ``session_id`` holds the owning identity key.
    product_id is a reference, not a foreign key: a deleted product leaves the
    row behind and it is excluded from totals.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("session_id", "product_id", name="uq_cart_items_session_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
        CheckConstraint(f"quantity <= {MAX_LINE_QUANTITY}", name="ck_cart_items_quantity_max"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    session_id = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class RecentlyViewed(Base):
    __tablename__ = "recently_viewed"
    __table_args__ = (
        UniqueConstraint("identity_key", "product_id", name="uq_recently_viewed_identity_product"),
        Index("ix_recently_viewed_identity_viewed_at", "identity_key", "viewed_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity_key = Column(String(255), nullable=False)
    user_id = Column(String(255), nullable=True)
    session_id = Column(String(255), nullable=True)
    product_id = Column(Integer, nullable=False)
    viewed_at = Column(DateTime, default=utcnow, nullable=False)


class Comparison(Base):
    """At most one active comparison set per identity; replaced wholesale on save."""
    __tablename__ = "comparisons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    identity_key = Column(String(255), nullable=False, unique=True)
    user_id = Column(String(255), nullable=True)
    session_id = Column(String(255), nullable=True)
    product_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_favorites_user_product"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Rating(Base):
    """Append-only; a user rating twice produces two rows."""
    __tablename__ = "ratings"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_range"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ProductEmbedding(Base):
    """Zero or one embedding per product; recompute overwrites in place."""
    __tablename__ = "product_embeddings"

    product_id = Column(Integer, primary_key=True, autoincrement=False)
    embedding = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class SEOMeta(Base):
    __tablename__ = "seo_metas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False, unique=True)
    meta_title = Column(Text, nullable=False)
    meta_description = Column(Text, nullable=False)
    generated_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ChatMessage(Base):
    """Append-only support chat log, keyed by identity."""
    __tablename__ = "chat_messages"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'assistant', 'system')", name="ck_chat_messages_role"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(255), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), nullable=False, unique=True)
    user_id = Column(String(255), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    shipping_address = Column(JSON, nullable=True)
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    shipping = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(String(32), nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")


class OrderItem(Base):
    """Line of a placed order; price is the snapshot taken at checkout."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    product_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
