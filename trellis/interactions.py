"""
Per-identity interaction sets: recently viewed, comparison, favorites.

Each set has its own replace/evict policy:
- recently viewed: one row per (identity, product); re-viewing refreshes
  viewed_at; reads are bounded to the most recent N
- comparison: one row per identity holding at most N product ids; saving
  replaces the row (new id)
- favorites: one row per (user, product); authenticated users only; adding
  twice is a no-op
"""
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trellis.config import get_config
from trellis.catalog import get_product
from trellis.database import upsert_insert, utcnow
from trellis.errors import InvalidRequest, NotFound
from trellis.identity import Identity, authenticated_user_id, identity_key
from trellis.logger import get_logger
from trellis.models import Comparison, Favorite, RecentlyViewed

logger = get_logger("interactions")


#
# Recently viewed
#

def record_view(db: Session, identity: Identity, product_id: int) -> RecentlyViewed:
    """Insert a fresh view, or move an existing (identity, product) entry to now."""
    key = identity_key(identity)
    if product_id < 1:
        raise InvalidRequest("Invalid product ID")
    now = utcnow()

    table = RecentlyViewed.__table__
    stmt = upsert_insert(db, RecentlyViewed).values(
        identity_key=key,
        user_id=identity.user_id,
        session_id=identity.session_id,
        product_id=product_id,
        viewed_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.identity_key, table.c.product_id],
        set_={"viewed_at": stmt.excluded.viewed_at, "session_id": stmt.excluded.session_id},
    )
    db.execute(stmt)
    db.commit()
    logger.info("interactions: method=record_view identity=%s product_id=%s", key, product_id)

    return (
        db.query(RecentlyViewed)
        .filter(RecentlyViewed.identity_key == key, RecentlyViewed.product_id == product_id)
        .one()
    )


def list_recent(db: Session, identity: Identity, limit: Optional[int] = None) -> List[RecentlyViewed]:
    """Most recent views first, truncated to ``limit`` (configured default 10)."""
    key = identity_key(identity)
    limit = limit or get_config().recently_viewed_limit
    return (
        db.query(RecentlyViewed)
        .filter(RecentlyViewed.identity_key == key)
        .order_by(RecentlyViewed.viewed_at.desc(), RecentlyViewed.id.desc())
        .limit(limit)
        .all()
    )


#
# Comparison
#

def get_comparison(db: Session, identity: Identity) -> Optional[Comparison]:
    key = identity_key(identity)
    return db.query(Comparison).filter(Comparison.identity_key == key).first()


def set_comparison(db: Session, identity: Identity, product_ids: List[int]) -> Comparison:
    """
    Replace the identity's comparison set.

    Delete and insert run in one transaction; if a concurrent save wins the
    uniqueness race the replace is retried once.
    """
    key = identity_key(identity)
    max_products = get_config().comparison_max_products
    if len(product_ids) > max_products:
        raise InvalidRequest(f"Invalid product IDs (max {max_products} allowed)")
    if any(pid < 1 for pid in product_ids):
        raise InvalidRequest("Invalid product ID")

    for attempt in range(2):
        try:
            db.query(Comparison).filter(Comparison.identity_key == key).delete(synchronize_session=False)
            comparison = Comparison(
                identity_key=key,
                user_id=identity.user_id,
                session_id=identity.session_id,
                product_ids=list(product_ids),
                created_at=utcnow(),
            )
            db.add(comparison)
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.warning("interactions: method=set_comparison identity=%s result=conflict retrying=true", key)
            continue
        db.refresh(comparison)
        logger.info("interactions: method=set_comparison identity=%s product_ids=%s", key, product_ids)
        return comparison


#
# Favorites
#

def list_favorites(db: Session, identity: Identity) -> List[Favorite]:
    user_id = authenticated_user_id(identity)
    return (
        db.query(Favorite)
        .filter(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )


def add_favorite(db: Session, identity: Identity, product_id: int) -> Favorite:
    """Idempotent: favoriting an already-favorited product returns the existing row."""
    user_id = authenticated_user_id(identity)
    if product_id < 1:
        raise InvalidRequest("Invalid product ID")
    get_product(db, product_id)

    table = Favorite.__table__
    stmt = upsert_insert(db, Favorite).values(
        user_id=user_id,
        product_id=product_id,
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_nothing(index_elements=[table.c.user_id, table.c.product_id])
    db.execute(stmt)
    db.commit()
    logger.info("interactions: method=add_favorite user_id=%s product_id=%s", user_id, product_id)

    return (
        db.query(Favorite)
        .filter(Favorite.user_id == user_id, Favorite.product_id == product_id)
        .one()
    )


def remove_favorite(db: Session, identity: Identity, product_id: int) -> None:
    """Remove a favorite; a product that was not favorited is reported as NotFound."""
    user_id = authenticated_user_id(identity)
    removed = (
        db.query(Favorite)
        .filter(Favorite.user_id == user_id, Favorite.product_id == product_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not removed:
        raise NotFound("Favorite not found")
    logger.info("interactions: method=remove_favorite user_id=%s product_id=%s", user_id, product_id)
