"""
Rating aggregator: append-only reviews per product, averaged on read.

Submission is open to anonymous callers (free-text user name). The average
is 0 for a product without ratings; since ratings are 1..5 a real average
is never 0, so callers read 0 as "no data".
"""
import math
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from trellis.errors import InvalidRequest
from trellis.logger import get_logger
from trellis.models import Rating

logger = get_logger("ratings")

MIN_RATING = 1
MAX_RATING = 5


def add_rating(
    db: Session,
    product_id: int,
    user_name: str,
    rating: int,
    review: Optional[str] = None,
) -> Rating:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidRequest(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    if not user_name or not user_name.strip():
        raise InvalidRequest("userName is required")

    row = Rating(product_id=product_id, user_name=user_name.strip(), rating=rating, review=review)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("ratings: method=add_rating product_id=%s rating=%s rating_id=%s", product_id, rating, row.id)
    return row


def list_ratings(db: Session, product_id: int) -> List[Rating]:
    """All ratings of the product, newest first."""
    return (
        db.query(Rating)
        .filter(Rating.product_id == product_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .all()
    )


def round_one_decimal(value: float) -> float:
    """Round half up to one decimal place (4.65 -> 4.7, not banker's rounding)."""
    return math.floor(value * 10 + 0.5) / 10


def average_rating(db: Session, product_id: int) -> float:
    """
    Mean rating rounded to one decimal, or 0 when the product has no ratings.
    Does not check that the product exists.
    """
    mean = db.query(func.avg(Rating.rating)).filter(Rating.product_id == product_id).scalar()
    if mean is None:
        return 0
    return round_one_decimal(float(mean))
