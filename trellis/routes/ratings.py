"""Product ratings and the derived average."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trellis import ratings
from trellis.database import get_db
from trellis.schemas import AverageRatingOut, PathId, RatingCreate, RatingOut

router = APIRouter(prefix="/api", tags=["ratings"])


@router.get("/products/{product_id}/ratings", response_model=List[RatingOut])
def list_ratings(product_id: PathId, db: Session = Depends(get_db)):
    return ratings.list_ratings(db, product_id)


@router.post("/products/{product_id}/ratings", response_model=RatingOut, status_code=201)
def add_rating(product_id: PathId, request: RatingCreate, db: Session = Depends(get_db)):
    return ratings.add_rating(db, product_id, request.user_name, request.rating, request.review)


@router.get("/products/{product_id}/average-rating", response_model=AverageRatingOut)
def average_rating(product_id: PathId, db: Session = Depends(get_db)):
    """0 when the product has no ratings; the product need not exist."""
    return AverageRatingOut(average_rating=ratings.average_rating(db, product_id))


@router.get("/ratings/average/{product_id}", response_model=AverageRatingOut)
def average_rating_alias(product_id: PathId, db: Session = Depends(get_db)):
    return AverageRatingOut(average_rating=ratings.average_rating(db, product_id))
