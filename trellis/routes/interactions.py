"""Recently viewed, comparison set and favorites for the calling identity."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trellis import interactions
from trellis.database import get_db
from trellis.identity import Identity, get_identity, require_identity, require_user
from trellis.schemas import (
    ComparisonOut,
    ComparisonRequest,
    FavoriteOut,
    FavoriteRequest,
    MessageResponse,
    PathId,
    RecentlyViewedOut,
    RecordViewRequest,
)

router = APIRouter(prefix="/api", tags=["interactions"])


@router.get("/recently-viewed", response_model=List[RecentlyViewedOut])
def list_recently_viewed(db: Session = Depends(get_db), identity: Identity = Depends(require_identity)):
    return interactions.list_recent(db, identity)


@router.post("/recently-viewed", response_model=RecentlyViewedOut, status_code=201)
def record_view(
    request: RecordViewRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
):
    return interactions.record_view(db, identity, request.product_id)


@router.get("/comparison", response_model=ComparisonOut, response_model_exclude_none=True)
def get_comparison(db: Session = Depends(get_db), identity: Identity = Depends(require_identity)):
    """The active comparison set, or ``{"productIds": []}`` when there is none."""
    comparison = interactions.get_comparison(db, identity)
    if comparison is None:
        return ComparisonOut()
    return comparison


@router.post("/comparison", response_model=ComparisonOut)
def set_comparison(
    request: ComparisonRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
):
    return interactions.set_comparison(db, identity, request.product_ids)


@router.get("/favorites", response_model=List[FavoriteOut])
def list_favorites(db: Session = Depends(get_db), identity: Identity = Depends(get_identity)):
    return interactions.list_favorites(db, identity)


@router.post("/favorites", response_model=FavoriteOut, status_code=201)
def add_favorite(
    request: FavoriteRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_user),
):
    return interactions.add_favorite(db, identity, request.product_id)


@router.delete("/favorites/{product_id}", response_model=MessageResponse)
def remove_favorite(product_id: PathId, db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    interactions.remove_favorite(db, identity, product_id)
    return MessageResponse(message="Removed from favorites")
