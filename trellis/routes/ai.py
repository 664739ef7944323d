"""
AI-assisted endpoints: recommendations, semantic search, comparison
narrative, support chat and SEO meta.

Provider failures are absorbed by the services below; these routes only
surface validation and not-found errors.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from trellis.ai import content, recommendations, support
from trellis.ai.provider import AIProvider, get_ai_provider
from trellis.database import get_db
from trellis.identity import Identity, require_identity
from trellis.schemas import (
    ChatMessageOut,
    CompareRequest,
    CompareResponse,
    PathId,
    ProductOut,
    SEOMetaOut,
    SupportRequest,
    SupportResponse,
)

router = APIRouter(prefix="/api", tags=["ai"])


@router.get("/recommendations/{product_id}", response_model=List[ProductOut])
def get_recommendations(
    product_id: PathId,
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
):
    return recommendations.recommend(db, provider, product_id)


@router.get("/search", response_model=List[ProductOut])
def search(
    query: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
):
    """Semantic product search over cached embeddings."""
    return recommendations.semantic_search(db, provider, query)


@router.post("/compare", response_model=CompareResponse)
def compare(
    request: CompareRequest,
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
):
    return CompareResponse(comparison=content.compare_products(db, provider, request.product_ids))


@router.post("/support", response_model=SupportResponse)
def support_chat(
    request: SupportRequest,
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
    identity: Identity = Depends(require_identity),
):
    return SupportResponse(response=support.chat(db, provider, identity, request.message))


@router.get("/support/history", response_model=List[ChatMessageOut])
def support_history(db: Session = Depends(get_db), identity: Identity = Depends(require_identity)):
    return support.history(db, identity)


@router.get("/seo/{product_id}", response_model=Optional[SEOMetaOut])
def get_seo_meta(product_id: PathId, db: Session = Depends(get_db)):
    """Cached meta, or null when none has been generated yet."""
    return content.get_seo_meta(db, product_id)


@router.post("/seo/generate/{product_id}", response_model=SEOMetaOut)
def generate_seo_meta(
    product_id: PathId,
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
):
    """Cached meta when present; otherwise generated now (fallback text on provider failure)."""
    return content.generate_seo_meta(db, provider, product_id)
