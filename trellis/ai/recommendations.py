"""
Embedding-based recommendations and semantic search.

Both are read-enhancing features: a provider failure degrades them to an
empty result, it never fails the request. Products without a cached
embedding are backfilled before ranking.
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from trellis.ai.embeddings import all_embeddings, backfill_embeddings, ensure_embedding
from trellis.ai.provider import AIProvider
from trellis.ai.similarity import rank_by_similarity
from trellis.catalog import get_product
from trellis.config import get_config
from trellis.errors import InvalidRequest, ProviderError
from trellis.logger import get_logger
from trellis.models import Product

logger = get_logger("ai.recommendations")


def _backfill_quietly(db: Session, provider: AIProvider, caller: str) -> None:
    """Fill embedding gaps; on provider failure rank with whatever is cached."""
    try:
        backfill_embeddings(db, provider)
    except ProviderError as e:
        logger.warning("recommendations: method=%s backfill=failed coverage=partial error=%s", caller, e)


def _resolve_products(db: Session, ranked: List[Tuple[int, float]]) -> List[Product]:
    """Load ranked product ids, keeping rank order and dropping ids that no longer resolve."""
    if not ranked:
        return []
    ids = [product_id for product_id, _ in ranked]
    by_id = {p.id: p for p in db.query(Product).filter(Product.id.in_(ids)).all()}
    return [by_id[product_id] for product_id in ids if product_id in by_id]


def recommend(db: Session, provider: AIProvider, product_id: int, limit: Optional[int] = None) -> List[Product]:
    """
    Products most similar to ``product_id`` (top 5 by default), excluding itself.
    Unknown product -> NotFound; provider failure -> [].
    """
    limit = limit or get_config().recommendation_limit
    product = get_product(db, product_id)

    try:
        target = ensure_embedding(db, provider, product)
    except ProviderError as e:
        logger.warning("recommendations: method=recommend product_id=%s result=degraded error=%s", product_id, e)
        return []
    _backfill_quietly(db, provider, "recommend")

    candidates = [(pid, emb) for pid, emb in all_embeddings(db) if pid != product_id]
    ranked = rank_by_similarity(target, candidates, limit=limit)
    logger.info("recommendations: method=recommend product_id=%s candidates=%s returned=%s",
                product_id, len(candidates), len(ranked))
    return _resolve_products(db, ranked)


def semantic_search(db: Session, provider: AIProvider, query: str, threshold: Optional[float] = None) -> List[Product]:
    """
    Products whose embedding is at least ``threshold`` (0.3) similar to the
    query, most similar first. Empty query -> InvalidRequest; provider
    failure -> [].
    """
    query = (query or "").strip()
    if not query:
        raise InvalidRequest("Search query required")
    if threshold is None:
        threshold = get_config().search_similarity_threshold

    _backfill_quietly(db, provider, "semantic_search")
    try:
        query_vector = provider.embed(query)
    except ProviderError as e:
        logger.warning("recommendations: method=semantic_search result=degraded error=%s", e)
        return []

    ranked = rank_by_similarity(query_vector, all_embeddings(db), threshold=threshold)
    logger.info("recommendations: method=semantic_search query=%r matches=%s", query, len(ranked))
    return _resolve_products(db, ranked)
