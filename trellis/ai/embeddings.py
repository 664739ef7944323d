"""
Product embedding cache (``product_embeddings`` side table).

One row per product, overwritten in place when recomputed. Catalog edits to
a product's name/description delete its row, so the next backfill recomputes
it.
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from trellis.ai.provider import AIProvider
from trellis.database import upsert_insert, utcnow
from trellis.logger import get_logger
from trellis.models import Product, ProductEmbedding

logger = get_logger("ai.embeddings")


def product_text(product: Product) -> str:
    """Text embedded for a product."""
    return f"{product.name} {product.description}".strip()


def get_embedding(db: Session, product_id: int) -> Optional[ProductEmbedding]:
    return db.get(ProductEmbedding, product_id)


def all_embeddings(db: Session) -> List[Tuple[int, List[float]]]:
    return [(row.product_id, row.embedding) for row in db.query(ProductEmbedding).all()]


def save_embedding(db: Session, product_id: int, embedding: List[float]) -> None:
    """Insert or overwrite the product's embedding."""
    table = ProductEmbedding.__table__
    stmt = upsert_insert(db, ProductEmbedding).values(
        product_id=product_id,
        embedding=[float(x) for x in embedding],
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.product_id],
        set_={"embedding": stmt.excluded.embedding, "created_at": stmt.excluded.created_at},
    )
    db.execute(stmt)
    db.commit()


def ensure_embedding(db: Session, provider: AIProvider, product: Product) -> List[float]:
    """Cached embedding for the product, computing and storing it when missing."""
    cached = get_embedding(db, product.id)
    if cached is not None:
        return cached.embedding
    vector = provider.embed(product_text(product))
    save_embedding(db, product.id, vector)
    logger.info("embeddings: method=ensure_embedding product_id=%s dim=%s", product.id, len(vector))
    return vector


def products_missing_embeddings(db: Session) -> List[Product]:
    return (
        db.query(Product)
        .outerjoin(ProductEmbedding, ProductEmbedding.product_id == Product.id)
        .filter(ProductEmbedding.product_id.is_(None))
        .order_by(Product.id)
        .all()
    )


def backfill_embeddings(db: Session, provider: AIProvider) -> int:
    """
    Embed every product that has no cached embedding.

    Runs synchronously; the first request after a catalog import pays for it.
    Embeddings computed before a provider failure are kept; the failure is
    re-raised as ProviderError.
    """
    missing = products_missing_embeddings(db)
    if not missing:
        return 0
    logger.info("embeddings: method=backfill missing=%s", len(missing))
    for product in missing:
        save_embedding(db, product.id, provider.embed(product_text(product)))
    logger.info("embeddings: method=backfill result=success embedded=%s", len(missing))
    return len(missing)
