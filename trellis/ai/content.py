"""
Generated product content: comparison narratives and SEO meta tags.

Comparisons are recomputed on every call. SEO meta is generated once per
product and cached in ``seo_metas``; a cached record is returned without
calling the provider.
"""
import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from trellis.ai.provider import AIProvider
from trellis.catalog import find_product, get_product
from trellis.config import get_config
from trellis.database import upsert_insert, utcnow
from trellis.errors import InvalidRequest, NotFound, ProviderError
from trellis.logger import get_logger
from trellis.models import Product, SEOMeta

logger = get_logger("ai.content")

COMPARE_FALLBACK = "Unable to compare products at this time."

COMPARE_SYSTEM_PROMPT = (
    "You are a product comparison expert. Compare products and summarize their key "
    "differences, pros/cons, and best use cases. Format your response in a clear, readable way."
)

SEO_SYSTEM_PROMPT = (
    "You are an SEO expert. Generate compelling meta title and description for e-commerce "
    "products. The meta title should be under {title_chars} characters, and the meta "
    "description should be under {description_chars} characters. Respond with JSON in this "
    "format: {{\"metaTitle\": string, \"metaDescription\": string}}"
)


#
# Comparison narrative
#

def _build_spec_sheet(products: List[Product]) -> str:
    """Plain-text block per product for the comparison prompt."""
    blocks = []
    for i, p in enumerate(products, 1):
        blocks.append(
            f"Product {i}: {p.name}\n"
            f"Price: ${float(p.price):,.2f}\n"
            f"Category: {p.category}\n"
            f"Description: {p.description}"
        )
    return "\n\n".join(blocks)


def compare_products(db: Session, provider: AIProvider, product_ids: List[int]) -> str:
    """
    Free-text comparison of 2-3 catalog products.

    Wrong number of ids -> InvalidRequest; any unknown id -> NotFound;
    provider failure -> fixed fallback text.
    """
    config = get_config()
    low, high = config.compare_min_products, config.comparison_max_products
    if not low <= len(product_ids) <= high:
        raise InvalidRequest(f"Please provide {low}-{high} product IDs to compare")

    products = [find_product(db, pid) for pid in product_ids]
    if any(p is None for p in products):
        raise NotFound("One or more products not found")

    messages = [
        {"role": "system", "content": COMPARE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": "Compare these products and help me understand which one might be best "
                       f"for different use cases:\n\n{_build_spec_sheet(products)}",
        },
    ]
    try:
        comparison = provider.complete(messages, max_tokens=config.compare_max_tokens)
    except ProviderError as e:
        logger.warning("content: method=compare_products product_ids=%s result=fallback error=%s", product_ids, e)
        return COMPARE_FALLBACK
    logger.info("content: method=compare_products product_ids=%s chars=%s", product_ids, len(comparison))
    return comparison


#
# SEO meta
#

def get_seo_meta(db: Session, product_id: int) -> Optional[SEOMeta]:
    return db.query(SEOMeta).filter(SEOMeta.product_id == product_id).first()


def _fallback_meta(product: Product, title_chars: int, description_chars: int) -> Dict[str, str]:
    return {
        "meta_title": product.name[:title_chars],
        "meta_description": product.description[:description_chars],
    }


def _parse_meta(raw: str) -> Dict[str, Any]:
    """Pull metaTitle/metaDescription out of the provider's JSON reply."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProviderError(f"SEO reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProviderError("SEO reply is not a JSON object")
    title = data.get("metaTitle") or data.get("meta_title")
    description = data.get("metaDescription") or data.get("meta_description")
    if not title or not description:
        raise ProviderError("SEO reply is missing metaTitle or metaDescription")
    return {"meta_title": str(title), "meta_description": str(description)}


def generate_seo_meta(db: Session, provider: AIProvider, product_id: int) -> SEOMeta:
    """
    Cached SEO meta for the product, generating and storing it on first use.

    A provider failure returns an unsaved fallback built from the product's
    own name and description; the next call tries the provider again.
    """
    config = get_config()
    product = get_product(db, product_id)

    existing = get_seo_meta(db, product_id)
    if existing is not None:
        logger.info("content: method=generate_seo_meta product_id=%s cache=hit", product_id)
        return existing

    title_chars, description_chars = config.seo_title_max_chars, config.seo_description_max_chars
    messages = [
        {"role": "system", "content": SEO_SYSTEM_PROMPT.format(title_chars=title_chars, description_chars=description_chars)},
        {
            "role": "user",
            "content": f"Generate SEO meta tags for this product:\nName: {product.name}\nDescription: {product.description}",
        },
    ]
    try:
        meta = _parse_meta(provider.complete(messages, json_mode=True))
    except ProviderError as e:
        logger.warning("content: method=generate_seo_meta product_id=%s result=fallback error=%s", product_id, e)
        return SEOMeta(product_id=product_id, generated_by="fallback",
                       **_fallback_meta(product, title_chars, description_chars))

    table = SEOMeta.__table__
    stmt = upsert_insert(db, SEOMeta).values(
        product_id=product_id,
        meta_title=meta["meta_title"][:title_chars],
        meta_description=meta["meta_description"][:description_chars],
        generated_by=getattr(provider, "name", "provider"),
        created_at=utcnow(),
    )
    db.execute(stmt.on_conflict_do_nothing(index_elements=[table.c.product_id]))
    db.commit()
    logger.info("content: method=generate_seo_meta product_id=%s cache=miss result=stored", product_id)
    return get_seo_meta(db, product_id)
