"""
Product catalog, categories, product specs and the contact form.

The catalog is read by every other component. Mutations are admin-only at
the HTTP layer. Editing a product's text invalidates the AI side tables
derived from it (embedding, SEO meta) so they are regenerated on next use.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from trellis.errors import InvalidRequest, NotFound
from trellis.logger import get_logger
from trellis.models import Category, ContactSubmission, Product, ProductEmbedding, ProductSpec, SEOMeta

logger = get_logger("catalog")

# Fields whose change makes the cached embedding / SEO meta stale
_TEXT_FIELDS = {"name", "description"}
_NULLABLE_FIELDS = {"original_price", "tags"}


def list_products(db: Session, category: Optional[str] = None) -> List[Product]:
    query = db.query(Product)
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def list_featured(db: Session) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.featured.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


def find_product(db: Session, product_id: int) -> Optional[Product]:
    """Product or None; callers that tolerate a miss use this."""
    return db.get(Product, product_id)


def get_product(db: Session, product_id: int) -> Product:
    product = find_product(db, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def create_product(db: Session, data: Dict[str, Any]) -> Product:
    data = dict(data)
    data["tags"] = data.get("tags") or []
    product = Product(**data)
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.info("catalog: method=create_product product_id=%s name=%s", product.id, product.name)
    return product


def update_product(db: Session, product_id: int, changes: Dict[str, Any]) -> Product:
    """Apply a partial update. Only keys present in ``changes`` are written."""
    product = get_product(db, product_id)
    for key, value in changes.items():
        if not hasattr(Product, key) or key in ("id", "created_at"):
            raise InvalidRequest(f"Unknown product field: {key}")
        if value is None and key not in _NULLABLE_FIELDS:
            raise InvalidRequest(f"Product field '{key}' cannot be null")
        setattr(product, key, value)

    if _TEXT_FIELDS & set(changes):
        _drop_derived(db, product_id)
        logger.info("catalog: method=update_product product_id=%s derived=invalidated", product_id)

    db.commit()
    db.refresh(product)
    logger.info("catalog: method=update_product product_id=%s fields=%s", product_id, sorted(changes))
    return product


def delete_product(db: Session, product_id: int) -> None:
    """
    Delete a product and its derived rows. Cart line items referencing it stay
    and are excluded from cart totals.
    """
    product = get_product(db, product_id)
    _drop_derived(db, product_id)
    db.query(ProductSpec).filter(ProductSpec.product_id == product_id).delete(synchronize_session=False)
    db.delete(product)
    db.commit()
    logger.info("catalog: method=delete_product product_id=%s", product_id)


def _drop_derived(db: Session, product_id: int) -> None:
    db.query(ProductEmbedding).filter(ProductEmbedding.product_id == product_id).delete(synchronize_session=False)
    db.query(SEOMeta).filter(SEOMeta.product_id == product_id).delete(synchronize_session=False)


#
# Categories
#

def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.id).all()


def create_category(db: Session, name: str, description: Optional[str] = None) -> Category:
    if db.query(Category).filter(Category.name == name).first():
        raise InvalidRequest(f"Category '{name}' already exists")
    category = Category(name=name, description=description)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


#
# Product specs
#

def list_specs(db: Session, product_id: int) -> List[ProductSpec]:
    return db.query(ProductSpec).filter(ProductSpec.product_id == product_id).order_by(ProductSpec.id).all()


def add_spec(db: Session, product_id: int, spec_name: str, spec_value: str) -> ProductSpec:
    get_product(db, product_id)
    spec = ProductSpec(product_id=product_id, spec_name=spec_name, spec_value=spec_value)
    db.add(spec)
    db.commit()
    db.refresh(spec)
    return spec


#
# Contact form
#

def submit_contact(db: Session, name: str, email: str, message: str) -> ContactSubmission:
    submission = ContactSubmission(name=name, email=email, message=message)
    db.add(submission)
    db.commit()
    db.refresh(submission)
    logger.info("catalog: method=submit_contact submission_id=%s", submission.id)
    return submission
