"""
Catalog endpoints: products, categories, product specs and the contact form.

Reads are public. Writes require the ``X-Admin-API-Key`` header.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from trellis import catalog
from trellis.database import get_db
from trellis.identity import require_admin
from trellis.schemas import (
    CategoryCreate,
    CategoryOut,
    ContactCreate,
    ContactOut,
    PathId,
    ProductCreate,
    ProductOut,
    ProductSpecCreate,
    ProductSpecOut,
    ProductUpdate,
    SuccessResponse,
)

router = APIRouter(prefix="/api", tags=["catalog"])


# ============================================================================
# Products
# ============================================================================

@router.get("/products", response_model=List[ProductOut])
def list_products(category: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """All products, newest first, optionally filtered by category."""
    return catalog.list_products(db, category=category)


@router.get("/products/featured", response_model=List[ProductOut])
def list_featured(db: Session = Depends(get_db)):
    return catalog.list_featured(db)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: PathId, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)


@router.post("/products", response_model=ProductOut, status_code=201, dependencies=[Depends(require_admin)])
def create_product(request: ProductCreate, db: Session = Depends(get_db)):
    return catalog.create_product(db, request.model_dump())


@router.put("/products/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def update_product(product_id: PathId, request: ProductUpdate, db: Session = Depends(get_db)):
    """Partial update; only fields sent in the body are changed."""
    return catalog.update_product(db, product_id, request.model_dump(exclude_unset=True))


@router.delete("/products/{product_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_product(product_id: PathId, db: Session = Depends(get_db)):
    catalog.delete_product(db, product_id)
    return SuccessResponse()


# ============================================================================
# Categories
# ============================================================================

@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return catalog.list_categories(db)


@router.post("/categories", response_model=CategoryOut, status_code=201, dependencies=[Depends(require_admin)])
def create_category(request: CategoryCreate, db: Session = Depends(get_db)):
    return catalog.create_category(db, request.name, request.description)


# ============================================================================
# Product specs
# ============================================================================

@router.get("/product-specs/{product_id}", response_model=List[ProductSpecOut])
def list_specs(product_id: PathId, db: Session = Depends(get_db)):
    return catalog.list_specs(db, product_id)


@router.post("/product-specs", response_model=ProductSpecOut, status_code=201, dependencies=[Depends(require_admin)])
def add_spec(request: ProductSpecCreate, db: Session = Depends(get_db)):
    return catalog.add_spec(db, request.product_id, request.spec_name, request.spec_value)


# ============================================================================
# Contact form
# ============================================================================

@router.post("/contact", response_model=ContactOut, status_code=201)
def submit_contact(request: ContactCreate, db: Session = Depends(get_db)):
    return catalog.submit_contact(db, request.name, request.email, request.message)
