"""
Pydantic v2 schemas for strict request/response validation.

All request schemas use extra="forbid" to reject unknown fields.
Field names are snake_case in Python and camelCase on the wire
(``product_id`` <-> ``productId``); either spelling is accepted on input.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from fastapi import Path
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from trellis.config import MAX_LINE_QUANTITY
from trellis.database import MAX_ROW_ID

# Positive id that fits the Integer columns
RowId = Annotated[int, Field(ge=1, le=MAX_ROW_ID)]
PathId = Annotated[int, Path(ge=1, le=MAX_ROW_ID)]


class ApiModel(BaseModel):
    """Response base: reads ORM rows, emits camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiRequest(BaseModel):
    """Request base: camelCase or snake_case input, unknown fields rejected."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


#
# Catalog
#

class ProductOut(ApiModel):
    id: int
    name: str
    description: str
    price: float
    original_price: Optional[float] = None
    category: str
    image: str
    tags: List[str] = Field(default_factory=list)
    featured: bool = False
    in_stock: bool = True
    created_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value):
        return value or []


class ProductCreate(ApiRequest):
    name: str = Field(..., min_length=1)
    description: str
    price: float = Field(..., ge=0, description="Current price in dollars")
    original_price: Optional[float] = Field(None, ge=0, description="Pre-discount price, for display")
    category: str = Field(..., min_length=1)
    image: str
    tags: Optional[List[str]] = None
    featured: bool = False
    in_stock: bool = True


class ProductUpdate(ApiRequest):
    """Partial update: only fields present in the request are written."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    tags: Optional[List[str]] = None
    featured: Optional[bool] = None
    in_stock: Optional[bool] = None


class CategoryOut(ApiModel):
    id: int
    name: str
    description: Optional[str] = None


class CategoryCreate(ApiRequest):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None


class ProductSpecOut(ApiModel):
    id: int
    product_id: int
    spec_name: str
    spec_value: str
    created_at: Optional[datetime] = None


class ProductSpecCreate(ApiRequest):
    product_id: RowId
    spec_name: str = Field(..., min_length=1)
    spec_value: str


class ContactCreate(ApiRequest):
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)


class ContactOut(ApiModel):
    id: int
    name: str
    email: str
    message: str
    created_at: Optional[datetime] = None


#
# Cart
#

class CartItemOut(ApiModel):
    id: int
    product_id: int
    quantity: int
    session_id: str
    created_at: Optional[datetime] = None


class AddToCartRequest(ApiRequest):
    """
    Add a product to the cart owned by ``identity`` (user id or session id).
    Adding a product already in the cart increments its quantity.
    """
    product_id: RowId
    quantity: int = Field(1, ge=1, le=MAX_LINE_QUANTITY, description="Quantity to add")
    identity: str = Field(..., min_length=1, description="User id or anonymous session id")


class UpdateCartItemRequest(ApiRequest):
    quantity: int = Field(..., ge=1, le=MAX_LINE_QUANTITY, description="New quantity; use DELETE to remove the line item")


class CartTotalsLine(ApiModel):
    line_item_id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    line_total: float


class CartTotals(ApiModel):
    items: List[CartTotalsLine]
    item_count: int
    subtotal: float
    tax: float
    shipping: float
    total: float


class SuccessResponse(ApiModel):
    success: bool = True


class MessageResponse(ApiModel):
    message: str


#
# Interaction sets
#

class RecordViewRequest(ApiRequest):
    product_id: RowId


class RecentlyViewedOut(ApiModel):
    id: int
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    product_id: int
    viewed_at: datetime


class ComparisonRequest(ApiRequest):
    product_ids: List[RowId]


class ComparisonOut(ApiModel):
    id: Optional[int] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    product_ids: List[int] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class FavoriteRequest(ApiRequest):
    product_id: RowId


class FavoriteOut(ApiModel):
    id: int
    user_id: str
    product_id: int
    created_at: Optional[datetime] = None


#
# Ratings
#

class RatingCreate(ApiRequest):
    user_name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5, description="Star rating, 1 to 5")
    review: Optional[str] = None


class RatingOut(ApiModel):
    id: int
    product_id: int
    user_name: str
    rating: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None


class AverageRatingOut(ApiModel):
    average_rating: float


#
# Orders
#

class CheckoutRequest(ApiRequest):
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    shipping_address: Optional[Dict[str, Any]] = None


class OrderItemOut(ApiModel):
    product_id: int
    product_name: str
    quantity: int
    price: float


class OrderOut(ApiModel):
    id: int
    order_number: str
    customer_name: str
    customer_email: str
    shipping_address: Optional[Dict[str, Any]] = None
    subtotal: float
    tax: float
    shipping: float
    total: float
    status: str
    created_at: Optional[datetime] = None
    items: List[OrderItemOut] = Field(default_factory=list)


#
# AI layer
#

class CompareRequest(ApiRequest):
    product_ids: List[RowId]


class CompareResponse(ApiModel):
    comparison: str


class SupportRequest(ApiRequest):
    message: str = Field(..., min_length=1)


class SupportResponse(ApiModel):
    response: str


class ChatMessageOut(ApiModel):
    id: int
    session_id: str
    role: str
    content: str
    created_at: Optional[datetime] = None


class SEOMetaOut(ApiModel):
    id: Optional[int] = None
    product_id: int
    meta_title: str
    meta_description: str
    generated_by: Optional[str] = None
    created_at: Optional[datetime] = None
