# app/schemas/cart.py
from datetime import datetime
from typing import Any

from pydantic import model_validator
from sqlmodel import SQLModel, Field

from app.models.cart import AddResult, DeliveryOption, ProductType


class AddToCartRequest(SQLModel):
    """
    Payload for adding to cart.

    The price is never sent by the client: it is computed server-side from
    the cart's current contents and frozen on the new item.
    """

    photo_id: str | None = None
    product_type: ProductType
    delivery_option: DeliveryOption | None = None

    @model_validator(mode="after")
    def check_photo_and_delivery(self) -> "AddToCartRequest":
        if self.product_type is ProductType.SESSION_PACK:
            if self.photo_id is not None:
                raise ValueError("photo_id must be omitted for the session pack")
        elif not self.photo_id:
            raise ValueError("photo_id is required for photo products")
        if self.delivery_option is not None and not self.product_type.is_print:
            raise ValueError("delivery_option only applies to print products")
        return self


class CartItemRead(SQLModel):
    """
    Read model for a single cart item, including line_total.
    """

    photo_id: str
    product_type: ProductType
    unit_price: float
    delivery_option: DeliveryOption | None = None
    delivery_fee: float
    preview_url: str | None = None
    display_name: str | None = None
    line_total: float
    added_at: datetime


class CategoryBreakdown(SQLModel):
    product_type: ProductType
    count: int
    total: float


class DynamicPricing(SQLModel):
    """
    Display-only projection over the whole cart.

    total_savings counts tier discounts only; what the session pack saves
    is reported in package_savings.
    """

    total: float
    subtotal: float
    total_savings: float
    package_savings: float
    categories: list[CategoryBreakdown] = Field(default_factory=list)


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    cart_id: str
    items: list[CartItemRead]
    item_count: int
    total_price: float
    has_session_pack: bool
    pricing: DynamicPricing


class AddToCartResponse(SQLModel):
    result: AddResult
    item: CartItemRead | None = None
    cart: CartSummary


class NextPriceRead(SQLModel):
    product_type: ProductType
    category_count: int
    unit_price: float
    delivery_fee: float
    formatted: str


class LegacyCartImport(SQLModel):
    """
    Items persisted by older storefront versions, in either legacy shape.
    """

    items: list[dict[str, Any]]


class LegacyImportResult(SQLModel):
    added: int
    rejected: int
    cart: CartSummary
