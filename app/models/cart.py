# app/models/cart.py
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ProductType(str, Enum):
    """Closed set of purchasable product categories."""

    DIGITAL = "digital"
    PRINT_A5 = "printA5"
    PRINT_A4 = "printA4"
    PRINT_A3 = "printA3"
    PRINT_A2 = "printA2"
    PRINT_POLAROID_3 = "printPolaroid3"
    PRINT_POLAROID_6 = "printPolaroid6"
    SESSION_PACK = "sessionPack"

    @property
    def is_print(self) -> bool:
        return self in PRINT_TYPES


PRINT_TYPES: frozenset[ProductType] = frozenset(
    {
        ProductType.PRINT_A5,
        ProductType.PRINT_A4,
        ProductType.PRINT_A3,
        ProductType.PRINT_A2,
        ProductType.PRINT_POLAROID_3,
        ProductType.PRINT_POLAROID_6,
    }
)


class DeliveryOption(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


# photo_id used for the session pack when it is not tied to a gallery
SESSION_PACK_PHOTO_ID = "session-pack"


class CartItem(BaseModel):
    """
    One purchasable unit in a cart.

    unit_price and delivery_fee are computed once by the caller when the
    item is added and never recomputed afterwards (the model is frozen).
    """

    model_config = ConfigDict(frozen=True)

    photo_id: str = Field(min_length=1)
    product_type: ProductType
    unit_price: float = Field(ge=0, description="Frozen price, major currency units")
    preview_url: str | None = None
    display_name: str | None = None
    delivery_option: DeliveryOption | None = None
    delivery_fee: float = Field(default=0.0, ge=0)
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("delivery_option")
    @classmethod
    def delivery_only_for_prints(
        cls, v: DeliveryOption | None, info: ValidationInfo
    ) -> DeliveryOption | None:
        product_type = info.data.get("product_type")
        if v is not None and product_type is not None and not product_type.is_print:
            raise ValueError("delivery_option only applies to print products")
        return v

    @field_validator("delivery_fee")
    @classmethod
    def no_fee_without_print(cls, v: float, info: ValidationInfo) -> float:
        product_type = info.data.get("product_type")
        if v and product_type is not None and not product_type.is_print:
            raise ValueError("delivery_fee must be 0 for digital and session pack items")
        return v

    @property
    def line_total(self) -> float:
        return round(self.unit_price + self.delivery_fee, 2)


class AddResult(str, Enum):
    """Outcome of an add; rejections are policy signals, not errors."""

    ADDED = "added"
    DUPLICATE = "duplicate"
    PACK_ALREADY_IN_CART = "pack_already_in_cart"
