# app/schemas/checkout.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel


class PromoValidationRequest(SQLModel):
    """
    Payload for checking a promo code against a pre-discount total.
    """

    model_config = ConfigDict(extra="forbid")

    code: str
    total_amount: float


class PromoValidation(SQLModel):
    valid: bool
    is_free: bool = False
    discount_percent: int = 0
    discount_amount: float = 0.0
    final_amount: float = 0.0
    description: str | None = None
    error: str | None = None


class CheckoutRequest(SQLModel):
    """
    Payload for starting checkout of the current cart.

    Prices are not part of the payload: line items are built from the
    prices frozen in the cart.
    """

    model_config = ConfigDict(extra="forbid")

    customer_email: str
    promo_code: str | None = None
    success_url: str | None = None
    cancel_url: str | None = None

    @field_validator("customer_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("invalid email address")
        return v

    @field_validator("promo_code")
    @classmethod
    def normalize_promo(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class CheckoutSessionRead(SQLModel):
    session_id: str
    url: str | None
    is_free: bool = False
    order_id: str | None = None
