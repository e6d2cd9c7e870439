# app/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order, written once payment succeeded (or a free promo applied).

    Columns:
      - id, customer_email, stripe_checkout_id, status, payment_status,
        total_amount, promo_code, discount_amount, created_at
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    customer_email: str = Field(
        index=True,
        description="Email the downloads are sent to",
    )

    stripe_checkout_id: str = Field(
        unique=True,
        index=True,
        description="Stripe Checkout Session id, or free_<hex> for free orders",
    )

    # paid | completed
    status: str = Field(
        default="paid",
        index=True,
        description="Order status lifecycle",
    )

    payment_status: str = Field(
        default="paid",
        description="Payment status reported by Stripe",
    )

    # Amount actually charged, after promo
    total_amount: float = Field(
        ge=0,
        description="Final amount charged for this order",
    )

    promo_code: str | None = Field(
        default=None,
        description="Promo code applied at checkout",
    )

    discount_amount: float = Field(
        default=0.0,
        ge=0,
        description="Discount granted by the promo code",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order, copied from the frozen cart item.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    # Photo id, or the session pack sentinel / gallery id
    photo_id: str = Field(
        index=True,
    )

    product_type: str = Field(
        description="ProductType value",
    )

    unit_price: float = Field(
        ge=0,
        description="Unit price frozen when the item was added to the cart",
    )

    delivery_option: str | None = Field(
        default=None,
        description="pickup | delivery, prints only",
    )

    delivery_fee: float = Field(
        default=0.0,
        ge=0,
    )
