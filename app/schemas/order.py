# app/schemas/order.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    photo_id: str
    product_type: str
    unit_price: float
    delivery_option: str | None
    delivery_fee: float
    line_total: float


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    customer_email: str
    stripe_checkout_id: str
    status: str
    payment_status: str
    total_amount: float
    promo_code: str | None
    discount_amount: float
    created_at: datetime


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]
    subtotal: float


class DownloadLink(SQLModel):
    photo_id: str
    filename: str
    url: str
