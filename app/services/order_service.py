# app/services/order_service.py
import logging
import smtplib
import uuid
from typing import Any

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.config import get_settings
from app.core.email_client import send_order_confirmation
from app.core.storage_utils import create_signed_url, extract_path_from_public_url
from app.models.cart import ProductType
from app.models.order import Order, OrderItem
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.photo_repo import PhotoRepository
from app.schemas.checkout import PromoValidation
from app.schemas.order import DownloadLink, OrderItemRead, OrderWithItemsRead
from app.services.cart import CartSnapshot
from app.services.pricing_service import format_price

logger = logging.getLogger(__name__)

PAID_STATUSES = {"paid", "completed"}


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Turn the checkout snapshot of a paid (or free) cart into Order +
        OrderItem rows, replaying the prices frozen in the cart
      - Discard the cart and its snapshot once the order exists
      - Fulfillment: signed download links for digital photos + email
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        photo_repo: PhotoRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.photo_repo = photo_repo

    # -------- Order creation --------

    def _create_order_from_snapshot(
        self,
        session: Session,
        snapshot: CartSnapshot,
        order: Order,
    ) -> OrderWithItemsRead:
        order = self.order_repo.create_order(session, order)

        items = [
            OrderItem(
                order_id=order.id,
                photo_id=ci.photo_id,
                product_type=ci.product_type.value,
                unit_price=ci.unit_price,
                delivery_option=ci.delivery_option.value if ci.delivery_option else None,
                delivery_fee=ci.delivery_fee,
            )
            for ci in snapshot.items
        ]
        items = self.order_repo.create_items(session, items)

        session.commit()
        session.refresh(order)

        self.cart_repo.delete(snapshot.cart_id)
        logger.info(
            f"Order {order.id} created from cart {snapshot.cart_id}: "
            f"{len(items)} items, {order.total_amount:.2f} charged"
        )

        self._fulfill(session, order, items)
        return self._build_order_with_items_dto(order, items)

    def record_paid_order(
        self,
        session: Session,
        checkout_session: dict[str, Any],
    ) -> OrderWithItemsRead | None:
        """
        Persist the order for a completed Stripe Checkout Session.

        Items come from the snapshot taken when the session was created,
        never from the live cart. Idempotent: a second delivery of the same
        webhook returns the existing order. Returns None if the snapshot is
        gone and no order was recorded for it (nothing left to replay).
        """
        checkout_id = checkout_session["id"]

        existing = self.order_repo.get_by_checkout_id(session, checkout_id)
        if existing is not None:
            logger.info(f"Checkout {checkout_id} already recorded as order {existing.id}")
            items = self.order_repo.list_items_for_order(session, existing.id)
            return self._build_order_with_items_dto(existing, items)

        snapshot = self.cart_repo.get_checkout(checkout_id)
        if snapshot is None:
            logger.error(f"Checkout {checkout_id} completed but its cart snapshot is no longer available")
            return None

        details = checkout_session.get("customer_details") or {}
        email = details.get("email") or checkout_session.get("customer_email") or ""
        metadata = checkout_session.get("metadata") or {}

        cart_total = snapshot.get_total_price()
        amount_total = checkout_session.get("amount_total")
        if amount_total is None:
            total_amount = cart_total
        else:
            total_amount = round(amount_total / 100, 2)

        order = Order(
            customer_email=email,
            stripe_checkout_id=checkout_id,
            status="paid",
            payment_status=checkout_session.get("payment_status") or "paid",
            total_amount=total_amount,
            promo_code=metadata.get("promo_code") or None,
            discount_amount=round(max(cart_total - total_amount, 0.0), 2),
        )
        result = self._create_order_from_snapshot(session, snapshot, order)
        self.cart_repo.discard_checkout(checkout_id)
        return result

    def record_free_order(
        self,
        session: Session,
        snapshot: CartSnapshot,
        customer_email: str,
        promo_code: str,
        promo: PromoValidation,
    ) -> OrderWithItemsRead:
        """
        Persist an order fully covered by a promo code; no payment involved.
        """
        order = Order(
            customer_email=customer_email,
            stripe_checkout_id=f"free_{uuid.uuid4().hex}",
            status="completed",
            payment_status="paid",
            total_amount=0.0,
            promo_code=promo_code,
            discount_amount=promo.discount_amount,
        )
        return self._create_order_from_snapshot(session, snapshot, order)

    # -------- Fulfillment --------

    def build_download_links(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[DownloadLink]:
        """
        Signed URLs for every digital photo of an order.
        """
        digital_ids = [
            it.photo_id for it in items if it.product_type == ProductType.DIGITAL.value
        ]
        photos = self.photo_repo.get_many(session, digital_ids)
        bucket = get_settings().STORAGE_BUCKET

        links: list[DownloadLink] = []
        for photo_id in digital_ids:
            photo = photos.get(photo_id)
            if photo is None:
                logger.warning(f"Photo {photo_id} vanished before fulfillment")
                continue
            path = extract_path_from_public_url(photo.original_path, bucket) or photo.original_path
            links.append(
                DownloadLink(
                    photo_id=photo_id,
                    filename=photo.filename,
                    url=create_signed_url(path),
                )
            )
        return links

    def _fulfill(self, session: Session, order: Order, items: list[OrderItem]) -> None:
        """
        Email download links. The order is already committed: delivery
        problems are logged, links can be regenerated from the order page.
        """
        try:
            links = self.build_download_links(session, items)
            send_order_confirmation(
                to_email=order.customer_email,
                order_id=str(order.id),
                total_amount=format_price(order.total_amount),
                downloads=[(link.filename, link.url) for link in links],
            )
        except (RuntimeError, smtplib.SMTPException, OSError):
            logger.exception(f"Fulfillment email for order {order.id} failed")

    # -------- Reads --------

    def get_order(self, session: Session, order_id: uuid.UUID) -> OrderWithItemsRead:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    def get_downloads(self, session: Session, order_id: uuid.UUID) -> list[DownloadLink]:
        """
        Fresh download links for a paid order.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        if order.status not in PAID_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Payment not completed",
            )
        items = self.order_repo.list_items_for_order(session, order.id)
        return self.build_download_links(session, items)

    # -------- Helper DTO builder --------

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        item_dtos: list[OrderItemRead] = []
        subtotal = 0.0

        for it in items:
            line_total = round(it.unit_price + it.delivery_fee, 2)
            subtotal += line_total
            item_dtos.append(
                OrderItemRead(
                    id=it.id,
                    order_id=it.order_id,
                    photo_id=it.photo_id,
                    product_type=it.product_type,
                    unit_price=it.unit_price,
                    delivery_option=it.delivery_option,
                    delivery_fee=it.delivery_fee,
                    line_total=line_total,
                )
            )

        return OrderWithItemsRead(
            id=order.id,
            customer_email=order.customer_email,
            stripe_checkout_id=order.stripe_checkout_id,
            status=order.status,
            payment_status=order.payment_status,
            total_amount=order.total_amount,
            promo_code=order.promo_code,
            discount_amount=order.discount_amount,
            created_at=order.created_at,
            items=item_dtos,
            subtotal=round(subtotal, 2),
        )
