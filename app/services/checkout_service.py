# app/services/checkout_service.py
import logging
from typing import Any

import stripe
from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.config import get_settings
from app.core.exceptions import PromoError
from app.core.stripe_client import configure_stripe, construct_webhook_event, to_minor_units
from app.models.cart import CartItem, ProductType
from app.repositories.cart_repo import CartRepository
from app.repositories.photo_repo import PhotoRepository
from app.schemas.checkout import CheckoutRequest, CheckoutSessionRead, PromoValidation
from app.services.cart import Cart, CartSnapshot
from app.services.order_service import OrderService
from app.services.promo_service import PromoService

logger = logging.getLogger(__name__)

DELIVERY_LINE_LABEL = "Livraison"


class CheckoutService:
    """
    Turns a cart into a Stripe Checkout Session (or a free order).

    Line items replay the prices frozen in the cart; nothing is re-priced
    here. A snapshot of the cart is kept, keyed by checkout session id,
    until the payment webhook arrives; the order is recorded from it.
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        photo_repo: PhotoRepository,
        order_service: OrderService,
        promo_service: PromoService | None = None,
    ):
        self.cart_repo = cart_repo
        self.photo_repo = photo_repo
        self.order_service = order_service
        self.promo_service = promo_service or PromoService()

    # ---- validation ----

    def validate_cart(self, session: Session, cart: Cart) -> None:
        """
        Steps:
          1. Cart must not be empty.
          2. Free digital items need the session pack that granted them.
          3. Every referenced photo must still exist.
        """
        if cart.get_item_count() == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        if not cart.has_session_pack():
            orphaned = [
                it.photo_id
                for it in cart.items
                if it.product_type is ProductType.DIGITAL and it.unit_price == 0
            ]
            if orphaned:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={
                        "message": "Free photos require the session pack",
                        "photo_ids": orphaned,
                    },
                )

        photo_ids = sorted(
            {it.photo_id for it in cart.items if it.product_type is not ProductType.SESSION_PACK}
        )
        found = self.photo_repo.get_many(session, photo_ids)
        missing = [pid for pid in photo_ids if pid not in found]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"message": "One or more photos not found", "photo_ids": missing},
            )

    # ---- line items ----

    @staticmethod
    def _item_name(item: CartItem) -> str:
        if item.product_type is ProductType.SESSION_PACK:
            return "Pack session illimité"
        name = item.display_name or f"Photo {item.photo_id[:8]}"
        return f"{name} ({item.product_type.value})"

    def build_line_items(self, cart: Cart | CartSnapshot) -> list[dict[str, Any]]:
        """
        One Stripe line item per priced cart item, plus one per delivery fee.

        Items granted by the session pack cost nothing and are not sent to
        Stripe; they are still part of the order.
        """
        currency = get_settings().STRIPE_CURRENCY
        line_items: list[dict[str, Any]] = []

        for item in cart.items:
            if item.unit_price > 0:
                line_items.append(
                    {
                        "price_data": {
                            "currency": currency,
                            "unit_amount": to_minor_units(item.unit_price),
                            "product_data": {
                                "name": self._item_name(item),
                                "metadata": {
                                    "photo_id": item.photo_id,
                                    "product_type": item.product_type.value,
                                },
                            },
                        },
                        "quantity": 1,
                    }
                )
            if item.delivery_fee > 0:
                line_items.append(
                    {
                        "price_data": {
                            "currency": currency,
                            "unit_amount": to_minor_units(item.delivery_fee),
                            "product_data": {
                                "name": f"{DELIVERY_LINE_LABEL} - {self._item_name(item)}",
                            },
                        },
                        "quantity": 1,
                    }
                )
        return line_items

    # ---- public operations ----

    def validate_promo(self, code: str, total_amount: float) -> PromoValidation:
        try:
            return self.promo_service.validate(code, total_amount)
        except PromoError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=e.message,
            )

    def start_checkout(
        self,
        session: Session,
        cart: Cart,
        payload: CheckoutRequest,
    ) -> CheckoutSessionRead:
        """
        Steps:
          1. Validate the cart.
          2. Validate the promo code against the pre-discount total.
          3. Free order: record it directly and discard the cart.
          4. Otherwise create the Stripe Checkout Session.
        """
        self.validate_cart(session, cart)

        settings = get_settings()
        snapshot = cart.snapshot()
        total = snapshot.get_total_price()

        promo: PromoValidation | None = None
        if payload.promo_code:
            promo = self.validate_promo(payload.promo_code, total)
            if not promo.valid:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Invalid promo code",
                )

        success_url = payload.success_url or f"{settings.SITE_URL}/order/success"
        cancel_url = payload.cancel_url or f"{settings.SITE_URL}/order/canceled"

        if promo is not None and promo.is_free:
            order = self.order_service.record_free_order(
                session, snapshot, payload.customer_email, payload.promo_code, promo
            )
            return CheckoutSessionRead(
                session_id=f"free_{order.id}",
                url=f"{success_url}?session_id=free_{order.id}&free_order=true",
                is_free=True,
                order_id=str(order.id),
            )

        try:
            configure_stripe()
        except RuntimeError as e:
            logger.error(f"Checkout unavailable: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Payments are not configured",
            )

        params: dict[str, Any] = {
            "mode": "payment",
            "line_items": self.build_line_items(snapshot),
            "customer_email": payload.customer_email,
            "metadata": {
                "cart_id": cart.id,
                "promo_code": payload.promo_code or "",
            },
            "success_url": success_url + "?session_id={CHECKOUT_SESSION_ID}",
            "cancel_url": cancel_url,
        }
        try:
            if promo is not None and promo.discount_percent > 0:
                coupon = stripe.Coupon.create(
                    percent_off=promo.discount_percent,
                    duration="once",
                    name=payload.promo_code,
                )
                params["discounts"] = [{"coupon": coupon.id}]
            checkout_session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout failed for cart {cart.id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to create checkout session",
            )

        self.cart_repo.save_checkout(checkout_session.id, snapshot)
        logger.info(f"Checkout session {checkout_session.id} created for cart {cart.id} ({total:.2f})")
        return CheckoutSessionRead(session_id=checkout_session.id, url=checkout_session.url)

    def handle_webhook(
        self,
        session: Session,
        payload: bytes,
        signature: str | None,
    ) -> dict[str, Any]:
        """
        Verify and dispatch a Stripe webhook.

        checkout.session.completed records the order; an expired session
        drops its snapshot. Other events are acknowledged and ignored.
        """
        try:
            event = construct_webhook_event(payload, signature)
        except RuntimeError as e:
            logger.error(f"Webhook rejected: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Webhooks are not configured",
            )
        except (ValueError, stripe.SignatureVerificationError):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid webhook signature",
            )

        if event["type"] == "checkout.session.expired":
            self.cart_repo.discard_checkout(event["data"]["object"]["id"])
            return {"received": True, "order_id": None}
        if event["type"] != "checkout.session.completed":
            return {"received": True, "order_id": None}

        checkout_session = event["data"]["object"]
        order = self.order_service.record_paid_order(session, checkout_session)
        return {"received": True, "order_id": str(order.id) if order else None}
