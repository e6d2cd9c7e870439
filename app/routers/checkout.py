# app/routers/checkout.py
from fastapi import APIRouter, Depends, Header, Request
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from app.core.cart_session import get_cart_repo, peek_cart, photo_repo
from app.database import get_session
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.checkout import (
    CheckoutRequest,
    CheckoutSessionRead,
    PromoValidation,
    PromoValidationRequest,
)
from app.services.cart import Cart
from app.services.checkout_service import CheckoutService
from app.services.order_service import OrderService

router = APIRouter(prefix="/checkout", tags=["Checkout"])

order_repo = OrderRepository()


def get_checkout_service(cart_repo: CartRepository = Depends(get_cart_repo)) -> CheckoutService:
    order_service = OrderService(order_repo, cart_repo, photo_repo)
    return CheckoutService(cart_repo, photo_repo, order_service)


@router.post("/promo", response_model=PromoValidation)
def validate_promo(
    payload: PromoValidationRequest,
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Check a promo code against a pre-discount total.

    An unknown code returns `valid=false`; a missing code or non-positive
    total is a 400.
    """
    return service.validate_promo(payload.code, payload.total_amount)


@router.post("", response_model=CheckoutSessionRead)
def start_checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    cart: Cart = Depends(peek_cart),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Start checkout for the current cart.

    Returns the Stripe Checkout URL, or for orders fully covered by a
    promo code, the success URL of the already recorded free order.
    """
    return service.start_checkout(session, cart, payload)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    session: Session = Depends(get_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Stripe webhook endpoint; records the order on checkout completion.
    """
    payload = await request.body()
    # order recording does blocking DB, storage and SMTP calls
    return await run_in_threadpool(service.handle_webhook, session, payload, stripe_signature)
