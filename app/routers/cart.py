# app/routers/cart.py
from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from app.core.cart_session import CART_ID_HEADER, get_cart, get_cart_service, peek_cart
from app.database import get_session
from app.models.cart import ProductType
from app.schemas.cart import (
    AddToCartRequest,
    AddToCartResponse,
    CartSummary,
    LegacyCartImport,
    LegacyImportResult,
)
from app.services.cart import Cart
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=CartSummary)
def get_my_cart(
    response: Response,
    cart: Cart = Depends(peek_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Get the current cart summary, with dynamic pricing breakdown.

    Reading never creates a cart: without a known X-Cart-Id an empty cart
    is returned and nothing is stored.
    """
    response.headers[CART_ID_HEADER] = cart.id
    return service.get_cart_summary(cart)


@router.post("", response_model=AddToCartResponse)
def add_to_cart(
    payload: AddToCartRequest,
    response: Response,
    session: Session = Depends(get_session),
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Add a photo product (or the session pack) to the cart.

    The price is computed server-side and frozen on the item. A duplicate
    or a second pack is not an error: `result` says what happened and the
    cart is returned unchanged.
    """
    response.headers[CART_ID_HEADER] = cart.id
    return service.add_to_cart(session, cart, payload)


@router.post("/import", response_model=LegacyImportResult)
def import_legacy_cart(
    payload: LegacyCartImport,
    response: Response,
    cart: Cart = Depends(get_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Import items saved by older storefront versions into the cart.
    """
    response.headers[CART_ID_HEADER] = cart.id
    return service.import_legacy_items(cart, payload.items)


@router.delete("/{product_type}/{photo_id}", response_model=CartSummary)
def remove_cart_item(
    product_type: ProductType,
    photo_id: str,
    response: Response,
    cart: Cart = Depends(peek_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Remove an item from the cart. Removing an absent item is a no-op.
    """
    response.headers[CART_ID_HEADER] = cart.id
    return service.remove_item(cart, photo_id, product_type)


@router.delete("", response_model=CartSummary)
def clear_cart(
    cart: Cart = Depends(peek_cart),
    service: CartService = Depends(get_cart_service),
):
    """
    Clear the entire cart and end its session.

    Returns an empty cart summary.
    """
    return service.clear_cart(cart)
