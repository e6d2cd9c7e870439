# app/core/cart_session.py
from fastapi import Depends, Header, Request

from app.repositories.cart_repo import CartRepository
from app.repositories.photo_repo import PhotoRepository
from app.services.cart import Cart
from app.services.cart_service import CartService

CART_ID_HEADER = "X-Cart-Id"

photo_repo = PhotoRepository()


def get_cart_repo(request: Request) -> CartRepository:
    """
    The cart store created in the application lifespan.
    """
    return request.app.state.cart_repo


def get_cart(
    x_cart_id: str | None = Header(default=None, alias=CART_ID_HEADER),
    cart_repo: CartRepository = Depends(get_cart_repo),
) -> Cart:
    """
    Resolve the caller's cart for an endpoint that changes it.

    Flow:
      1. Known id => the existing cart.
      2. No header, or an unknown / expired id => a new cart under a
         server-generated id.

    Every response carrying a cart returns its id so the client can send
    it back.
    """
    return cart_repo.get_or_create(x_cart_id)


def peek_cart(
    x_cart_id: str | None = Header(default=None, alias=CART_ID_HEADER),
    cart_repo: CartRepository = Depends(get_cart_repo),
) -> Cart:
    """
    Like get_cart, but nothing is stored: an unknown id yields a throwaway
    empty cart. For reads and for operations on an existing cart only.
    """
    cart = cart_repo.get(x_cart_id)
    return cart if cart is not None else Cart()


def get_cart_service(cart_repo: CartRepository = Depends(get_cart_repo)) -> CartService:
    return CartService(cart_repo, photo_repo)
