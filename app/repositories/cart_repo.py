# app/repositories/cart_repo.py
import logging
import time
from collections import OrderedDict
from typing import Callable

from app.core.config import get_settings
from app.services.cart import Cart, CartSnapshot

logger = logging.getLogger(__name__)


class CartRepository:
    """
    In-memory store of active carts, keyed by cart id, plus the snapshots
    of carts waiting for payment, keyed by checkout session id.

    Carts are session-scoped and never written to the database. Ids are
    always generated here, never taken from the client. A cart is dropped
    when it has been idle longer than idle_ttl_seconds, or when the store
    is full and it is the least recently used one.
    """

    def __init__(
        self,
        idle_ttl_seconds: int | None = None,
        max_carts: int | None = None,
        checkout_ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.idle_ttl_seconds = idle_ttl_seconds or settings.CART_IDLE_TTL_SECONDS
        self.max_carts = max_carts or settings.MAX_ACTIVE_CARTS
        self.checkout_ttl_seconds = checkout_ttl_seconds or settings.CHECKOUT_SNAPSHOT_TTL_SECONDS
        self._clock = clock
        # least recently used first
        self._carts: OrderedDict[str, tuple[Cart, float]] = OrderedDict()
        self._checkouts: dict[str, tuple[CartSnapshot, float]] = {}

    # ---- housekeeping ----

    def _evict(self) -> None:
        now = self._clock()

        while self._carts:
            cart_id, (_, last_seen) = next(iter(self._carts.items()))
            if now - last_seen <= self.idle_ttl_seconds:
                break
            del self._carts[cart_id]
            logger.debug(f"Cart {cart_id} expired")

        while len(self._carts) >= self.max_carts:
            cart_id, _ = self._carts.popitem(last=False)
            logger.warning(f"Cart store full, dropped least recently used cart {cart_id}")

        expired = [
            checkout_id
            for checkout_id, (_, stored_at) in self._checkouts.items()
            if now - stored_at > self.checkout_ttl_seconds
        ]
        for checkout_id in expired:
            del self._checkouts[checkout_id]
            logger.info(f"Checkout snapshot {checkout_id} expired without payment")

    # ---- carts ----

    def get(self, cart_id: str | None) -> Cart | None:
        if not cart_id:
            return None
        entry = self._carts.get(cart_id)
        if entry is None:
            return None

        cart, last_seen = entry
        now = self._clock()
        if now - last_seen > self.idle_ttl_seconds:
            del self._carts[cart_id]
            logger.debug(f"Cart {cart_id} expired")
            return None

        self._carts[cart_id] = (cart, now)
        self._carts.move_to_end(cart_id)
        return cart

    def create(self) -> Cart:
        self._evict()
        cart = Cart()
        self._carts[cart.id] = (cart, self._clock())
        logger.debug(f"Cart {cart.id} created")
        return cart

    def get_or_create(self, cart_id: str | None) -> Cart:
        """Existing cart, or a new one under a fresh id when cart_id is unknown."""
        cart = self.get(cart_id)
        if cart is not None:
            return cart
        return self.create()

    def delete(self, cart_id: str) -> None:
        if self._carts.pop(cart_id, None) is not None:
            logger.debug(f"Cart {cart_id} discarded")

    def __len__(self) -> int:
        return len(self._carts)

    # ---- pending checkouts ----

    def save_checkout(self, checkout_id: str, snapshot: CartSnapshot) -> None:
        self._evict()
        self._checkouts[checkout_id] = (snapshot, self._clock())
        logger.debug(f"Cart {snapshot.cart_id} frozen for checkout {checkout_id}")

    def get_checkout(self, checkout_id: str) -> CartSnapshot | None:
        entry = self._checkouts.get(checkout_id)
        return entry[0] if entry is not None else None

    def discard_checkout(self, checkout_id: str) -> None:
        self._checkouts.pop(checkout_id, None)

    def pending_checkouts(self) -> int:
        return len(self._checkouts)
