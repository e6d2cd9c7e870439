# app/routers/orders.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.cart_session import get_cart_repo, photo_repo
from app.database import get_session
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.order import DownloadLink, OrderWithItemsRead
from app.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()


def get_order_service(cart_repo: CartRepository = Depends(get_cart_repo)) -> OrderService:
    return OrderService(order_repo, cart_repo, photo_repo)


@router.get("/{order_id}", response_model=OrderWithItemsRead)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Get an order with its items (order confirmation page).
    """
    return service.get_order(session, order_id)


@router.get("/{order_id}/downloads", response_model=list[DownloadLink])
def get_order_downloads(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Fresh signed download links for the digital photos of a paid order.
    """
    return service.get_downloads(session, order_id)
