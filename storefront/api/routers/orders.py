# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.deps import get_app_settings, get_current_user, get_gateway, to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import InvoiceOut, OrderOut, OrderStatusUpdate
from storefront.services.gateway.port import InvoiceGateway
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentService
from storefront.utils.auth import TokenClaims
from storefront.utils.settings import Settings

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, gateway: InvoiceGateway):
    return OrderService(db, gateway=gateway)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
):
    """Checkout: turns the caller's cart into a pending order."""
    svc = get_service(db, gateway)
    try:
        return svc.create_from_cart(user.user_id)
    except StorefrontError as e:
        raise to_http(e)


@router.get("", response_model=List[OrderOut])
def list_orders(
    all_users: bool = Query(False, alias="all"),
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
):
    svc = get_service(db, gateway)
    try:
        return svc.list_orders(user, all_users=all_users)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
):
    svc = get_service(db, gateway)
    try:
        return svc.get_order(order_id, user)
    except StorefrontError as e:
        raise to_http(e)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
):
    svc = get_service(db, gateway)
    try:
        return svc.update_status(order_id, payload.status, user)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
):
    svc = get_service(db, gateway)
    try:
        return svc.cancel(order_id, user)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/{order_id}/payment", response_model=InvoiceOut, status_code=201)
def create_payment(
    order_id: int,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
):
    """Opens a gateway invoice for a pending order."""
    svc = PaymentService(db, gateway, settings)
    try:
        invoice = svc.create_payment(order_id, user)
    except StorefrontError as e:
        raise to_http(e)

    return InvoiceOut.from_invoice(invoice)
