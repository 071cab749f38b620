# storefront/api/routers/payments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_app_settings, get_current_user, get_gateway, to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import InvoiceOut
from storefront.services.gateway.port import InvoiceGateway
from storefront.services.payment_service import PaymentService
from storefront.utils.auth import TokenClaims
from storefront.utils.settings import Settings

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/invoices/{invoice_id}", response_model=InvoiceOut)
def get_invoice(
    invoice_id: str,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
):
    svc = PaymentService(db, gateway, settings)
    try:
        return InvoiceOut.from_invoice(svc.get_invoice(invoice_id, user))
    except StorefrontError as e:
        raise to_http(e)


@router.post("/invoices/{invoice_id}/expire", response_model=InvoiceOut)
def expire_invoice(
    invoice_id: str,
    user: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: InvoiceGateway = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
):
    svc = PaymentService(db, gateway, settings)
    try:
        return InvoiceOut.from_invoice(svc.expire_invoice(invoice_id, user))
    except StorefrontError as e:
        raise to_http(e)
