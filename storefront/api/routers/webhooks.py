# storefront/api/routers/webhooks.py
from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.api.deps import get_app_settings
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import WebhookPayload, WebhookResponse, WebhookResult
from storefront.services.webhook_service import WebhookService
from storefront.utils.logging import get_logger
from storefront.utils.settings import Settings

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks"])


def _failure(status_code: int, message: str) -> JSONResponse:
    body = WebhookResponse(success=False, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post("/xendit", response_model=WebhookResponse)
async def xendit_webhook(
    request: Request,
    x_callback_token: str | None = Header(None, alias="x-callback-token"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Invoice status callback.

    The token is checked before the body is even parsed. Any 2xx tells the
    gateway to stop retrying, so only a verified and committed (or
    deliberately ignored) notification gets one.
    """
    service = WebhookService(db, settings)
    try:
        service.authenticate(x_callback_token)
    except StorefrontError as e:
        return _failure(e.status_code, str(e))

    try:
        payload = WebhookPayload.model_validate(await request.json())
    except ValueError as e:
        # ValidationError and malformed JSON are both ValueErrors
        logger.warning(f"Rejected malformed webhook body: {e}")
        message = "Invalid webhook payload" if isinstance(e, ValidationError) else "Webhook body is not valid JSON"
        return _failure(400, message)

    try:
        result = await run_in_threadpool(service.reconcile, payload)
    except StorefrontError as e:
        return _failure(e.status_code, str(e))
    except SQLAlchemyError as e:
        # non-2xx makes the gateway redeliver
        logger.error(f"Webhook for {payload.external_id} failed to persist: {e}")
        return _failure(500, "Failed to record payment")

    message = "Payment status updated" if result.applied else "Notification acknowledged, order already past this state"

    return WebhookResponse(
        success=True,
        message=message,
        data=WebhookResult(
            payment_id=result.payment.id if result.payment else None,
            payment_status=result.payment.status if result.payment else None,
            order_status=result.order.status,
            applied=result.applied,
        ),
    )
