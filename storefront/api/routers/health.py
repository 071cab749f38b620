# storefront/api/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.utils.logging import get_logger
from storefront.utils.settings import Settings
from storefront.api.deps import get_app_settings

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database query failed: {e}")
        database = "unavailable"
    return {"status": "ok" if database == "ok" else "degraded", "database": database}


@router.get("/api/status/gateway")
def gateway_status(settings: Settings = Depends(get_app_settings)):
    return {
        "gateway": settings.payment_gateway,
        "api_url": settings.xendit_api_url,
        "secret_key_configured": bool(settings.xendit_secret_key),
        "environment": settings.environment,
    }


@router.get("/api/status/webhook")
def webhook_status(settings: Settings = Depends(get_app_settings)):
    return {
        "endpoint": "/webhook/xendit",
        "verification_enabled": settings.webhook_verification_enabled,
        "allow_unverified": settings.webhook_allow_unverified,
    }
