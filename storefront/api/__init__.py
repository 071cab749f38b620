# storefront/api/__init__.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.routers import carts, health, orders, payments, products, users, webhooks
from storefront.data.database import init_db
from storefront.utils.logging import configure_logging, get_logger
from storefront.utils.settings import get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.is_production)
    # refuse to start half-configured
    settings.validate()
    init_db()
    logger.info("Storefront started", environment=settings.environment, gateway=settings.payment_gateway)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Storefront", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(get_settings().cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(webhooks.router)

    return app
