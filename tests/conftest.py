import os

# must be set before any storefront module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-123"
os.environ["PAYMENT_GATEWAY"] = "fake"
os.environ["XENDIT_WEBHOOK_TOKEN"] = "test-callback-token"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api import create_app
from storefront.api.deps import get_gateway
from storefront.celery_worker import celery_app
from storefront.data.database import Base, get_db
from storefront.data.models import ProductModel, UserModel
from storefront.domain.enums import Role
from storefront.services.cart_service import CartService
from storefront.services.gateway.fake_adapter import FakeInvoiceGateway
from storefront.utils.auth import TokenClaims, hash_password, issue_token
from storefront.utils.settings import get_settings

celery_app.conf.task_always_eager = True


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture()
def gateway():
    return FakeInvoiceGateway()


def _make_user(db, username, role):
    user = UserModel(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password("secret123", rounds=4),
        role=role.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture()
def buyer(db):
    return _make_user(db, "buyer", Role.BUYER)


@pytest.fixture()
def other_buyer(db):
    return _make_user(db, "other", Role.BUYER)


@pytest.fixture()
def seller(db):
    return _make_user(db, "seller", Role.SELLER)


@pytest.fixture()
def admin(db):
    return _make_user(db, "admin", Role.ADMIN)


def claims_for(user) -> TokenClaims:
    return TokenClaims(user_id=user.id, email=user.email, username=user.username, role=Role(user.role))


@pytest.fixture()
def make_product(db):
    def _make(name="Widget", price="10.00", stock=10, is_active=True, seller_id=None):
        product = ProductModel(
            name=name,
            price=Decimal(price),
            stock=stock,
            is_active=is_active,
            seller_id=seller_id,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture()
def fill_cart(db):
    def _fill(user, *lines):
        svc = CartService(db)
        for product, quantity in lines:
            svc.add_item(user.id, product.id, quantity)

    return _fill


@pytest.fixture()
def client(db, gateway):
    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    return TestClient(app)


@pytest.fixture()
def auth_header(settings):
    def _header(user):
        token = issue_token(claims_for(user), settings.jwt_secret, 3600)
        return {"Authorization": f"Bearer {token}"}

    return _header


@pytest.fixture()
def claims():
    return claims_for
