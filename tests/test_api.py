"""End-to-end flows through the HTTP surface."""

from sqlalchemy.exc import OperationalError

from storefront.data.models import OrderModel, PaymentModel
from storefront.services.notification_service import NotificationService

TOKEN_HEADER = {"x-callback-token": "test-callback-token"}


def _pending_order(client, user, make_product, auth_header):
    product = make_product(price="250.00", stock=5)
    headers = auth_header(user)
    client.post("/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)
    return client.post("/orders", headers=headers).json()["id"]


def _webhook(order_id, status="PAID", external_id=None):
    return {
        "id": "inv-api-1",
        "external_id": external_id or f"ORDER-{order_id}",
        "status": status,
        "amount": 250,
        "paid_amount": 250,
        "payment_channel": "BCA",
        "payment_method": "BANK_TRANSFER",
    }


class TestUsers:
    def test_register_login_me(self, client):
        resp = client.post(
            "/users/register",
            json={"username": "newbie", "email": "Newbie@Example.com", "password": "secret123"},
        )
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "buyer"
        assert resp.json()["user"]["email"] == "newbie@example.com"

        resp = client.post("/users/login", json={"username_or_email": "newbie@example.com", "password": "secret123"})
        assert resp.status_code == 200
        token = resp.json()["token"]

        resp = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["username"] == "newbie"

    def test_password_over_72_bytes_rejected(self, client):
        resp = client.post(
            "/users/register",
            json={"username": "longpass", "email": "long@example.com", "password": "é" * 40},
        )
        assert resp.status_code == 422

    def test_duplicate_username(self, client, buyer):
        resp = client.post(
            "/users/register",
            json={"username": "buyer", "email": "fresh@example.com", "password": "secret123"},
        )
        assert resp.status_code == 409

    def test_bad_password(self, client, buyer):
        resp = client.post("/users/login", json={"username_or_email": "buyer", "password": "wrong-one"})
        assert resp.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/users/me").status_code == 401
        assert client.get("/users/me", headers={"Authorization": "Bearer junk"}).status_code == 401


class TestProducts:
    def test_seller_creates_and_updates(self, client, seller, auth_header):
        resp = client.post(
            "/products",
            json={"name": "Kettle", "price": "45.50", "stock": 3},
            headers=auth_header(seller),
        )
        assert resp.status_code == 201
        product_id = resp.json()["id"]

        resp = client.patch(f"/products/{product_id}", json={"price": "40.00"}, headers=auth_header(seller))
        assert resp.status_code == 200
        assert resp.json()["price"] == "40.00"

        resp = client.post(f"/products/{product_id}/restock", json={"quantity": 2}, headers=auth_header(seller))
        assert resp.json()["stock"] == 5

    def test_buyer_cannot_create(self, client, buyer, auth_header):
        resp = client.post("/products", json={"name": "X", "price": "1.00"}, headers=auth_header(buyer))
        assert resp.status_code == 403

    def test_seller_cannot_edit_others_product(self, client, seller, make_product, auth_header):
        product = make_product(seller_id=None)
        resp = client.patch(f"/products/{product.id}", json={"name": "Mine now"}, headers=auth_header(seller))
        assert resp.status_code == 403

    def test_listing_hides_inactive(self, client, make_product):
        make_product(name="Visible")
        make_product(name="Hidden", is_active=False)

        names = [p["name"] for p in client.get("/products").json()]
        assert names == ["Visible"]

    def test_missing_product(self, client):
        assert client.get("/products/999").status_code == 404


class TestCheckoutFlow:
    def test_cart_to_paid_order(self, client, db, buyer, admin, make_product, auth_header):
        a = make_product(name="A", price="100.00", stock=10)
        b = make_product(name="B", price="50.00", stock=10)
        headers = auth_header(buyer)

        client.post("/cart/items", json={"product_id": a.id, "quantity": 2}, headers=headers)
        resp = client.post("/cart/items", json={"product_id": b.id, "quantity": 1}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == "250.00"

        resp = client.post("/orders", headers=headers)
        assert resp.status_code == 201
        order = resp.json()
        assert order["status"] == "pending"
        assert order["total_price"] == "250.00"
        assert order["external_id"] == f"ORDER-{order['id']}"
        assert client.get("/cart", headers=headers).json()["items"] == []

        resp = client.post(f"/orders/{order['id']}/payment", headers=headers)
        assert resp.status_code == 201
        assert resp.json()["amount"] == 250

        resp = client.post("/webhook/xendit", json=_webhook(order["id"]), headers=TOKEN_HEADER)
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["order_status"] == "paid"
        assert body["data"]["payment_status"] == "paid"
        assert body["data"]["applied"] is True

        resp = client.patch(f"/orders/{order['id']}/status", json={"status": "processing"}, headers=auth_header(admin))
        assert resp.status_code == 200
        assert resp.json()["status"] == "processing"

    def test_checkout_with_empty_cart(self, client, buyer, auth_header):
        assert client.post("/orders", headers=auth_header(buyer)).status_code == 400

    def test_oversell_is_conflict(self, client, db, buyer, make_product, auth_header):
        product = make_product(stock=2)
        headers = auth_header(buyer)
        client.post("/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
        product.stock = 1
        db.commit()

        resp = client.post("/orders", headers=headers)
        assert resp.status_code == 409

    def test_cancel_and_invalid_transition(self, client, buyer, admin, make_product, auth_header):
        product = make_product(stock=5)
        headers = auth_header(buyer)
        client.post("/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)
        order_id = client.post("/orders", headers=headers).json()["id"]

        resp = client.patch(f"/orders/{order_id}/status", json={"status": "shipped"}, headers=auth_header(admin))
        assert resp.status_code == 409

        resp = client.patch(f"/orders/{order_id}/status", json={"status": "paid"}, headers=auth_header(admin))
        assert resp.status_code == 400

        resp = client.post(f"/orders/{order_id}/cancel", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

        assert client.post(f"/orders/{order_id}/cancel", headers=headers).status_code == 409

    def test_other_user_cannot_view_order(self, client, buyer, other_buyer, make_product, auth_header):
        product = make_product()
        client.post("/cart/items", json={"product_id": product.id, "quantity": 1}, headers=auth_header(buyer))
        order_id = client.post("/orders", headers=auth_header(buyer)).json()["id"]

        assert client.get(f"/orders/{order_id}", headers=auth_header(other_buyer)).status_code == 403

    def test_gateway_outage_is_bad_gateway(self, client, gateway, buyer, make_product, auth_header):
        product = make_product()
        headers = auth_header(buyer)
        client.post("/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)
        order_id = client.post("/orders", headers=headers).json()["id"]
        gateway.configure(should_succeed=False)

        resp = client.post(f"/orders/{order_id}/payment", headers=headers)
        assert resp.status_code == 502
        assert client.get(f"/orders/{order_id}", headers=headers).json()["status"] == "pending"


class TestWebhookEndpoint:
    def test_bad_token_is_401(self, client, db):
        resp = client.post("/webhook/xendit", json=_webhook(1), headers={"x-callback-token": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["success"] is False
        assert db.query(PaymentModel).count() == 0

    def test_bad_token_checked_before_body(self, client):
        resp = client.post("/webhook/xendit", json={"external_id": "ORDER-1"}, headers={"x-callback-token": "wrong"})
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "message": "Invalid webhook token", "data": None}

    def test_invalid_body_with_good_token_is_400(self, client):
        resp = client.post("/webhook/xendit", json={"external_id": "ORDER-1"}, headers=TOKEN_HEADER)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_non_json_body_is_400(self, client):
        resp = client.post(
            "/webhook/xendit",
            content=b"not json",
            headers={**TOKEN_HEADER, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    def test_paid_on_cancelled_order_is_recorded(self, client, db, buyer, make_product, auth_header):
        order_id = _pending_order(client, buyer, make_product, auth_header)
        client.post(f"/orders/{order_id}/cancel", headers=auth_header(buyer))

        resp = client.post("/webhook/xendit", json=_webhook(order_id), headers=TOKEN_HEADER)

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["applied"] is False
        assert data["order_status"] == "cancelled"
        assert data["payment_status"] == "paid"
        assert db.query(PaymentModel).count() == 1

    def test_notification_failure_still_succeeds(self, client, db, buyer, make_product, auth_header, monkeypatch):
        order_id = _pending_order(client, buyer, make_product, auth_header)

        def broker_down(*args, **kwargs):
            raise ConnectionError("broker unreachable")

        monkeypatch.setattr(NotificationService, "send_payment_notification", staticmethod(broker_down))

        resp = client.post("/webhook/xendit", json=_webhook(order_id), headers=TOKEN_HEADER)

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        db.expire_all()
        assert db.get(OrderModel, order_id).status == "paid"
        assert db.query(PaymentModel).one().status == "paid"

    def test_commit_failure_is_500_and_rolled_back(self, client, db, buyer, make_product, auth_header, monkeypatch):
        order_id = _pending_order(client, buyer, make_product, auth_header)

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", failing_commit)

        resp = client.post("/webhook/xendit", json=_webhook(order_id), headers=TOKEN_HEADER)

        assert resp.status_code == 500
        assert resp.json()["success"] is False
        assert db.query(PaymentModel).count() == 0
        assert db.get(OrderModel, order_id).status == "pending"

    def test_malformed_reference_is_400(self, client):
        resp = client.post("/webhook/xendit", json=_webhook(42, external_id="INVALID-42"), headers=TOKEN_HEADER)
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_unknown_order_is_404(self, client):
        resp = client.post("/webhook/xendit", json=_webhook(4242), headers=TOKEN_HEADER)
        assert resp.status_code == 404


class TestStatusEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "database": "ok"}

    def test_gateway_and_webhook_status(self, client):
        assert client.get("/api/status/gateway").json()["gateway"] == "fake"
        assert client.get("/api/status/webhook").json()["verification_enabled"] is True
