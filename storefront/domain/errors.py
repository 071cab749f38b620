# storefront/domain/errors.py
"""
Error taxonomy. Each family subclasses the builtin the routers already
translate (ValueError -> 400, PermissionError -> 403, LookupError -> 404,
RuntimeError -> 409), so callers may catch either.
"""


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ConfigurationError(StorefrontError):
    pass


# ---------- validation (400) ----------
class ValidationFailed(StorefrontError, ValueError):
    status_code = 400


class InvalidQuantity(ValidationFailed):
    pass


class EmptyCart(ValidationFailed):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class MalformedReference(ValidationFailed):
    pass


class InvalidStatus(ValidationFailed):
    pass


class InvalidAmount(ValidationFailed):
    pass


# ---------- authentication (401) ----------
class AuthenticationFailed(StorefrontError):
    status_code = 401


class InvalidCredentials(AuthenticationFailed):
    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class InvalidToken(AuthenticationFailed):
    pass


class InvalidWebhookToken(AuthenticationFailed):
    def __init__(self, message: str = "Invalid webhook token"):
        super().__init__(message)


# ---------- authorization (403) ----------
class AuthorizationDenied(StorefrontError, PermissionError):
    status_code = 403


class NotOwner(AuthorizationDenied):
    pass


class Forbidden(AuthorizationDenied):
    pass


# ---------- not found (404) ----------
class NotFound(StorefrontError, LookupError):
    status_code = 404


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class CartItemNotFound(NotFound):
    def __init__(self, item_id):
        super().__init__(f"Cart item {item_id} not found")
        self.item_id = item_id


class OrderNotFound(NotFound):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class UserNotFound(NotFound):
    pass


class InvoiceNotFound(NotFound):
    def __init__(self, invoice_id):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id


# ---------- conflict (409) ----------
class Conflict(StorefrontError, RuntimeError):
    status_code = 409


class ProductUnavailable(Conflict):
    pass


class InsufficientStock(ProductUnavailable):
    def __init__(self, product_name: str, requested: int | None = None, available: int | None = None):
        super().__init__(f"Insufficient stock for {product_name}")
        self.product_name = product_name
        self.requested = requested
        self.available = available


class ProductInactive(ProductUnavailable):
    def __init__(self, product_name: str):
        super().__init__(f"Product {product_name} is not available")
        self.product_name = product_name


class InvalidTransition(Conflict):
    pass


class NotPending(Conflict):
    pass


class ConcurrencyConflict(Conflict):
    def __init__(self, message: str = "Cart was modified by another operation"):
        super().__init__(message)


class DuplicateUser(Conflict):
    pass


# ---------- upstream (502) ----------
class GatewayError(StorefrontError):
    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None, detail: str = ""):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.detail = detail

    def __str__(self):
        if self.upstream_status is not None:
            return f"{self.message} ({self.upstream_status}): {self.detail}"
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message
