"""Payment gateway factory.

build_gateway() picks the adapter named by the settings:
- XenditGateway for real invoices over HTTP
- FakeInvoiceGateway for development and testing
"""

from storefront.services.gateway.fake_adapter import FakeInvoiceGateway
from storefront.services.gateway.http_adapter import XenditGateway
from storefront.services.gateway.port import InvoiceGateway
from storefront.utils.settings import Settings


def build_gateway(settings: Settings) -> InvoiceGateway:
    if settings.payment_gateway == "fake":
        return FakeInvoiceGateway()
    return XenditGateway(settings)
