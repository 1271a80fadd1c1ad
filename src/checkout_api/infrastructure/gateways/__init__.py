from checkout_api.infrastructure.gateways.external_checkout_gateway import ExternalCheckoutGateway
from checkout_api.infrastructure.gateways.idempotency import idempotency_key_for
from checkout_api.infrastructure.gateways.offline_payment_provider import OfflinePaymentProvider
from checkout_api.infrastructure.gateways.stripe_payment_gateway import StripePaymentGateway

__all__ = [
    "ExternalCheckoutGateway",
    "OfflinePaymentProvider",
    "StripePaymentGateway",
    "idempotency_key_for",
]
