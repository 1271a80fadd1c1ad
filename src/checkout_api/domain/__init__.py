from checkout_api.domain.entities import (
    PurchaseContext,
    Reservation,
    ReservationStatusAndValidation,
)
from checkout_api.domain.enums import (
    PaymentMethod,
    PaymentResultType,
    PurchaseContextType,
    ReservationStatus,
    RoutingOutcome,
    UnrecognizedReservationStatus,
)
from checkout_api.domain.ports import (
    PaymentParams,
    PaymentProvider,
    ProviderRejectedError,
    ProviderUnavailableError,
    PurchaseContextStore,
    ReservationStore,
    TransactionClaim,
    TransactionClaimStore,
)
from checkout_api.domain.services import classify
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken

__all__ = [
    "PaymentMethod",
    "PaymentParams",
    "PaymentProvider",
    "PaymentResult",
    "PaymentResultType",
    "ProviderRejectedError",
    "ProviderUnavailableError",
    "PurchaseContext",
    "PurchaseContextStore",
    "PurchaseContextType",
    "Reservation",
    "ReservationStatus",
    "ReservationStatusAndValidation",
    "ReservationStore",
    "RoutingOutcome",
    "TransactionClaim",
    "TransactionClaimStore",
    "TransactionInitializationToken",
    "UnrecognizedReservationStatus",
    "classify",
]
