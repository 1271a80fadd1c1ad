from checkout_api.application.use_cases.resolve_purchase_context_use_case import (
    InvalidPurchaseRequestError,
    PurchaseContextResolver,
    PurchaseNotFoundError,
    parse_purchase_context_type,
)
from checkout_api.application.use_cases.resolve_reservation_route_use_case import (
    ResolveReservationRouteUseCase,
)
from checkout_api.application.use_cases.transaction_orchestrator import (
    PaymentAuditLogger,
    TransactionAlreadyInitiatedError,
    TransactionOrchestrator,
)

__all__ = [
    "InvalidPurchaseRequestError",
    "PaymentAuditLogger",
    "PurchaseContextResolver",
    "PurchaseNotFoundError",
    "ResolveReservationRouteUseCase",
    "TransactionAlreadyInitiatedError",
    "TransactionOrchestrator",
    "parse_purchase_context_type",
]
