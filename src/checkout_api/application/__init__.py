from checkout_api.application.use_cases import (
    InvalidPurchaseRequestError,
    PaymentAuditLogger,
    PurchaseContextResolver,
    PurchaseNotFoundError,
    ResolveReservationRouteUseCase,
    TransactionAlreadyInitiatedError,
    TransactionOrchestrator,
    parse_purchase_context_type,
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
