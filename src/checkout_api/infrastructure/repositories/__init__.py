from checkout_api.infrastructure.repositories.sql_purchase_context_repository import (
    SQLPurchaseContextRepository,
)
from checkout_api.infrastructure.repositories.sql_reservation_repository import (
    ReservationNotFoundError,
    SQLReservationRepository,
)
from checkout_api.infrastructure.repositories.sql_transaction_claim_store import (
    SQLTransactionClaimStore,
)

__all__ = [
    "ReservationNotFoundError",
    "SQLPurchaseContextRepository",
    "SQLReservationRepository",
    "SQLTransactionClaimStore",
]
