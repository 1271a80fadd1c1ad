from checkout_api.domain.entities.purchase_context import PurchaseContext
from checkout_api.domain.entities.reservation import (
    Reservation,
    ReservationStatusAndValidation,
)

__all__ = ["PurchaseContext", "Reservation", "ReservationStatusAndValidation"]
