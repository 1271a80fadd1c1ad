from checkout_api.domain.enums.payment_method import PaymentMethod
from checkout_api.domain.enums.payment_result_type import PaymentResultType
from checkout_api.domain.enums.purchase_context_type import PurchaseContextType
from checkout_api.domain.enums.reservation_status import (
    ReservationStatus,
    ReservationStatusValue,
    UnrecognizedReservationStatus,
    parse_reservation_status,
)
from checkout_api.domain.enums.routing_outcome import RoutingOutcome

__all__ = [
    "PaymentMethod",
    "PaymentResultType",
    "PurchaseContextType",
    "ReservationStatus",
    "ReservationStatusValue",
    "RoutingOutcome",
    "UnrecognizedReservationStatus",
    "parse_reservation_status",
]
