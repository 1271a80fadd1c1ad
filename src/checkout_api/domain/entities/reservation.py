from dataclasses import dataclass, field
from datetime import UTC, datetime

from checkout_api.domain.entities.purchase_context import PurchaseContext
from checkout_api.domain.enums import (
    PaymentMethod,
    PurchaseContextType,
    ReservationStatus,
    ReservationStatusValue,
)


@dataclass(slots=True, frozen=True)
class ReservationStatusAndValidation:
    """Narrow projection used by the reservation redirect path."""

    status: ReservationStatusValue
    validated: bool | None = None


@dataclass(slots=True)
class Reservation:
    """Reservation aggregate as seen by the payment surface.

    Example:
        ```python
        reservation = Reservation(id="8b0c...", status=ReservationStatus.PENDING, ...)
        reservation.belongs_to(context)
        ```
    """

    id: str
    status: ReservationStatusValue
    purchase_context_type: PurchaseContextType
    purchase_context_id: str
    validated: bool | None = None
    payment_method: PaymentMethod | None = None
    final_price_cents: int = 0
    currency: str = "EUR"
    validity: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("reservation id must not be empty")
        if self.final_price_cents < 0:
            raise ValueError("final_price_cents must not be negative")

    def belongs_to(self, context: PurchaseContext) -> bool:
        """Return whether this reservation was made for `context`."""
        return context.owns(self.purchase_context_type, self.purchase_context_id)

    def is_complete(self) -> bool:
        return self.status == ReservationStatus.COMPLETE

    def status_and_validation(self) -> ReservationStatusAndValidation:
        return ReservationStatusAndValidation(status=self.status, validated=self.validated)
