from dataclasses import dataclass
from enum import StrEnum


class ReservationStatus(StrEnum):
    PENDING = "PENDING"
    IN_PAYMENT = "IN_PAYMENT"
    EXTERNAL_PROCESSING_PAYMENT = "EXTERNAL_PROCESSING_PAYMENT"
    WAITING_EXTERNAL_CONFIRMATION = "WAITING_EXTERNAL_CONFIRMATION"
    OFFLINE_PAYMENT = "OFFLINE_PAYMENT"
    DEFERRED_OFFLINE_PAYMENT = "DEFERRED_OFFLINE_PAYMENT"
    OFFLINE_FINALIZING = "OFFLINE_FINALIZING"
    FINALIZING = "FINALIZING"
    COMPLETE = "COMPLETE"
    STUCK = "STUCK"
    CANCELLED = "CANCELLED"
    CREDIT_NOTE_ISSUED = "CREDIT_NOTE_ISSUED"


@dataclass(slots=True, frozen=True)
class UnrecognizedReservationStatus:
    """Status value read from storage that is not a known `ReservationStatus`.

    The raw value is kept for diagnostics.
    """

    raw: str

    def __str__(self) -> str:
        return self.raw


ReservationStatusValue = ReservationStatus | UnrecognizedReservationStatus


def parse_reservation_status(raw: str | None) -> ReservationStatusValue:
    """Map a stored status string to a known member or an unrecognized arm."""
    value = (raw or "").strip()
    try:
        return ReservationStatus(value)
    except ValueError:
        return UnrecognizedReservationStatus(raw=raw or "")
