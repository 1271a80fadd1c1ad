from types import MappingProxyType

from checkout_api.domain.enums import (
    ReservationStatus,
    ReservationStatusValue,
    RoutingOutcome,
)

# PENDING is resolved separately because it depends on the validation flag.
# Statuses missing from this table route to NOT_FOUND.
_ROUTING_TABLE = MappingProxyType(
    {
        ReservationStatus.COMPLETE: RoutingOutcome.SUCCESS,
        ReservationStatus.OFFLINE_PAYMENT: RoutingOutcome.WAITING_PAYMENT,
        ReservationStatus.DEFERRED_OFFLINE_PAYMENT: RoutingOutcome.DEFERRED_PAYMENT,
        ReservationStatus.EXTERNAL_PROCESSING_PAYMENT: RoutingOutcome.PROCESSING_PAYMENT,
        ReservationStatus.WAITING_EXTERNAL_CONFIRMATION: RoutingOutcome.PROCESSING_PAYMENT,
        ReservationStatus.IN_PAYMENT: RoutingOutcome.ERROR,
        ReservationStatus.STUCK: RoutingOutcome.ERROR,
    }
)


def classify(status: ReservationStatusValue, validated: bool | None = None) -> RoutingOutcome:
    """Map a reservation lifecycle status to the page the user is sent to.

    Total over its input: unknown and legacy values give `NOT_FOUND`.
    `validated` only matters for `PENDING`.

    Example:
        ```python
        classify(ReservationStatus.PENDING, validated=True)  # RoutingOutcome.OVERVIEW
        ```
    """
    if status == ReservationStatus.PENDING:
        return RoutingOutcome.OVERVIEW if validated is True else RoutingOutcome.BOOK
    if isinstance(status, ReservationStatus):
        return _ROUTING_TABLE.get(status, RoutingOutcome.NOT_FOUND)
    return RoutingOutcome.NOT_FOUND
