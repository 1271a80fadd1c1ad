import uuid

from checkout_api.domain.entities import PurchaseContext, Reservation
from checkout_api.domain.enums import PurchaseContextType
from checkout_api.domain.ports import PurchaseContextStore, ReservationStore


class InvalidPurchaseRequestError(ValueError):
    """Raised for malformed input the client has to correct."""

    pass


class PurchaseNotFoundError(LookupError):
    """Raised when a purchase context, reservation or their association is missing."""

    pass


def parse_purchase_context_type(raw: str) -> PurchaseContextType:
    context_type = PurchaseContextType.from_url_component(raw)
    if context_type is None:
        raise InvalidPurchaseRequestError(f"Unknown purchasable type '{raw}'")
    return context_type


class PurchaseContextResolver:
    """Locate a purchasable and a reservation scoped to it.

    Lookups are read-only. Absence is an ordinary outcome: the `resolve*`
    methods answer `None`, `require_reservation` raises `PurchaseNotFoundError`.

    Example:
        ```python
        resolver = PurchaseContextResolver(context_store, reservation_store)
        context, reservation = await resolver.require_reservation("event", "devconf", "abc")
        ```
    """

    def __init__(
        self,
        context_store: PurchaseContextStore,
        reservation_store: ReservationStore,
    ) -> None:
        self._context_store = context_store
        self._reservation_store = reservation_store

    async def resolve(
        self,
        context_type: PurchaseContextType,
        identifier: str,
    ) -> PurchaseContext | None:
        """Return the purchasable of `context_type` matching `identifier`."""
        normalized = self._normalize_identifier(context_type, identifier)
        return await self._context_store.find_by_type_and_identifier(context_type, normalized)

    async def resolve_reservation(
        self,
        context: PurchaseContext,
        reservation_id: str,
    ) -> Reservation | None:
        """Return the reservation only when it was made for `context`."""
        if not reservation_id.strip():
            return None
        reservation = await self._reservation_store.find_by_id(context, reservation_id)
        if reservation is None or not reservation.belongs_to(context):
            return None
        return reservation

    async def require_reservation(
        self,
        raw_context_type: str,
        identifier: str,
        reservation_id: str,
    ) -> tuple[PurchaseContext, Reservation]:
        context_type = parse_purchase_context_type(raw_context_type)
        context = await self.resolve(context_type, identifier)
        if context is None:
            raise PurchaseNotFoundError(f"No {context_type.value} found for identifier={identifier}")
        reservation = await self.resolve_reservation(context, reservation_id)
        if reservation is None:
            raise PurchaseNotFoundError(
                f"Reservation {reservation_id} not found for {context_type.value}={identifier}"
            )
        return context, reservation

    @staticmethod
    def _normalize_identifier(context_type: PurchaseContextType, identifier: str) -> str:
        cleaned = identifier.strip()
        if not cleaned:
            raise InvalidPurchaseRequestError("Purchasable identifier must not be empty")
        if context_type == PurchaseContextType.SUBSCRIPTION:
            try:
                return str(uuid.UUID(cleaned))
            except ValueError as exc:
                raise InvalidPurchaseRequestError(
                    "Subscription identifier must be a UUID"
                ) from exc
        return cleaned
