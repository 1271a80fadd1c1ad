from checkout_api.application.use_cases.resolve_purchase_context_use_case import (
    PurchaseContextResolver,
)
from checkout_api.domain.enums import PurchaseContextType, RoutingOutcome
from checkout_api.domain.ports import ReservationStore
from checkout_api.domain.services import classify


class ResolveReservationRouteUseCase:
    """Pick the page a reservation link should land on.

    Answers `None` when the purchasable itself does not exist, so the caller
    can send the user to the site root.
    """

    def __init__(
        self,
        resolver: PurchaseContextResolver,
        reservation_store: ReservationStore,
    ) -> None:
        self._resolver = resolver
        self._reservation_store = reservation_store

    async def execute(
        self,
        context_type: PurchaseContextType,
        identifier: str,
        reservation_id: str,
    ) -> RoutingOutcome | None:
        context = await self._resolver.resolve(context_type, identifier)
        if context is None:
            return None
        projection = await self._reservation_store.find_status_and_validation(
            context, reservation_id
        )
        if projection is None:
            return RoutingOutcome.NOT_FOUND
        return classify(projection.status, projection.validated)
