import logging
from collections.abc import Callable
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from checkout_api.application import InvalidPurchaseRequestError, ResolveReservationRouteUseCase
from checkout_api.domain.enums import PurchaseContextType

logger = logging.getLogger(__name__)

router = APIRouter(tags=["redirects"], include_in_schema=False)

ResolveReservationRouteUseCaseFactory = Callable[[], ResolveReservationRouteUseCase]


def get_resolve_reservation_route_use_case(request: Request) -> ResolveReservationRouteUseCase:
    factory: ResolveReservationRouteUseCaseFactory | None = getattr(
        request.app.state,
        "resolve_reservation_route_use_case_factory",
        None,
    )
    if factory is None:
        factory = request.app.state.container.create_resolve_reservation_route_use_case
    return factory()


UseCase = Annotated[ResolveReservationRouteUseCase, Depends(get_resolve_reservation_route_use_case)]


def _path(*segments: str) -> str:
    return "/" + "/".join(quote(segment, safe="") for segment in segments)


async def _redirect_to_reservation_page(
    use_case: ResolveReservationRouteUseCase,
    context_type: PurchaseContextType,
    identifier: str,
    reservation_id: str,
) -> RedirectResponse:
    try:
        outcome = await use_case.execute(context_type, identifier, reservation_id)
    except InvalidPurchaseRequestError as exc:
        logger.info("reservation_redirect_invalid type=%s detail=%s", context_type.value, exc)
        outcome = None
    if outcome is None:
        return RedirectResponse("/", status_code=302)
    target = _path(
        context_type.url_component,
        identifier,
        "reservation",
        reservation_id,
        outcome.value,
    )
    return RedirectResponse(target, status_code=302)


@router.get("/event/{event_short_name}/reservation/{reservation_id}")
async def redirect_event_to_reservation(
    event_short_name: str,
    reservation_id: str,
    use_case: UseCase,
) -> RedirectResponse:
    """Send a reservation link to the page matching the reservation status."""
    return await _redirect_to_reservation_page(
        use_case, PurchaseContextType.EVENT, event_short_name, reservation_id
    )


@router.get("/subscription/{subscription_id}/reservation/{reservation_id}")
async def redirect_subscription_to_reservation(
    subscription_id: str,
    reservation_id: str,
    use_case: UseCase,
) -> RedirectResponse:
    return await _redirect_to_reservation_page(
        use_case, PurchaseContextType.SUBSCRIPTION, subscription_id, reservation_id
    )


@router.get("/event/{event_short_name}/code/{code}")
@router.get("/e/{event_short_name}/c/{code}")
async def redirect_code(event_short_name: str, code: str) -> RedirectResponse:
    """Forward promotional code links to the public code API."""
    return RedirectResponse(
        _path("api", "v2", "public", "event", event_short_name, "code", code),
        status_code=302,
    )


@router.get("/e/{event_short_name}")
async def redirect_event(event_short_name: str) -> RedirectResponse:
    return RedirectResponse(_path("event", event_short_name), status_code=302)
