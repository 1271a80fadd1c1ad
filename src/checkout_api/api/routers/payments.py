from collections import defaultdict
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from checkout_api.api.schemas import ErrorResponseDTO, PaymentResultDTO, TransactionTokenDTO
from checkout_api.application import TransactionOrchestrator
from checkout_api.domain.enums import PurchaseContextType
from checkout_api.domain.ports import PaymentParams

router = APIRouter(tags=["payments"])

TransactionOrchestratorFactory = Callable[[], TransactionOrchestrator]

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponseDTO, "description": "Unknown purchasable type or payment method"},
    404: {"model": ErrorResponseDTO, "description": "Purchasable or reservation not found"},
    429: {"model": ErrorResponseDTO, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponseDTO, "description": "Internal server/database error"},
}

_INIT_RESPONSES: dict[int | str, dict] = {
    **_ERROR_RESPONSES,
    409: {"model": ErrorResponseDTO, "description": "Initialization already in progress"},
    422: {"model": ErrorResponseDTO, "description": "Payment rejected by the provider"},
    502: {"model": ErrorResponseDTO, "description": "Payment provider unavailable"},
}


def get_transaction_orchestrator(request: Request) -> TransactionOrchestrator:
    """Resolve the orchestrator via the factory registered on app state."""
    factory: TransactionOrchestratorFactory | None = getattr(
        request.app.state,
        "transaction_orchestrator_factory",
        None,
    )
    if factory is None:
        factory = request.app.state.container.create_transaction_orchestrator
    return factory()


async def read_payment_params(request: Request) -> PaymentParams:
    """Collect form fields as `name -> [values]`, keeping repeated fields."""
    form = await request.form()
    params: dict[str, list[str]] = defaultdict(list)
    for name, value in form.multi_items():
        if isinstance(value, str):
            params[name].append(value)
    return dict(params)


Orchestrator = Annotated[TransactionOrchestrator, Depends(get_transaction_orchestrator)]
Params = Annotated[PaymentParams, Depends(read_payment_params)]


@router.post(
    "/api/events/{event_name}/reservation/{reservation_id}/payment/{method}/init",
    response_model=TransactionTokenDTO,
    summary="Initialize event payment (legacy path)",
    responses=_INIT_RESPONSES,
)
async def init_event_transaction(
    event_name: str,
    reservation_id: str,
    method: str,
    params: Params,
    orchestrator: Orchestrator,
) -> TransactionTokenDTO:
    token = await orchestrator.init_transaction(
        PurchaseContextType.EVENT.url_component,
        event_name,
        reservation_id,
        method,
        params,
    )
    return TransactionTokenDTO.from_token(token)


@router.post(
    "/api/{purchasable_type}/{identifier}/reservation/{reservation_id}/payment/{method}/init",
    response_model=TransactionTokenDTO,
    summary="Initialize payment",
    description="Start a provider transaction for the reservation. Form fields are forwarded to the provider.",
    responses=_INIT_RESPONSES,
)
async def init_transaction(
    purchasable_type: str,
    identifier: str,
    reservation_id: str,
    method: str,
    params: Params,
    orchestrator: Orchestrator,
) -> TransactionTokenDTO:
    token = await orchestrator.init_transaction(
        purchasable_type,
        identifier,
        reservation_id,
        method,
        params,
    )
    return TransactionTokenDTO.from_token(token)


@router.get(
    "/api/events/{event_name}/reservation/{reservation_id}/payment/{method}/status",
    response_model=PaymentResultDTO,
    summary="Payment status (legacy path)",
    responses=_ERROR_RESPONSES,
)
async def get_event_transaction_status(
    event_name: str,
    reservation_id: str,
    method: str,
    orchestrator: Orchestrator,
) -> PaymentResultDTO:
    result = await orchestrator.get_transaction_status(
        PurchaseContextType.EVENT.url_component,
        event_name,
        reservation_id,
        method,
    )
    return PaymentResultDTO.from_result(result)


@router.get(
    "/api/{purchasable_type}/{identifier}/reservation/{reservation_id}/payment/{method}/status",
    response_model=PaymentResultDTO,
    summary="Payment status",
    description="Poll the provider for the transaction status. Safe to call repeatedly.",
    responses=_ERROR_RESPONSES,
)
async def get_transaction_status(
    purchasable_type: str,
    identifier: str,
    reservation_id: str,
    method: str,
    orchestrator: Orchestrator,
) -> PaymentResultDTO:
    result = await orchestrator.get_transaction_status(
        purchasable_type,
        identifier,
        reservation_id,
        method,
    )
    return PaymentResultDTO.from_result(result)


@router.get(
    "/api/v2/public/{purchasable_type}/{identifier}/reservation/{reservation_id}/transaction/force-check",
    response_model=PaymentResultDTO,
    summary="Force payment status check",
    description="Re-query the provider of the reservation's payment method, bypassing cached status.",
    responses=_ERROR_RESPONSES,
)
async def force_check_status(
    purchasable_type: str,
    identifier: str,
    reservation_id: str,
    orchestrator: Orchestrator,
) -> PaymentResultDTO:
    result = await orchestrator.force_check_status(purchasable_type, identifier, reservation_id)
    return PaymentResultDTO.from_result(result)
