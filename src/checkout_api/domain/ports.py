from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from checkout_api.domain.entities import (
    PurchaseContext,
    Reservation,
    ReservationStatusAndValidation,
)
from checkout_api.domain.enums import PaymentMethod, PurchaseContextType
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken

PaymentParams = Mapping[str, Sequence[str]]


class ProviderUnavailableError(RuntimeError):
    """Raised when a payment provider cannot be reached or times out."""

    pass


class ProviderRejectedError(RuntimeError):
    """Raised when a payment provider actively refuses an initialization."""

    def __init__(self, reason: str, *, error_code: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.error_code = error_code


@dataclass(slots=True, frozen=True)
class TransactionClaim:
    """Result of trying to claim a reservation for one payment initialization.

    A reservation holds at most one claim, whatever the payment method.
    `acquired` is true when the caller owns the claim and must complete or
    release it using `claim_id`. Otherwise `token` holds the token produced
    by the owner (possibly for another payment method), or is `None` while
    the owner is still talking to the provider.
    """

    acquired: bool
    token: TransactionInitializationToken | None = None
    claim_id: str | None = None


class PurchaseContextStore(Protocol):
    async def find_by_type_and_identifier(
        self,
        context_type: PurchaseContextType,
        identifier: str,
    ) -> PurchaseContext | None: ...


class ReservationStore(Protocol):
    async def find_by_id(
        self,
        context: PurchaseContext,
        reservation_id: str,
    ) -> Reservation | None: ...

    async def find_status_and_validation(
        self,
        context: PurchaseContext,
        reservation_id: str,
    ) -> ReservationStatusAndValidation | None: ...

    async def update_payment_method(
        self,
        reservation_id: str,
        payment_method: PaymentMethod,
    ) -> None: ...


class TransactionClaimStore(Protocol):
    async def claim(
        self,
        reservation_id: str,
        payment_method: PaymentMethod,
        claimed_at: datetime,
        stale_before: datetime,
    ) -> TransactionClaim: ...

    async def complete(
        self,
        reservation_id: str,
        claim_id: str,
        token: TransactionInitializationToken,
    ) -> bool:
        """Store the token; `False` when the claim now belongs to someone else."""
        ...

    async def release(self, reservation_id: str, claim_id: str) -> None: ...

    async def find_token(self, reservation_id: str) -> TransactionInitializationToken | None: ...


class PaymentProvider(Protocol):
    """Payment-method specific adapter used by the transaction orchestrator.

    `initialize` raises `ProviderRejectedError` or `ProviderUnavailableError`.
    `check_status` never raises for transport problems: it answers with a
    pending result instead.
    """

    async def initialize(
        self,
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> TransactionInitializationToken: ...

    async def check_status(
        self,
        reservation: Reservation,
        token: TransactionInitializationToken,
        *,
        force: bool = False,
    ) -> PaymentResult: ...
