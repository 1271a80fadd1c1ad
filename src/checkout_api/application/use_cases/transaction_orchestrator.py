import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from checkout_api.application.use_cases.resolve_purchase_context_use_case import (
    InvalidPurchaseRequestError,
    PurchaseContextResolver,
    PurchaseNotFoundError,
)
from checkout_api.domain.entities import PurchaseContext, Reservation
from checkout_api.domain.enums import PaymentMethod
from checkout_api.domain.ports import (
    PaymentParams,
    PaymentProvider,
    ProviderRejectedError,
    ProviderUnavailableError,
    ReservationStore,
    TransactionClaimStore,
)
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken

logger = logging.getLogger(__name__)


class TransactionAlreadyInitiatedError(RuntimeError):
    """Raised when another request owns the initialization of the same reservation."""

    pass


class PaymentAuditLogger(Protocol):
    """Port for audit events emitted by the payment flow."""

    def log_transaction_initialized(
        self,
        *,
        reservation_id: str,
        payment_method: str,
        context: dict[str, Any] | None = None,
    ) -> None: ...

    def log_transaction_rejected(
        self,
        *,
        reservation_id: str,
        payment_method: str,
        context: dict[str, Any] | None = None,
    ) -> None: ...

    def log_status_checked(
        self,
        *,
        reservation_id: str,
        payment_method: str,
        forced: bool,
        context: dict[str, Any] | None = None,
    ) -> None: ...


class TransactionOrchestrator:
    """Initialize payment transactions and resolve their status.

    Providers are looked up in a `PaymentMethod -> PaymentProvider` table, so
    adding a payment method only means registering one more adapter.

    Example:
        ```python
        orchestrator = TransactionOrchestrator(resolver, reservations, claims, providers)
        token = await orchestrator.init_transaction("event", "devconf", reservation_id, "credit-card", {})
        result = await orchestrator.get_transaction_status("event", "devconf", reservation_id, "credit-card")
        ```
    """

    def __init__(
        self,
        resolver: PurchaseContextResolver,
        reservation_store: ReservationStore,
        claim_store: TransactionClaimStore,
        providers: Mapping[PaymentMethod, PaymentProvider],
        audit_logger: PaymentAuditLogger | None = None,
        init_timeout_seconds: float = 30.0,
        status_timeout_seconds: float = 10.0,
        claim_timeout_seconds: float = 120.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if init_timeout_seconds <= 0:
            raise ValueError("init_timeout_seconds must be greater than zero")
        if status_timeout_seconds <= 0:
            raise ValueError("status_timeout_seconds must be greater than zero")
        if claim_timeout_seconds <= 0:
            raise ValueError("claim_timeout_seconds must be greater than zero")
        self._resolver = resolver
        self._reservation_store = reservation_store
        self._claim_store = claim_store
        self._providers = dict(providers)
        self._audit_logger = audit_logger
        self._init_timeout_seconds = init_timeout_seconds
        self._status_timeout_seconds = status_timeout_seconds
        self._claim_timeout = timedelta(seconds=claim_timeout_seconds)
        self._clock = clock or (lambda: datetime.now(UTC))

    async def init_transaction(
        self,
        context_type: str,
        identifier: str,
        reservation_id: str,
        raw_payment_method: str,
        params: PaymentParams,
    ) -> TransactionInitializationToken:
        """Start a provider transaction, at most once per reservation.

        Repeating the call with the same method returns the stored token. A
        different method is refused while another transaction exists for the
        reservation.
        """
        payment_method = self._parse_payment_method(raw_payment_method)
        provider = self._provider_for(payment_method)
        context, reservation = await self._resolver.require_reservation(
            context_type, identifier, reservation_id
        )
        if reservation.is_complete():
            raise TransactionAlreadyInitiatedError(
                f"Reservation {reservation.id} has already been paid"
            )

        now = self._clock()
        claim = await self._claim_store.claim(
            reservation.id,
            payment_method,
            claimed_at=now,
            stale_before=now - self._claim_timeout,
        )
        if not claim.acquired:
            return self._existing_token(reservation, payment_method, claim.token)

        try:
            token = await self._initialize_with_deadline(provider, context, reservation, params)
        except ProviderRejectedError as exc:
            await self._claim_store.release(reservation.id, claim.claim_id)
            if self._audit_logger is not None:
                self._audit_logger.log_transaction_rejected(
                    reservation_id=reservation.id,
                    payment_method=payment_method.value,
                    context={"reason": exc.reason, "error_code": exc.error_code},
                )
            raise
        except Exception:
            await self._claim_store.release(reservation.id, claim.claim_id)
            raise

        if not await self._claim_store.complete(reservation.id, claim.claim_id, token):
            logger.warning(
                "transaction_claim_lost reservation_id=%s method=%s gateway_id=%s",
                reservation.id,
                payment_method.value,
                token.gateway_id,
            )
            raise TransactionAlreadyInitiatedError(
                f"Transaction initialization for reservation {reservation.id} was taken over"
            )
        await self._reservation_store.update_payment_method(reservation.id, payment_method)
        if self._audit_logger is not None:
            self._audit_logger.log_transaction_initialized(
                reservation_id=reservation.id,
                payment_method=payment_method.value,
                context={
                    "purchase_context": f"{context.type.value}/{context.identifier}",
                    "gateway_id": token.gateway_id,
                    "client_secret": token.client_secret,
                },
            )
        return token

    async def get_transaction_status(
        self,
        context_type: str,
        identifier: str,
        reservation_id: str,
        raw_payment_method: str,
    ) -> PaymentResult:
        """Query the provider for the status of the reservation's transaction."""
        payment_method = self._parse_payment_method(raw_payment_method)
        provider = self._provider_for(payment_method)
        _, reservation = await self._resolver.require_reservation(
            context_type, identifier, reservation_id
        )
        token = await self._require_token(reservation, payment_method)
        result = await self._check_with_deadline(provider, reservation, token, force=False)
        if self._audit_logger is not None:
            self._audit_logger.log_status_checked(
                reservation_id=reservation.id,
                payment_method=payment_method.value,
                forced=False,
                context={"result": result.type.value},
            )
        return result

    async def force_check_status(
        self,
        context_type: str,
        identifier: str,
        reservation_id: str,
    ) -> PaymentResult:
        """Re-query the provider of the stored transaction, bypassing caches.

        Recovery path for lost or delayed provider callbacks. The payment
        method comes from the transaction stored for the reservation.
        """
        _, reservation = await self._resolver.require_reservation(
            context_type, identifier, reservation_id
        )
        token = await self._claim_store.find_token(reservation.id)
        if token is None:
            raise PurchaseNotFoundError(
                f"No payment transaction associated with reservation {reservation.id}"
            )
        payment_method = token.payment_method
        provider = self._providers.get(payment_method)
        if provider is None:
            raise PurchaseNotFoundError(
                f"No provider available for payment method {payment_method.value}"
            )
        result = await self._check_with_deadline(provider, reservation, token, force=True)
        if self._audit_logger is not None:
            self._audit_logger.log_status_checked(
                reservation_id=reservation.id,
                payment_method=payment_method.value,
                forced=True,
                context={"result": result.type.value, "gateway_id": result.gateway_id},
            )
        return result

    def _provider_for(self, payment_method: PaymentMethod) -> PaymentProvider:
        provider = self._providers.get(payment_method)
        if provider is None:
            raise InvalidPurchaseRequestError(
                f"Payment method {payment_method.value} is not supported"
            )
        return provider

    @staticmethod
    def _parse_payment_method(raw: str) -> PaymentMethod:
        payment_method = PaymentMethod.safe_parse(raw)
        if payment_method is None:
            raise InvalidPurchaseRequestError(f"Payment method '{raw}' not recognized")
        return payment_method

    @staticmethod
    def _existing_token(
        reservation: Reservation,
        payment_method: PaymentMethod,
        token: TransactionInitializationToken | None,
    ) -> TransactionInitializationToken:
        if token is None:
            raise TransactionAlreadyInitiatedError(
                f"Transaction initialization already in progress for reservation {reservation.id}"
            )
        if token.payment_method != payment_method:
            raise TransactionAlreadyInitiatedError(
                f"Reservation {reservation.id} already has a "
                f"{token.payment_method.value} transaction"
            )
        logger.info(
            "transaction_already_initialized reservation_id=%s method=%s",
            reservation.id,
            payment_method.value,
        )
        return token

    async def _require_token(
        self,
        reservation: Reservation,
        payment_method: PaymentMethod,
    ) -> TransactionInitializationToken:
        token = await self._claim_store.find_token(reservation.id)
        if token is None or token.payment_method != payment_method:
            raise PurchaseNotFoundError(
                f"No {payment_method.value} transaction initialized for reservation {reservation.id}"
            )
        return token

    async def _initialize_with_deadline(
        self,
        provider: PaymentProvider,
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> TransactionInitializationToken:
        try:
            return await asyncio.wait_for(
                provider.initialize(context, reservation, params),
                timeout=self._init_timeout_seconds,
            )
        except TimeoutError as exc:
            raise ProviderUnavailableError(
                f"Payment provider did not answer within {self._init_timeout_seconds}s"
            ) from exc

    async def _check_with_deadline(
        self,
        provider: PaymentProvider,
        reservation: Reservation,
        token: TransactionInitializationToken,
        *,
        force: bool,
    ) -> PaymentResult:
        try:
            return await asyncio.wait_for(
                provider.check_status(reservation, token, force=force),
                timeout=self._status_timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "payment_status_timeout reservation_id=%s method=%s timeout=%s",
                reservation.id,
                token.payment_method.value,
                self._status_timeout_seconds,
            )
            return PaymentResult.pending(token.gateway_id, message="Status check timed out")
        except ProviderUnavailableError as exc:
            logger.warning(
                "payment_provider_unavailable reservation_id=%s method=%s detail=%s",
                reservation.id,
                token.payment_method.value,
                exc,
            )
            return PaymentResult.pending(token.gateway_id, message="Payment provider unavailable")
