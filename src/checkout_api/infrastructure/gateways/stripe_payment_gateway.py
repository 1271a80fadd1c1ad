import logging
from collections.abc import Callable
from time import monotonic
from typing import Any

import httpx

from checkout_api.domain.entities import PurchaseContext, Reservation
from checkout_api.domain.enums import PaymentMethod
from checkout_api.domain.ports import PaymentParams, ProviderRejectedError, ProviderUnavailableError
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken
from checkout_api.infrastructure.gateways.idempotency import idempotency_key_for
from checkout_api.infrastructure.resilience import CircuitBreaker, CircuitBreakerOpenError

logger = logging.getLogger(__name__)

_RESERVED_FORM_KEYS = frozenset({"amount", "currency", "metadata[reservationId]", "metadata[purchaseContext]"})


class StripePaymentGateway:
    """Credit card adapter backed by a Stripe-compatible payment intents API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        circuit_breaker: CircuitBreaker,
        timeout_seconds: float = 5.0,
        status_cache_ttl_seconds: float = 5.0,
        time_provider: Callable[[], float] | None = None,
    ) -> None:
        self._client = client
        self._circuit_breaker = circuit_breaker
        self._timeout_seconds = timeout_seconds
        self._status_cache_ttl_seconds = status_cache_ttl_seconds
        self._time_provider = time_provider or monotonic
        self._status_cache: dict[str, tuple[float, PaymentResult]] = {}

    async def initialize(
        self,
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> TransactionInitializationToken:
        async def _request() -> httpx.Response:
            response = await self._client.post(
                "/v1/payment_intents",
                data=self._build_payment_intent_form(context, reservation, params),
                headers={
                    "Idempotency-Key": idempotency_key_for(reservation.id, PaymentMethod.CREDIT_CARD)
                },
                timeout=self._timeout_seconds,
            )
            if response.status_code >= 500:
                response.raise_for_status()
            return response

        try:
            response = await self._circuit_breaker.call(_request)
        except CircuitBreakerOpenError as exc:
            raise ProviderUnavailableError("Card payment provider circuit is open") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(f"Card payment provider unreachable: {exc}") from exc

        payload = self._json(response)
        if response.is_error:
            error = payload.get("error") or {}
            raise ProviderRejectedError(
                str(error.get("message") or "Payment initialization rejected"),
                error_code=error.get("code"),
            )

        return TransactionInitializationToken(
            reservation_id=reservation.id,
            payment_method=PaymentMethod.CREDIT_CARD,
            gateway_id=payload.get("id"),
            client_secret=payload.get("client_secret"),
            expires_at=reservation.validity,
            payload={"status": payload.get("status")},
        )

    async def check_status(
        self,
        reservation: Reservation,
        token: TransactionInitializationToken,
        *,
        force: bool = False,
    ) -> PaymentResult:
        gateway_id = token.gateway_id
        if not gateway_id:
            return PaymentResult.pending(message="Payment intent not created yet")
        if not force:
            cached = self._cached_status(gateway_id)
            if cached is not None:
                return cached

        async def _request() -> httpx.Response:
            response = await self._client.get(
                f"/v1/payment_intents/{gateway_id}",
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            return response

        try:
            response = await self._circuit_breaker.call(_request)
        except CircuitBreakerOpenError:
            return PaymentResult.pending(gateway_id, message="Card payment provider circuit is open")
        except httpx.HTTPError as exc:
            logger.warning("stripe_status_unavailable gateway_id=%s detail=%s", gateway_id, exc)
            return PaymentResult.pending(gateway_id, message="Card payment provider unavailable")

        result = self._to_payment_result(gateway_id, self._json(response))
        self._remember_status(gateway_id, result)
        return result

    @property
    def cached_status_count(self) -> int:
        return len(self._status_cache)

    def _remember_status(self, gateway_id: str, result: PaymentResult) -> None:
        # Intents that are never polled again would otherwise stay cached forever.
        now = self._time_provider()
        expired = [
            key
            for key, (stored_at, _) in self._status_cache.items()
            if now - stored_at > self._status_cache_ttl_seconds
        ]
        for key in expired:
            del self._status_cache[key]
        self._status_cache[gateway_id] = (now, result)

    def _cached_status(self, gateway_id: str) -> PaymentResult | None:
        entry = self._status_cache.get(gateway_id)
        if entry is None:
            return None
        stored_at, result = entry
        if self._time_provider() - stored_at > self._status_cache_ttl_seconds:
            self._status_cache.pop(gateway_id, None)
            return None
        return result

    @staticmethod
    def _to_payment_result(gateway_id: str, payload: dict[str, Any]) -> PaymentResult:
        status = str(payload.get("status", "")).lower()
        if status == "succeeded":
            return PaymentResult.successful(gateway_id)
        if status == "canceled":
            return PaymentResult.failed("payment-canceled", payload.get("cancellation_reason"))
        if status == "requires_action":
            redirect = ((payload.get("next_action") or {}).get("redirect_to_url") or {}).get("url")
            if redirect:
                return PaymentResult.redirect(redirect, gateway_id)
        if status == "requires_payment_method" and payload.get("last_payment_error"):
            error = payload["last_payment_error"]
            return PaymentResult.failed(
                str(error.get("decline_code") or error.get("code") or "card-declined"),
                error.get("message"),
            )
        return PaymentResult.pending(gateway_id)

    @staticmethod
    def _build_payment_intent_form(
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> dict[str, Any]:
        form: dict[str, Any] = {
            key: list(values) for key, values in params.items() if key not in _RESERVED_FORM_KEYS
        }
        form["amount"] = str(reservation.final_price_cents)
        form["currency"] = (reservation.currency or context.currency).lower()
        form["metadata[reservationId]"] = reservation.id
        form["metadata[purchaseContext]"] = f"{context.type.value}/{context.identifier}"
        return form

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
