from typing import Any

import httpx

from checkout_api.domain.entities import PurchaseContext, Reservation
from checkout_api.domain.enums import PaymentMethod
from checkout_api.domain.ports import PaymentParams, ProviderRejectedError, ProviderUnavailableError
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken
from checkout_api.infrastructure.gateways.idempotency import idempotency_key_for
from checkout_api.infrastructure.resilience import (
    CircuitBreaker,
    CircuitBreakerOpenError,
    RetryPolicy,
)

_SUCCESS_STATUSES = frozenset({"PAID", "COMPLETED"})
_FAILED_STATUSES = frozenset({"FAILED", "CANCELLED", "EXPIRED", "DECLINED"})


class ExternalCheckoutGateway:
    """Adapter for a hosted checkout page: the user is redirected to the provider."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        circuit_breaker: CircuitBreaker,
        retry_policy: RetryPolicy,
        public_base_url: str,
        timeout_seconds: float = 5.0,
    ) -> None:
        self._client = client
        self._circuit_breaker = circuit_breaker
        self._retry_policy = retry_policy
        self._public_base_url = public_base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds

    async def initialize(
        self,
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> TransactionInitializationToken:
        async def _request() -> httpx.Response:
            response = await self._client.post(
                "/checkouts",
                json=self._build_checkout_payload(context, reservation, params),
                headers={"Idempotency-Key": idempotency_key_for(reservation.id, PaymentMethod.EXTERNAL)},
                timeout=self._timeout_seconds,
            )
            if response.status_code >= 500:
                response.raise_for_status()
            return response

        async def _request_with_circuit_breaker() -> httpx.Response:
            return await self._circuit_breaker.call(_request)

        try:
            response = await self._retry_policy.execute(_request_with_circuit_breaker)
        except CircuitBreakerOpenError as exc:
            raise ProviderUnavailableError("External checkout circuit is open") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(f"External checkout unreachable: {exc}") from exc

        payload = self._json(response)
        if response.is_error:
            raise ProviderRejectedError(
                str(payload.get("message") or "Checkout creation rejected"),
                error_code=payload.get("code"),
            )
        redirect_url = payload.get("redirect_url")
        if not redirect_url:
            raise ProviderRejectedError("Checkout created without a redirect URL", error_code="NO_REDIRECT")

        return TransactionInitializationToken(
            reservation_id=reservation.id,
            payment_method=PaymentMethod.EXTERNAL,
            gateway_id=payload.get("id"),
            redirect_url=redirect_url,
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
            return PaymentResult.pending(message="Checkout not created yet")

        async def _request() -> httpx.Response:
            response = await self._client.get(
                f"/checkouts/{gateway_id}",
                params={"refresh": "true"} if force else None,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            return response

        try:
            response = await self._circuit_breaker.call(_request)
        except CircuitBreakerOpenError:
            return PaymentResult.pending(gateway_id, message="External checkout circuit is open")
        except httpx.HTTPError:
            return PaymentResult.pending(gateway_id, message="External checkout unavailable")

        payload = self._json(response)
        status = str(payload.get("status", "")).upper()
        if status in _SUCCESS_STATUSES:
            return PaymentResult.successful(gateway_id)
        if status in _FAILED_STATUSES:
            return PaymentResult.failed(status.lower(), payload.get("message"))
        if status == "ACTION_REQUIRED" and payload.get("redirect_url"):
            return PaymentResult.redirect(payload["redirect_url"], gateway_id)
        return PaymentResult.pending(gateway_id)

    def _build_checkout_payload(
        self,
        context: PurchaseContext,
        reservation: Reservation,
        params: PaymentParams,
    ) -> dict[str, Any]:
        return_url = (
            f"{self._public_base_url}/{context.type.url_component}/"
            f"{context.identifier}/reservation/{reservation.id}"
        )
        return {
            "reference": reservation.id,
            "amount_cents": reservation.final_price_cents,
            "currency": reservation.currency or context.currency,
            "description": context.display_name or context.identifier,
            "return_url": return_url,
            "expires_at": reservation.validity.isoformat() if reservation.validity else None,
            "params": {key: list(values) for key, values in params.items()},
        }

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
