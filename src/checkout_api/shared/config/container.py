import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from checkout_api.application import (
    PurchaseContextResolver,
    ResolveReservationRouteUseCase,
    TransactionOrchestrator,
)
from checkout_api.domain.enums import PaymentMethod
from checkout_api.domain.ports import PaymentProvider
from checkout_api.infrastructure.db.session import create_session_factory
from checkout_api.infrastructure.gateways import (
    ExternalCheckoutGateway,
    OfflinePaymentProvider,
    StripePaymentGateway,
)
from checkout_api.infrastructure.repositories import (
    SQLPurchaseContextRepository,
    SQLReservationRepository,
    SQLTransactionClaimStore,
)
from checkout_api.infrastructure.resilience import CircuitBreaker, RetryPolicy
from checkout_api.shared.config.settings import Settings, settings
from checkout_api.shared.logging import AuditLogger


class ApplicationContainer:
    """Dependency container for repositories, payment providers and use cases."""

    def __init__(
        self,
        app_settings: Settings = settings,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self.settings = app_settings
        self.session_factory = session_factory or create_session_factory(app_settings)
        self._audit_logger = AuditLogger()
        self._stripe_client: httpx.AsyncClient | None = None
        self._external_checkout_client: httpx.AsyncClient | None = None
        self._providers: dict[PaymentMethod, PaymentProvider] | None = None

    async def startup(self) -> None:
        """Initialize long-lived provider HTTP clients."""
        if self._stripe_client is None:
            self._stripe_client = httpx.AsyncClient(
                base_url=self.settings.stripe_api_base_url.rstrip("/"),
                headers={"Authorization": f"Bearer {self.settings.stripe_api_key}"},
                limits=httpx.Limits(max_connections=self.settings.http_max_connections),
                timeout=self.settings.external_api_timeout_seconds,
            )
        if self._external_checkout_client is None:
            self._external_checkout_client = httpx.AsyncClient(
                base_url=self.settings.external_checkout_base_url.rstrip("/"),
                headers={"Authorization": f"Bearer {self.settings.external_checkout_api_key}"},
                limits=httpx.Limits(max_connections=self.settings.http_max_connections),
                timeout=self.settings.external_api_timeout_seconds,
            )

    async def shutdown(self) -> None:
        """Close provider HTTP clients and dispose the database engine."""
        self._providers = None
        if self._stripe_client is not None:
            await self._stripe_client.aclose()
            self._stripe_client = None
        if self._external_checkout_client is not None:
            await self._external_checkout_client.aclose()
            self._external_checkout_client = None
        engine = self.session_factory.kw.get("bind")
        if engine is not None:
            await engine.dispose()

    def create_purchase_context_repository(self) -> SQLPurchaseContextRepository:
        return SQLPurchaseContextRepository(self.session_factory)

    def create_reservation_repository(self) -> SQLReservationRepository:
        return SQLReservationRepository(self.session_factory)

    def create_transaction_claim_store(self) -> SQLTransactionClaimStore:
        return SQLTransactionClaimStore(self.session_factory)

    def create_purchase_context_resolver(self) -> PurchaseContextResolver:
        """Create resolver over the purchasable and reservation stores."""
        return PurchaseContextResolver(
            context_store=self.create_purchase_context_repository(),
            reservation_store=self.create_reservation_repository(),
        )

    def create_resolve_reservation_route_use_case(self) -> ResolveReservationRouteUseCase:
        return ResolveReservationRouteUseCase(
            resolver=self.create_purchase_context_resolver(),
            reservation_store=self.create_reservation_repository(),
        )

    def create_transaction_orchestrator(self) -> TransactionOrchestrator:
        """Create orchestrator wired with every registered payment provider."""
        return TransactionOrchestrator(
            resolver=self.create_purchase_context_resolver(),
            reservation_store=self.create_reservation_repository(),
            claim_store=self.create_transaction_claim_store(),
            providers=self.payment_providers(),
            audit_logger=self._audit_logger,
            init_timeout_seconds=self.settings.payment_init_timeout_seconds,
            status_timeout_seconds=self.settings.payment_status_timeout_seconds,
            claim_timeout_seconds=self.settings.transaction_claim_timeout_seconds,
        )

    def payment_providers(self) -> dict[PaymentMethod, PaymentProvider]:
        """Return the payment method -> provider table, built once per container.

        Providers keep circuit breaker state and status caches, so they are
        shared across requests.
        """
        if self._providers is None:
            self._providers = self._build_payment_providers()
        return self._providers

    def create_circuit_breaker(self, name: str) -> CircuitBreaker:
        """Create circuit breaker that only counts transport-level failures."""
        return CircuitBreaker(
            name=name,
            failure_threshold=self.settings.circuit_breaker_failure_threshold,
            recovery_timeout_seconds=self.settings.circuit_breaker_recovery_seconds,
            tracked_exceptions=(httpx.HTTPError,),
        )

    def create_retry_policy(self) -> RetryPolicy:
        """Create retry policy for transient provider failures."""
        return RetryPolicy(
            max_retries=self.settings.retry_max_attempts,
            retry_on=(httpx.TransportError, httpx.HTTPStatusError),
        )

    def _build_payment_providers(self) -> dict[PaymentMethod, PaymentProvider]:
        if self._stripe_client is None or self._external_checkout_client is None:
            raise RuntimeError("Container not started. Call startup() before requesting providers.")
        offline_instructions = self.settings.bank_transfer_instructions
        return {
            PaymentMethod.CREDIT_CARD: StripePaymentGateway(
                client=self._stripe_client,
                circuit_breaker=self.create_circuit_breaker("stripe"),
                timeout_seconds=self.settings.external_api_timeout_seconds,
                status_cache_ttl_seconds=self.settings.status_cache_ttl_seconds,
            ),
            PaymentMethod.EXTERNAL: ExternalCheckoutGateway(
                client=self._external_checkout_client,
                circuit_breaker=self.create_circuit_breaker("external-checkout"),
                retry_policy=self.create_retry_policy(),
                public_base_url=self.settings.public_base_url,
                timeout_seconds=self.settings.external_api_timeout_seconds,
            ),
            PaymentMethod.BANK_TRANSFER: OfflinePaymentProvider(
                PaymentMethod.BANK_TRANSFER, instructions=offline_instructions
            ),
            PaymentMethod.OFFLINE: OfflinePaymentProvider(
                PaymentMethod.OFFLINE, instructions=offline_instructions
            ),
            PaymentMethod.ON_SITE: OfflinePaymentProvider(PaymentMethod.ON_SITE),
        }
