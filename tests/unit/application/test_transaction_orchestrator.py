import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from checkout_api.application import (
    InvalidPurchaseRequestError,
    PurchaseContextResolver,
    PurchaseNotFoundError,
    TransactionAlreadyInitiatedError,
    TransactionOrchestrator,
)
from checkout_api.domain.enums import PaymentMethod, PaymentResultType, ReservationStatus
from checkout_api.domain.ports import ProviderRejectedError, ProviderUnavailableError
from checkout_api.domain.value_objects import PaymentResult, TransactionInitializationToken
from fakes import (
    DEVCONF,
    JAZZFEST,
    InMemoryPurchaseContextStore,
    InMemoryReservationStore,
    InMemoryTransactionClaimStore,
    SpyPaymentProvider,
    make_reservation,
    rejected,
    unavailable,
)


class SpyAuditLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def log_transaction_initialized(self, *, reservation_id, payment_method, context=None) -> None:
        self.events.append(("initialized", reservation_id, context or {}))

    def log_transaction_rejected(self, *, reservation_id, payment_method, context=None) -> None:
        self.events.append(("rejected", reservation_id, context or {}))

    def log_status_checked(self, *, reservation_id, payment_method, forced, context=None) -> None:
        self.events.append(("force_checked" if forced else "checked", reservation_id, context or {}))


class Harness:
    def __init__(self, *reservations, clock=None, **timeouts) -> None:
        self.reservations = InMemoryReservationStore(*reservations)
        self.claims = InMemoryTransactionClaimStore()
        self.card = SpyPaymentProvider(PaymentMethod.CREDIT_CARD)
        self.audit = SpyAuditLogger()
        self.external = SpyPaymentProvider(PaymentMethod.EXTERNAL)
        self.providers = {PaymentMethod.CREDIT_CARD: self.card, PaymentMethod.EXTERNAL: self.external}
        self.orchestrator = TransactionOrchestrator(
            resolver=PurchaseContextResolver(
                InMemoryPurchaseContextStore(DEVCONF, JAZZFEST),
                self.reservations,
            ),
            reservation_store=self.reservations,
            claim_store=self.claims,
            providers=self.providers,
            audit_logger=self.audit,
            clock=clock,
            **timeouts,
        )


@pytest.mark.asyncio
async def test_init_transaction_returns_provider_token_and_records_method() -> None:
    harness = Harness(make_reservation("res-1"))

    token = await harness.orchestrator.init_transaction(
        "event", "devconf", "res-1", "credit-card", {"paymentMethodId": ["pm_card_visa"]}
    )

    assert token.gateway_id == "gw_res-1_1"
    assert harness.card.last_params == {"paymentMethodId": ["pm_card_visa"]}
    assert harness.reservations.reservations["res-1"].payment_method == PaymentMethod.CREDIT_CARD
    assert await harness.claims.find_token("res-1") == token
    assert harness.audit.events[0][0] == "initialized"


@pytest.mark.asyncio
async def test_init_transaction_with_bogus_method_is_invalid_without_provider_call() -> None:
    harness = Harness(make_reservation("res-1"))

    with pytest.raises(InvalidPurchaseRequestError, match="bogus"):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "bogus", {})

    assert harness.card.init_calls == 0
    assert harness.reservations.lookups == 0


@pytest.mark.asyncio
async def test_init_transaction_with_unregistered_method_is_invalid() -> None:
    harness = Harness(make_reservation("res-1"))

    with pytest.raises(InvalidPurchaseRequestError, match="not supported"):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "on-site", {})


@pytest.mark.asyncio
async def test_init_transaction_for_foreign_reservation_is_not_found() -> None:
    harness = Harness(make_reservation("res-1", JAZZFEST))

    with pytest.raises(PurchaseNotFoundError):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert harness.card.init_calls == 0


@pytest.mark.asyncio
async def test_init_transaction_on_paid_reservation_is_rejected() -> None:
    harness = Harness(make_reservation("res-1", status=ReservationStatus.COMPLETE))

    with pytest.raises(TransactionAlreadyInitiatedError):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert harness.card.init_calls == 0


@pytest.mark.asyncio
async def test_concurrent_init_transactions_create_a_single_token() -> None:
    harness = Harness(make_reservation("res-1"))
    harness.card.init_delay_seconds = 0.05

    results = await asyncio.gather(
        harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {}),
        harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {}),
        return_exceptions=True,
    )

    tokens = [result for result in results if not isinstance(result, Exception)]
    errors = [result for result in results if isinstance(result, Exception)]
    assert len(tokens) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], TransactionAlreadyInitiatedError)
    assert harness.card.init_calls == 1


@pytest.mark.asyncio
async def test_repeated_init_after_completion_returns_stored_token() -> None:
    harness = Harness(make_reservation("res-1"))

    first = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})
    second = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert second == first
    assert harness.card.init_calls == 1


@pytest.mark.asyncio
async def test_stale_claim_is_taken_over() -> None:
    now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    harness = Harness(
        make_reservation("res-1"),
        clock=lambda: now,
        claim_timeout_seconds=60,
    )
    harness.claims.rows["res-1"] = {
        "payment_method": PaymentMethod.CREDIT_CARD,
        "claim_id": "claim-old",
        "claimed_at": now - timedelta(minutes=5),
        "token": None,
    }

    token = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert token.gateway_id is not None
    assert harness.card.init_calls == 1
    assert harness.claims.rows["res-1"]["claim_id"] == "claim-1"


@pytest.mark.asyncio
async def test_concurrent_init_with_different_methods_creates_a_single_transaction() -> None:
    harness = Harness(make_reservation("res-1"))
    external = harness.external
    harness.card.init_delay_seconds = 0.05
    external.init_delay_seconds = 0.05

    results = await asyncio.gather(
        harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {}),
        harness.orchestrator.init_transaction("event", "devconf", "res-1", "external", {}),
        return_exceptions=True,
    )

    tokens = [result for result in results if not isinstance(result, Exception)]
    errors = [result for result in results if isinstance(result, Exception)]
    assert len(tokens) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], TransactionAlreadyInitiatedError)
    assert harness.card.init_calls + external.init_calls == 1

    winner = harness.card if tokens[0].payment_method == PaymentMethod.CREDIT_CARD else external
    await harness.orchestrator.force_check_status("event", "devconf", "res-1")
    assert winner.status_calls == [True]
    assert harness.reservations.reservations["res-1"].payment_method == tokens[0].payment_method


@pytest.mark.asyncio
async def test_init_with_other_method_after_completion_is_refused_without_provider_call() -> None:
    harness = Harness(make_reservation("res-1"))
    external = harness.external
    first = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    with pytest.raises(TransactionAlreadyInitiatedError, match="CREDIT_CARD"):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "external", {})

    assert external.init_calls == 0
    assert await harness.claims.find_token("res-1") == first

    with pytest.raises(PurchaseNotFoundError, match="No EXTERNAL transaction"):
        await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "external")


@pytest.mark.asyncio
async def test_owner_whose_stale_claim_was_taken_over_cannot_overwrite_the_new_token() -> None:
    clock = {"now": datetime(2026, 10, 19, 12, 0, tzinfo=UTC)}
    harness = Harness(
        make_reservation("res-1"),
        clock=lambda: clock["now"],
        claim_timeout_seconds=60,
    )
    harness.card.init_delay_seconds = 0.1

    slow = asyncio.create_task(
        harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})
    )
    await asyncio.sleep(0.01)
    clock["now"] += timedelta(minutes=5)
    fresh = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "external", {})

    with pytest.raises(TransactionAlreadyInitiatedError, match="taken over"):
        await slow

    assert await harness.claims.find_token("res-1") == fresh
    assert harness.reservations.reservations["res-1"].payment_method == PaymentMethod.EXTERNAL
    assert [event[0] for event in harness.audit.events] == ["initialized"]


@pytest.mark.asyncio
async def test_rejected_initialization_releases_claim_and_propagates_reason() -> None:
    harness = Harness(make_reservation("res-1"))
    harness.card.init_error = rejected("Insufficient funds")

    with pytest.raises(ProviderRejectedError) as exc_info:
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert exc_info.value.reason == "Insufficient funds"
    assert harness.claims.released == [("res-1", "claim-1")]
    assert harness.reservations.reservations["res-1"].payment_method is None
    assert harness.audit.events == [
        ("rejected", "res-1", {"reason": "Insufficient funds", "error_code": "card_declined"})
    ]


@pytest.mark.asyncio
async def test_unreachable_provider_during_init_is_a_fault() -> None:
    harness = Harness(make_reservation("res-1"))
    harness.card.init_error = unavailable()

    with pytest.raises(ProviderUnavailableError):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert harness.claims.rows == {}


@pytest.mark.asyncio
async def test_slow_initialization_times_out_as_unavailable_and_releases_claim() -> None:
    harness = Harness(make_reservation("res-1"), init_timeout_seconds=0.01)
    harness.card.init_delay_seconds = 1.0

    with pytest.raises(ProviderUnavailableError, match="did not answer"):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert harness.claims.released == [("res-1", "claim-1")]


@pytest.mark.asyncio
async def test_init_after_failure_can_be_retried() -> None:
    harness = Harness(make_reservation("res-1"))
    harness.card.init_error = unavailable()
    with pytest.raises(ProviderUnavailableError):
        await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    harness.card.init_error = None
    token = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    assert token.reservation_id == "res-1"
    assert harness.card.init_calls == 2


@pytest.mark.asyncio
async def test_get_transaction_status_queries_provider_without_forcing() -> None:
    harness = Harness(make_reservation("res-1"))
    harness.card.status_result = PaymentResult.successful("gw_res-1_1")
    await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    result = await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "CREDIT_CARD")

    assert result.type == PaymentResultType.SUCCESSFUL
    assert harness.card.status_calls == [False]
    assert harness.audit.events[-1][0] == "checked"


@pytest.mark.asyncio
async def test_get_transaction_status_is_repeatable() -> None:
    harness = Harness(make_reservation("res-1"))
    await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    first = await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "credit-card")
    second = await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "credit-card")

    assert first == second
    assert harness.reservations.reservations["res-1"].status == ReservationStatus.PENDING


@pytest.mark.asyncio
async def test_get_transaction_status_without_transaction_is_not_found() -> None:
    harness = Harness(make_reservation("res-1"))

    with pytest.raises(PurchaseNotFoundError, match="No CREDIT_CARD transaction"):
        await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "credit-card")

    assert harness.card.status_calls == []


@pytest.mark.asyncio
async def test_get_transaction_status_with_bogus_method_is_invalid() -> None:
    harness = Harness(make_reservation("res-1"))

    with pytest.raises(InvalidPurchaseRequestError):
        await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "bogus")


@pytest.mark.asyncio
async def test_status_timeout_is_reported_as_pending() -> None:
    harness = Harness(make_reservation("res-1"), status_timeout_seconds=0.01)
    token = await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})
    harness.card.status_delay_seconds = 1.0

    result = await harness.orchestrator.get_transaction_status("event", "devconf", "res-1", "credit-card")

    assert result.type == PaymentResultType.PENDING
    assert result.gateway_id == token.gateway_id


@pytest.mark.asyncio
async def test_unavailable_provider_during_status_is_reported_as_pending() -> None:
    harness = Harness(make_reservation("res-1"))
    await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})
    harness.card.status_error = unavailable()

    result = await harness.orchestrator.force_check_status("event", "devconf", "res-1")

    assert result.type == PaymentResultType.PENDING
    assert result.message == "Payment provider unavailable"


@pytest.mark.asyncio
async def test_force_check_uses_stored_payment_method_and_bypasses_cache() -> None:
    harness = Harness(make_reservation("res-1"))
    await harness.orchestrator.init_transaction("event", "devconf", "res-1", "credit-card", {})

    await harness.orchestrator.force_check_status("event", "devconf", "res-1")

    assert harness.card.status_calls == [True]
    assert harness.audit.events[-1][0] == "force_checked"


@pytest.mark.asyncio
async def test_force_check_through_foreign_context_is_not_found_without_provider_call() -> None:
    reservation = make_reservation("res-1", JAZZFEST, payment_method=PaymentMethod.CREDIT_CARD)
    harness = Harness(reservation)

    with pytest.raises(PurchaseNotFoundError):
        await harness.orchestrator.force_check_status("event", "devconf", "res-1")

    assert harness.card.status_calls == []


@pytest.mark.asyncio
async def test_force_check_without_transaction_is_not_found() -> None:
    harness = Harness(make_reservation("res-1", payment_method=PaymentMethod.CREDIT_CARD))

    with pytest.raises(PurchaseNotFoundError, match="No payment transaction"):
        await harness.orchestrator.force_check_status("event", "devconf", "res-1")


@pytest.mark.asyncio
async def test_force_check_for_method_without_provider_is_not_found() -> None:
    harness = Harness(make_reservation("res-1", payment_method=PaymentMethod.ON_SITE))
    harness.claims.rows["res-1"] = {
        "payment_method": PaymentMethod.ON_SITE,
        "claim_id": "claim-old",
        "claimed_at": datetime.now(UTC),
        "token": TransactionInitializationToken(reservation_id="res-1", payment_method=PaymentMethod.ON_SITE),
    }

    with pytest.raises(PurchaseNotFoundError, match="No provider"):
        await harness.orchestrator.force_check_status("event", "devconf", "res-1")


def test_orchestrator_rejects_non_positive_timeouts() -> None:
    with pytest.raises(ValueError, match="status_timeout_seconds"):
        Harness(status_timeout_seconds=0)
