import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from checkout_api.domain.enums import PaymentMethod
from checkout_api.domain.ports import TransactionClaim
from checkout_api.domain.value_objects import TransactionInitializationToken
from checkout_api.infrastructure.db.models import PaymentTransactionModel

logger = logging.getLogger(__name__)

INITIALIZING = "INITIALIZING"
INITIALIZED = "INITIALIZED"


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _new_claim_id() -> str:
    return uuid.uuid4().hex


class SQLTransactionClaimStore:
    """Exclusive initialization claims backed by the unique reservation key.

    Inserting the row is the claim, so a reservation has a single payment
    transaction whatever the method. A losing writer reads the row back and
    either receives the finished token or learns that the owner is still
    busy. Completing and releasing only touch the row while `claim_id` still
    matches, so an owner whose claim was taken over cannot clobber the new one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def claim(
        self,
        reservation_id: str,
        payment_method: PaymentMethod,
        claimed_at: datetime,
        stale_before: datetime,
    ) -> TransactionClaim:
        claim_id = _new_claim_id()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        PaymentTransactionModel(
                            reservation_id=reservation_id,
                            payment_method=payment_method.value,
                            status=INITIALIZING,
                            claim_id=claim_id,
                            claimed_at=claimed_at,
                        )
                    )
            return TransactionClaim(acquired=True, claim_id=claim_id)
        except IntegrityError:
            logger.info(
                "transaction_claim_conflict reservation_id=%s method=%s",
                reservation_id,
                payment_method.value,
            )

        async with self._session_factory() as session:
            async with session.begin():
                result = await session.exec(
                    select(PaymentTransactionModel)
                    .where(PaymentTransactionModel.reservation_id == reservation_id)
                    .with_for_update()
                )
                model = result.one_or_none()
                if model is None:
                    return TransactionClaim(acquired=False)
                if model.status == INITIALIZED and model.token_payload:
                    return TransactionClaim(
                        acquired=False,
                        token=TransactionInitializationToken.from_storage(model.token_payload),
                    )
                if _as_utc(model.claimed_at) < _as_utc(stale_before):
                    logger.warning(
                        "transaction_claim_taken_over reservation_id=%s from_method=%s method=%s",
                        reservation_id,
                        model.payment_method,
                        payment_method.value,
                    )
                    model.payment_method = payment_method.value
                    model.claim_id = claim_id
                    model.claimed_at = claimed_at
                    session.add(model)
                    return TransactionClaim(acquired=True, claim_id=claim_id)
                return TransactionClaim(acquired=False)

    async def complete(
        self,
        reservation_id: str,
        claim_id: str,
        token: TransactionInitializationToken,
    ) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.exec(
                    update(PaymentTransactionModel)
                    .where(
                        PaymentTransactionModel.reservation_id == reservation_id,
                        PaymentTransactionModel.claim_id == claim_id,
                        PaymentTransactionModel.status == INITIALIZING,
                    )
                    .values(
                        status=INITIALIZED,
                        gateway_id=token.gateway_id,
                        token_payload=token.to_storage(),
                    )
                )
                return result.rowcount == 1

    async def release(self, reservation_id: str, claim_id: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.exec(
                    delete(PaymentTransactionModel).where(
                        PaymentTransactionModel.reservation_id == reservation_id,
                        PaymentTransactionModel.claim_id == claim_id,
                        PaymentTransactionModel.status == INITIALIZING,
                    )
                )

    async def find_token(self, reservation_id: str) -> TransactionInitializationToken | None:
        async with self._session_factory() as session:
            result = await session.exec(
                select(PaymentTransactionModel).where(
                    PaymentTransactionModel.reservation_id == reservation_id,
                    PaymentTransactionModel.status == INITIALIZED,
                )
            )
            model = result.one_or_none()
            if model is None or not model.token_payload:
                return None
            return TransactionInitializationToken.from_storage(model.token_payload)
