from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from checkout_api.domain.entities import (
    PurchaseContext,
    Reservation,
    ReservationStatusAndValidation,
)
from checkout_api.domain.enums import PaymentMethod, PurchaseContextType, parse_reservation_status
from checkout_api.infrastructure.db.models import ReservationModel


class ReservationNotFoundError(LookupError):
    pass


class SQLReservationRepository:
    """Reservation lookups, always scoped to the purchase context they belong to."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_id(
        self,
        context: PurchaseContext,
        reservation_id: str,
    ) -> Reservation | None:
        async with self._session_factory() as session:
            result = await session.exec(
                select(ReservationModel).where(
                    ReservationModel.id == reservation_id,
                    ReservationModel.purchase_context_type == context.type.value,
                    ReservationModel.purchase_context_id == context.context_id,
                )
            )
            model = result.one_or_none()
            return None if model is None else self._to_domain(model)

    async def find_status_and_validation(
        self,
        context: PurchaseContext,
        reservation_id: str,
    ) -> ReservationStatusAndValidation | None:
        async with self._session_factory() as session:
            result = await session.exec(
                select(ReservationModel.status, ReservationModel.validated).where(
                    ReservationModel.id == reservation_id,
                    ReservationModel.purchase_context_type == context.type.value,
                    ReservationModel.purchase_context_id == context.context_id,
                )
            )
            row = result.one_or_none()
            if row is None:
                return None
            status, validated = row
            return ReservationStatusAndValidation(
                status=parse_reservation_status(status),
                validated=validated,
            )

    async def update_payment_method(
        self,
        reservation_id: str,
        payment_method: PaymentMethod,
    ) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.exec(
                    update(ReservationModel)
                    .where(ReservationModel.id == reservation_id)
                    .values(payment_method=payment_method.value)
                )
                if result.rowcount == 0:
                    raise ReservationNotFoundError(f"Reservation not found for id={reservation_id}")

    @staticmethod
    def _to_domain(model: ReservationModel) -> Reservation:
        return Reservation(
            id=model.id,
            status=parse_reservation_status(model.status),
            validated=model.validated,
            purchase_context_type=PurchaseContextType(model.purchase_context_type),
            purchase_context_id=model.purchase_context_id,
            payment_method=PaymentMethod.safe_parse(model.payment_method),
            final_price_cents=model.final_price_cents,
            currency=model.currency,
            validity=model.validity,
            created_at=model.created_at,
        )
