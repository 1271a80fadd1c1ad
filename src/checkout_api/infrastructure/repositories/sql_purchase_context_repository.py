from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from checkout_api.domain.entities import PurchaseContext
from checkout_api.domain.enums import PurchaseContextType
from checkout_api.infrastructure.db.models import EventModel, SubscriptionDescriptorModel


class SQLPurchaseContextRepository:
    """Read-only lookup of events and subscriptions by their public identifier."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_type_and_identifier(
        self,
        context_type: PurchaseContextType,
        identifier: str,
    ) -> PurchaseContext | None:
        if context_type == PurchaseContextType.EVENT:
            return await self._find_event(identifier)
        return await self._find_subscription(identifier)

    async def _find_event(self, short_name: str) -> PurchaseContext | None:
        async with self._session_factory() as session:
            result = await session.exec(select(EventModel).where(EventModel.short_name == short_name))
            model = result.one_or_none()
            if model is None:
                return None
            return PurchaseContext(
                type=PurchaseContextType.EVENT,
                identifier=model.short_name,
                context_id=str(model.id),
                organization_id=model.organization_id,
                display_name=model.display_name,
                currency=model.currency,
            )

    async def _find_subscription(self, subscription_id: str) -> PurchaseContext | None:
        async with self._session_factory() as session:
            result = await session.exec(
                select(SubscriptionDescriptorModel).where(SubscriptionDescriptorModel.id == subscription_id)
            )
            model = result.one_or_none()
            if model is None:
                return None
            return PurchaseContext(
                type=PurchaseContextType.SUBSCRIPTION,
                identifier=model.id,
                context_id=model.id,
                organization_id=model.organization_id,
                display_name=model.title,
                currency=model.currency,
            )
