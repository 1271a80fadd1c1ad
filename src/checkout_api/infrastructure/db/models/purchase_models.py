from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String, UniqueConstraint, func
from sqlmodel import Column, Field, SQLModel


class EventModel(SQLModel, table=True):
    __tablename__ = "events"

    id: int | None = Field(default=None, primary_key=True)
    short_name: str = Field(sa_column=Column(String(128), nullable=False, unique=True, index=True))
    organization_id: int = Field(nullable=False, index=True)
    display_name: str = Field(sa_column=Column(String(255), nullable=False))
    currency: str = Field(default="EUR", sa_column=Column(String(3), nullable=False))


class SubscriptionDescriptorModel(SQLModel, table=True):
    __tablename__ = "subscription_descriptors"

    id: str = Field(sa_column=Column(String(36), primary_key=True))
    organization_id: int = Field(nullable=False, index=True)
    title: str = Field(sa_column=Column(String(255), nullable=False))
    currency: str = Field(default="EUR", sa_column=Column(String(3), nullable=False))


class ReservationModel(SQLModel, table=True):
    __tablename__ = "tickets_reservation"

    id: str = Field(sa_column=Column(String(64), primary_key=True))
    # Free text: rows may hold legacy statuses unknown to ReservationStatus.
    status: str = Field(sa_column=Column(String(40), nullable=False, index=True))
    validated: bool | None = Field(default=None, sa_column=Column(Boolean, nullable=True))
    purchase_context_type: str = Field(sa_column=Column(String(20), nullable=False))
    purchase_context_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    payment_method: str | None = Field(default=None, sa_column=Column(String(40), nullable=True))
    final_price_cents: int = Field(default=0, nullable=False)
    currency: str = Field(default="EUR", sa_column=Column(String(3), nullable=False))
    validity: datetime | None = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
    )


class PaymentTransactionModel(SQLModel, table=True):
    __tablename__ = "payment_transactions"
    __table_args__ = (
        UniqueConstraint("reservation_id", name="uq_payment_transactions_reservation"),
    )

    id: int | None = Field(default=None, primary_key=True)
    reservation_id: str = Field(sa_column=Column(String(64), nullable=False))
    payment_method: str = Field(sa_column=Column(String(40), nullable=False))
    claim_id: str | None = Field(default=None, sa_column=Column(String(32), nullable=True))
    status: str = Field(default="INITIALIZING", sa_column=Column(String(20), nullable=False))
    gateway_id: str | None = Field(default=None, sa_column=Column(String(255), nullable=True))
    token_payload: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    claimed_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
    )
