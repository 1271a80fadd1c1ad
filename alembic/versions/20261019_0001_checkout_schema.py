"""checkout schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("short_name", sa.String(length=128), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="EUR"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_short_name", "events", ["short_name"], unique=True)
    op.create_index("ix_events_organization_id", "events", ["organization_id"], unique=False)

    op.create_table(
        "subscription_descriptors",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="EUR"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_subscription_descriptors_organization_id",
        "subscription_descriptors",
        ["organization_id"],
        unique=False,
    )

    op.create_table(
        "tickets_reservation",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=False),
        sa.Column("validated", sa.Boolean(), nullable=True),
        sa.Column("purchase_context_type", sa.String(length=20), nullable=False),
        sa.Column("purchase_context_id", sa.String(length=64), nullable=False),
        sa.Column("payment_method", sa.String(length=40), nullable=True),
        sa.Column("final_price_cents", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="EUR"),
        sa.Column("validity", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tickets_reservation_status", "tickets_reservation", ["status"], unique=False)
    op.create_index(
        "ix_tickets_reservation_purchase_context_id",
        "tickets_reservation",
        ["purchase_context_id"],
        unique=False,
    )

    op.create_table(
        "payment_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reservation_id", sa.String(length=64), nullable=False),
        sa.Column("payment_method", sa.String(length=40), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="INITIALIZING"),
        sa.Column("gateway_id", sa.String(length=255), nullable=True),
        sa.Column("claim_id", sa.String(length=32), nullable=True),
        sa.Column("token_payload", sa.JSON(), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reservation_id", name="uq_payment_transactions_reservation"),
    )


def downgrade() -> None:
    op.drop_table("payment_transactions")
    op.drop_index("ix_tickets_reservation_purchase_context_id", table_name="tickets_reservation")
    op.drop_index("ix_tickets_reservation_status", table_name="tickets_reservation")
    op.drop_table("tickets_reservation")
    op.drop_index(
        "ix_subscription_descriptors_organization_id",
        table_name="subscription_descriptors",
    )
    op.drop_table("subscription_descriptors")
    op.drop_index("ix_events_organization_id", table_name="events")
    op.drop_index("ix_events_short_name", table_name="events")
    op.drop_table("events")
