import os
import re
import uuid

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine
from sqlmodel.ext.asyncio.session import AsyncSession

# Registers every table on SQLModel.metadata before create_all.
from checkout_api.infrastructure.db.models import (
    EventModel,
    ReservationModel,
    SubscriptionDescriptorModel,
)
from checkout_api.infrastructure.db.session import sync_database_url
from fakes import SUBSCRIPTION_ID

load_dotenv()

# Children first so TRUNCATE never trips a foreign key.
CHECKOUT_TABLES = (
    "payment_transactions",
    "tickets_reservation",
    "subscription_descriptors",
    "events",
)
MAX_DATABASE_NAME_LENGTH = 64


def _checkout_test_url() -> URL:
    """URL of the `_test` schema the isolated per-session databases derive from."""
    raw_test_url = os.getenv("MYSQL_TEST_DATABASE_URL")
    raw_url = raw_test_url or os.getenv("DATABASE_URL")
    if not raw_url:
        pytest.skip("MYSQL_TEST_DATABASE_URL (or DATABASE_URL) not set; skipping MySQL tests.")

    url = make_url(raw_url)
    if url.get_backend_name() != "mysql":
        pytest.fail("Test database must use MySQL.")
    if not url.database:
        pytest.fail("Database URL must include a database name.")
    if raw_test_url and not url.database.endswith("_test"):
        pytest.fail("MYSQL_TEST_DATABASE_URL database name must end with '_test'.")
    if not url.database.endswith("_test"):
        url = url.set(database=f"{url.database}_test")
    return url


def _run_on_server(sync_url: URL, statement: str) -> None:
    """Execute a statement against the server itself, outside any schema."""
    engine = create_engine(sync_url.set(database=None), pool_pre_ping=True)
    try:
        with engine.begin() as connection:
            connection.execute(text(statement))
    finally:
        engine.dispose()


def _truncate_statements() -> list[str]:
    return [
        "SET FOREIGN_KEY_CHECKS = 0",
        *(f"TRUNCATE TABLE `{table}`" for table in CHECKOUT_TABLES),
        "SET FOREIGN_KEY_CHECKS = 1",
    ]


@pytest.fixture(scope="session")
def mysql_test_urls() -> tuple[str, str]:
    base_url = _checkout_test_url()
    database = f"{base_url.database}_{uuid.uuid4().hex[:8]}"[:MAX_DATABASE_NAME_LENGTH]
    if not re.fullmatch(r"[A-Za-z0-9_]+", database):
        pytest.fail("Test database name contains unsupported characters.")

    async_url = base_url.set(database=database)
    sync_url = sync_database_url(async_url)
    _run_on_server(
        sync_url,
        f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_0900_ai_ci",
    )
    bootstrap_engine = create_engine(sync_url, pool_pre_ping=True)
    try:
        SQLModel.metadata.create_all(bootstrap_engine, checkfirst=False)
    finally:
        bootstrap_engine.dispose()

    try:
        yield (
            async_url.render_as_string(hide_password=False),
            sync_url.render_as_string(hide_password=False),
        )
    finally:
        _run_on_server(sync_url, f"DROP DATABASE IF EXISTS `{database}`")


@pytest.fixture(scope="session")
def mysql_sync_engine(mysql_test_urls: tuple[str, str]):
    _, sync_url = mysql_test_urls
    engine = create_engine(sync_url, pool_pre_ping=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def reset_mysql_schema(mysql_sync_engine):
    with mysql_sync_engine.begin() as connection:
        for statement in _truncate_statements():
            connection.execute(text(statement))
    return mysql_sync_engine


@pytest_asyncio.fixture
async def mysql_async_session_factory(
    mysql_test_urls: tuple[str, str],
) -> async_sessionmaker[AsyncSession]:
    async_url, _ = mysql_test_urls
    engine = create_async_engine(async_url, poolclass=NullPool, pool_pre_ping=False)
    try:
        async with engine.begin() as connection:
            for statement in _truncate_statements():
                await connection.execute(text(statement))
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def seeded_purchase_contexts(
    mysql_async_session_factory: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """Two events (devconf in EUR, jazzfest in CHF) and one subscription."""
    async with mysql_async_session_factory() as session:
        async with session.begin():
            session.add(EventModel(id=1, short_name="devconf", organization_id=1, display_name="DevConf"))
            session.add(
                EventModel(id=2, short_name="jazzfest", organization_id=2, display_name="Jazz", currency="CHF")
            )
            session.add(SubscriptionDescriptorModel(id=SUBSCRIPTION_ID, organization_id=1, title="Season pass"))
    return mysql_async_session_factory


@pytest_asyncio.fixture
async def seeded_reservations(
    seeded_purchase_contexts: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """Reservations covering the lookups the checkout flow makes.

    `res-devconf` is payable, `res-legacy` carries a status this service
    does not know and `res-sub` is a paid subscription purchase.
    """
    async with seeded_purchase_contexts() as session:
        async with session.begin():
            session.add(
                ReservationModel(
                    id="res-devconf",
                    status="PENDING",
                    validated=True,
                    purchase_context_type="event",
                    purchase_context_id="1",
                    final_price_cents=12000,
                )
            )
            session.add(
                ReservationModel(
                    id="res-legacy",
                    status="PRE_1_0_STATUS",
                    validated=False,
                    purchase_context_type="event",
                    purchase_context_id="1",
                )
            )
            session.add(
                ReservationModel(
                    id="res-sub",
                    status="COMPLETE",
                    validated=True,
                    purchase_context_type="subscription",
                    purchase_context_id=SUBSCRIPTION_ID,
                    payment_method="CREDIT_CARD",
                )
            )
    return seeded_purchase_contexts
