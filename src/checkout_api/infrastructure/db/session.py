from urllib.parse import quote_plus

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from checkout_api.shared.config.settings import Settings, settings

ASYNC_DRIVER = "aiomysql"
SYNC_DRIVER = "pymysql"


def build_database_url(app_settings: Settings) -> str:
    """Build async SQLAlchemy URL from explicit URL or MySQL settings."""
    if app_settings.database_url:
        return app_settings.database_url

    password = quote_plus(app_settings.mysql_password)
    return (
        f"mysql+{ASYNC_DRIVER}://"
        f"{app_settings.mysql_user}:{password}@"
        f"{app_settings.mysql_host}:{app_settings.mysql_port}/"
        f"{app_settings.mysql_database}"
    )


def sync_database_url(url: str | URL) -> URL:
    """Point a MySQL URL at the blocking driver used by migrations and scripts."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "mysql":
        return parsed
    return parsed.set(drivername=f"mysql+{SYNC_DRIVER}")


def create_session_factory(
    app_settings: Settings = settings,
) -> async_sessionmaker[AsyncSession]:
    """Async session factory for the checkout tables.

    Sessions keep loaded rows usable after commit because repositories map
    them to domain objects once the transaction is closed.
    """
    engine = create_async_engine(
        build_database_url(app_settings),
        echo=app_settings.app_debug,
        pool_pre_ping=True,
        pool_size=app_settings.db_pool_size,
        max_overflow=app_settings.db_max_overflow,
        pool_timeout=app_settings.db_pool_timeout_seconds,
        pool_recycle=app_settings.db_pool_recycle_seconds,
    )
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
