from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine, text

from checkout_api.infrastructure.db.session import build_database_url, sync_database_url
from checkout_api.shared.config.settings import settings


def main() -> None:
    """Load sample events, a subscription and reservations in every routing state."""
    load_dotenv()
    sql_path = Path(__file__).with_name("seed_dev_data.sql")
    if not sql_path.exists():
        raise FileNotFoundError(f"Seed SQL file not found: {sql_path}")

    statements = [stmt.strip() for stmt in sql_path.read_text(encoding="utf-8").split(";") if stmt.strip()]
    engine = create_engine(sync_database_url(build_database_url(settings)), pool_pre_ping=True)
    try:
        with engine.begin() as connection:
            for statement in statements:
                connection.execute(text(statement))
    finally:
        engine.dispose()

    print(f"Seed data applied successfully ({len(statements)} statements).")


if __name__ == "__main__":
    main()
