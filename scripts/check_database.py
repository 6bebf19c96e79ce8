"""
Check that the configured PostgreSQL database accepts connections.

Reads DATABASE_URL through the application settings (environment or .env)
and opens a raw asyncpg connection. Exit code 0 on success, 1 on failure.

    python -m scripts.check_database
"""

import asyncio
import sys

import asyncpg

from transport_backend.app.core.config import settings


def asyncpg_dsn(database_url: str) -> str:
    """SQLAlchemy URLs carry a driver suffix asyncpg does not understand."""
    return database_url.replace("+asyncpg", "", 1)


async def check_db() -> int:
    dsn = asyncpg_dsn(settings.database_url)
    print(f"Testing connection to: {dsn.split('@')[-1]}")
    try:
        conn = await asyncpg.connect(dsn)
    except (OSError, asyncpg.PostgresError) as exc:
        print(f"Connection failed: {exc}")
        return 1
    try:
        version = await conn.fetchval("SELECT version()")
        print(f"Connection successful: {version}")
    finally:
        await conn.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(check_db()))
