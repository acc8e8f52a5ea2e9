"""
PostgreSQL Connection Module.

Manages the PostgreSQL connection pool and the startup schema check.
"""

import asyncpg
from loguru import logger

from config.settings import PostgresSettings, get_settings

pg_log = logger.bind(module="Postgres")


class SchemaError(Exception):
    """The vessels table is missing from the database."""


class PostgresConnection:
    """PostgreSQL connection manager."""

    def __init__(self, settings: PostgresSettings | None = None):
        """Initialize PostgreSQL connection."""
        self.settings = settings or get_settings().postgres
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Connect to PostgreSQL."""
        pg_log.info(f"Connecting to PostgreSQL at {self.settings.host}:{self.settings.port}")
        self._pool = await asyncpg.create_pool(
            host=self.settings.host,
            port=self.settings.port,
            user=self.settings.user,
            password=self.settings.password,
            database=self.settings.name,
            min_size=1,
            max_size=self.settings.pool_max,
        )
        pg_log.info("PostgreSQL connected successfully")

    async def close(self) -> None:
        """Close PostgreSQL connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            pg_log.info("PostgreSQL connection closed")

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool."""
        if not self._pool:
            raise RuntimeError("PostgreSQL not connected. Call connect() first.")
        return self._pool

    async def verify_schema(self) -> None:
        """
        Check that the vessels table exists.

        Raises:
            SchemaError: Table is missing
        """
        query = """
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_schema = 'public' AND table_name = $1
        )
        """
        table = self.settings.table
        async with self.pool.acquire() as conn:
            exists = await conn.fetchval(query, table)
        if not exists:
            raise SchemaError(
                f"{table} table does not exist in the database. "
                "Create it before running the scraper."
            )
        pg_log.info(f"Table {table} found")


# Singleton instance
_postgres: PostgresConnection | None = None


async def get_postgres() -> PostgresConnection:
    """Get PostgreSQL connection singleton."""
    global _postgres
    if _postgres is None:
        _postgres = PostgresConnection()
        await _postgres.connect()
    return _postgres


async def close_postgres() -> None:
    """Close PostgreSQL connection."""
    global _postgres
    if _postgres:
        await _postgres.close()
        _postgres = None
