"""
Vessel Repository.

Data access layer for vessel records: insert-or-update by SHIP_ID, one
transaction per scrape run.
"""

import re
from datetime import date, datetime, timezone
from typing import Any

import asyncpg
from asyncpg import Pool
from loguru import logger

from src.crawler.types import VesselRecord
from src.utils.transformers import IDENTITY_FIELD

vessels_log = logger.bind(module="Vessels")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")

INTEGER_TYPES = {"smallint", "integer", "bigint"}
FLOAT_TYPES = {"numeric", "real", "double precision"}
TEXT_TYPES = {"text", "character varying", "character"}

# Errors that fail a single record; anything else aborts the batch
RECORD_ERRORS = (asyncpg.PostgresError, ValueError, TypeError)


def column_name(field: str) -> str:
    """
    Map a record field to a SQL column name.

    Raises:
        ValueError: Field name is not a plain SQL identifier
    """
    if not _IDENTIFIER_RE.match(field):
        raise ValueError(f"Unsafe column name: {field!r}")
    return field.lower()


def build_insert_query(table: str, columns: list[str]) -> str:
    """Build an INSERT for the given columns ($1..$n in column order)."""
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


def build_update_query(table: str, columns: list[str], key_column: str) -> str:
    """Build an UPDATE by key ($1) of the given columns ($2..$n+1)."""
    set_clause = ", ".join(f"{col} = ${i}" for i, col in enumerate(columns, start=2))
    return f"UPDATE {table} SET {set_clause} WHERE {key_column} = $1"


def coerce_value(value: Any, data_type: str | None) -> Any:
    """
    Convert a normalized value to what asyncpg expects for a column type.

    Values that cannot be converted are returned unchanged; the database
    rejects them when the record is written.

    Args:
        value: Normalized record value
        data_type: information_schema data_type of the column (None = unknown)

    Returns:
        Converted value
    """
    if value is None or data_type is None:
        return value

    if data_type.startswith("timestamp") and isinstance(value, str):
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        if data_type == "timestamp without time zone" and moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
        return moment

    if data_type == "date" and isinstance(value, str):
        return date.fromisoformat(value.strip())

    if data_type in INTEGER_TYPES:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and re.match(r"^-?\d+$", value.strip()):
            return int(value.strip())
        return value

    if data_type in FLOAT_TYPES and isinstance(value, (str, int)) and not isinstance(value, bool):
        try:
            return float(value)
        except ValueError:
            return value

    if data_type in TEXT_TYPES and not isinstance(value, str):
        return str(value)

    return value


class VesselRepository:
    """Repository for vessel database operations."""

    def __init__(self, pool: Pool, table: str = "vessels_mt"):
        """
        Initialize repository with database connection pool.

        Args:
            pool: asyncpg connection pool
            table: Vessel table name
        """
        self._pool = pool
        self._table = column_name(table)
        self._key = column_name(IDENTITY_FIELD)
        self._columns: dict[str, str] | None = None

    async def load_columns(self, conn) -> dict[str, str]:
        """
        Read column names and types of the vessel table (cached).

        Returns:
            Mapping of column name to information_schema data_type
        """
        if self._columns is None:
            query = """
            SELECT column_name, data_type
            FROM information_schema.columns
            WHERE table_schema = 'public' AND table_name = $1
            """
            rows = await conn.fetch(query, self._table)
            self._columns = {row["column_name"]: row["data_type"] for row in rows}
        return self._columns

    def _prepare(self, fields: dict[str, Any]) -> tuple[list[str], list[Any]]:
        """Map fields to columns and coerce values to column types."""
        columns: list[str] = []
        values: list[Any] = []
        known = self._columns or {}
        for field, value in fields.items():
            col = column_name(field)
            if known and col not in known:
                raise ValueError(f"Unknown column {col!r} in table {self._table}")
            columns.append(col)
            values.append(coerce_value(value, known.get(col)))
        return columns, values

    def _key_value(self, ship_id: Any) -> Any:
        return coerce_value(ship_id, (self._columns or {}).get(self._key))

    async def exists(self, conn, ship_id: Any) -> bool:
        """
        Check if a vessel exists.

        Args:
            conn: Connection inside the run transaction
            ship_id: Identity value

        Returns:
            True if a row with this SHIP_ID exists
        """
        query = f"SELECT 1 FROM {self._table} WHERE {self._key} = $1"
        result = await conn.fetchval(query, self._key_value(ship_id))
        return result is not None

    async def insert(self, conn, record: VesselRecord) -> None:
        """Insert a new vessel with all present fields."""
        columns, values = self._prepare(record)
        await conn.execute(build_insert_query(self._table, columns), *values)

    async def update_partial(self, conn, ship_id: Any, fields: dict[str, Any]) -> bool:
        """
        Update only the given fields of an existing vessel.

        Args:
            conn: Connection inside the run transaction
            ship_id: Identity value
            fields: Fields to update (identity field is ignored)

        Returns:
            False if there was nothing to update
        """
        fields = {k: v for k, v in fields.items() if k != IDENTITY_FIELD}
        if not fields:
            vessels_log.info(f"No fields to update for vessel {ship_id}")
            return False

        columns, values = self._prepare(fields)
        query = build_update_query(self._table, columns, self._key)
        await conn.execute(query, self._key_value(ship_id), *values)
        return True

    async def save(self, conn, record: VesselRecord) -> str:
        """
        Insert or update one vessel.

        Returns:
            "inserted", "updated" or "unchanged"

        Raises:
            ValueError: Record has no SHIP_ID
        """
        ship_id = record.get(IDENTITY_FIELD)
        if ship_id in (None, ""):
            raise ValueError("Record has no SHIP_ID")

        name = record.get("SHIPNAME")
        if await self.exists(conn, ship_id):
            if not await self.update_partial(conn, ship_id, record):
                return "unchanged"
            vessels_log.debug(f"Updated vessel: {name} (ID: {ship_id})")
            return "updated"

        await self.insert(conn, record)
        vessels_log.debug(f"Inserted new vessel: {name} (ID: {ship_id})")
        return "inserted"

    async def save_batch(self, records: list[VesselRecord]) -> tuple[int, int]:
        """
        Save all records of one run in a single transaction.

        Each record runs in its own savepoint, so a bad record is counted
        and skipped without losing the others. Any other error rolls back
        the whole batch and is re-raised.

        Args:
            records: Normalized vessel records

        Returns:
            Tuple of (saved_count, failed_count)
        """
        if not records:
            vessels_log.info("No vessels to save to database")
            return 0, 0

        saved = 0
        failed = 0
        counts = {"inserted": 0, "updated": 0, "unchanged": 0}

        async with self._pool.acquire() as conn:
            await self.load_columns(conn)
            try:
                async with conn.transaction():
                    for record in records:
                        try:
                            async with conn.transaction():
                                action = await self.save(conn, record)
                        except RECORD_ERRORS as e:
                            failed += 1
                            vessels_log.warning(
                                f"Error saving vessel {record.get(IDENTITY_FIELD)}: {e}"
                            )
                            continue
                        saved += 1
                        counts[action] += 1
            except Exception as e:
                vessels_log.error(f"Transaction failed, changes rolled back: {e}")
                raise

        vessels_log.info(
            f"Database update completed: {saved} vessels saved "
            f"({counts['inserted']} new, {counts['updated']} updated, "
            f"{counts['unchanged']} unchanged), {failed} errors"
        )
        return saved, failed
