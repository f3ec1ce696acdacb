"""
Table store - typed insert/upsert/select/update against the crawls and orders tables.

Each call runs in its own short transaction, so a failed statement never
poisons the next one (PostgreSQL aborts the whole transaction on error).
Driver errors are classified here, once, into:

- MissingConstraintError: ON CONFLICT target has no matching unique index
- DuplicateKeyError: the insert hit an existing unique key
- StoreError: anything else

upsert_with_fallback() uses that classification to keep working on
databases where the unique index on the natural key was never created.
"""
import logging
from typing import Any, Optional, Type

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crawlsync.database import Base

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
PG_INVALID_COLUMN_REFERENCE = "42P10"  # no unique/exclusion constraint matching ON CONFLICT
PG_UNIQUE_VIOLATION = "23505"

_MISSING_CONSTRAINT_MESSAGES = (
    "no unique or exclusion constraint matching the on conflict",
    "on conflict clause does not match any primary key or unique constraint",
)
_DUPLICATE_KEY_MESSAGES = (
    "duplicate key value violates unique constraint",
    "unique constraint failed",
)


class StoreError(Exception):
    """A table store operation failed."""


class MissingConstraintError(StoreError):
    """Upsert target column has no unique constraint."""


class DuplicateKeyError(StoreError):
    """Insert collided with an existing row on a unique key."""


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def classify_store_error(exc: DBAPIError) -> StoreError:
    """Map a driver error onto the store's error taxonomy."""
    code = _sqlstate(exc)
    message = str(getattr(exc, "orig", None) or exc).lower()

    if code == PG_INVALID_COLUMN_REFERENCE or any(m in message for m in _MISSING_CONSTRAINT_MESSAGES):
        return MissingConstraintError(str(exc))
    if code == PG_UNIQUE_VIOLATION or any(m in message for m in _DUPLICATE_KEY_MESSAGES):
        return DuplicateKeyError(str(exc))
    return StoreError(str(exc))


class TableStore:
    """SQLAlchemy-backed store. Values are plain column dicts."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _execute(self, statement) -> Any:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    return await session.execute(statement)
        except DBAPIError as e:
            raise classify_store_error(e) from e

    async def upsert(self, model: Type[Base], values: dict, on_conflict: str) -> None:
        """INSERT ... ON CONFLICT (on_conflict) DO UPDATE with every other column."""
        async with self._session_factory() as session:
            dialect = session.bind.dialect.name
        if dialect == "postgresql":
            statement = pg_insert(model.__table__).values(**values)
        elif dialect == "sqlite":
            statement = sqlite_insert(model.__table__).values(**values)
        else:
            raise StoreError(f"Upsert not supported on {dialect}")

        changes = {
            column: statement.excluded[column]
            for column in values
            if column != on_conflict
        }
        statement = statement.on_conflict_do_update(index_elements=[on_conflict], set_=changes)
        await self._execute(statement)

    async def insert(self, model: Type[Base], values: dict) -> None:
        await self._execute(insert(model.__table__).values(**values))

    async def select_by_key(self, model: Type[Base], key: str, value: Any) -> Optional[dict]:
        """First row matching ``key == value`` as a dict, or None."""
        column = model.__table__.c[key]
        result = await self._execute(select(model.__table__).where(column == value).limit(1))
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def update_by_key(self, model: Type[Base], key: str, value: Any, values: dict) -> None:
        changes = {column: val for column, val in values.items() if column != key}
        column = model.__table__.c[key]
        await self._execute(update(model.__table__).where(column == value).values(**changes))


async def upsert_with_fallback(
    store: TableStore,
    model: Type[Base],
    record: dict,
    key: str,
) -> str:
    """
    Upsert ``record`` keyed on ``key``, returning how it was written
    ("upserted", "updated" or "inserted").

    Without a unique constraint on ``key`` the upsert is emulated with
    select -> update/insert, and an insert that loses a race to a concurrent
    delivery is retried once as an update. A record whose key is None is
    always inserted. Other StoreErrors propagate.
    """
    table = model.__tablename__
    key_value = record.get(key)

    try:
        await store.upsert(model, record, on_conflict=key)
        return "upserted"
    except MissingConstraintError:
        logger.warning(
            "No unique constraint on %s.%s - falling back to select/update/insert",
            table, key,
        )

    if key_value is None:
        # NULL keys never conflict, so there is no existing row to update
        logger.warning("Record for %s has no %s - inserting as a new row", table, key)
        await store.insert(model, record)
        return "inserted"

    existing = await store.select_by_key(model, key, key_value)
    if existing is not None:
        await store.update_by_key(model, key, key_value, record)
        return "updated"

    try:
        await store.insert(model, record)
        return "inserted"
    except DuplicateKeyError:
        logger.info("Concurrent insert on %s.%s=%s - retrying as update", table, key, key_value)

    await store.update_by_key(model, key, key_value, record)
    return "updated"
