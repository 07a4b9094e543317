"""SQL store with async SQLAlchemy.

Handles:
- Engine / connection pool management
- Single statement execution returning typed result sets
- Atomic statement batches (one transaction per batch)

Every operation is bounded by the configured store timeout and reports
failures as StoreError.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql.expression import Executable

from country_counter.settings import get_settings

T = TypeVar("T")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class StoreError(RuntimeError):
    """Connection failure, statement error, constraint violation or timeout."""


@dataclass(frozen=True)
class ResultSet:
    """Rows returned by a statement, with column names in select order."""

    columns: list[str]
    rows: list[tuple[Any, ...]]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


EMPTY_RESULT = ResultSet(columns=[], rows=[])


class Store:
    """Thin client over an async engine.

    Usage:
        store = create_store("sqlite+aiosqlite:///./visits.db")
        await store.execute_batch([stmt1, stmt2])
        result = await store.execute(select(...))
    """

    def __init__(self, engine: AsyncEngine, *, timeout: float = 5.0):
        self._engine = engine
        self._timeout = timeout

    @property
    def dialect_name(self) -> str:
        """SQL dialect of the underlying engine (e.g. "sqlite", "postgresql")."""
        return self._engine.dialect.name

    async def execute(self, statement: Executable) -> ResultSet:
        """Execute a single statement in its own transaction.

        Returns:
            Result rows, or an empty result for statements without rows (DDL/DML).

        Raises:
            StoreError: On any store failure or timeout.
        """
        return await self._guard(self._execute(statement), "execute")

    async def execute_batch(self, statements: Sequence[Executable]) -> None:
        """Execute statements in order as one atomic unit.

        Either every statement is committed or, on the first failure, the
        whole transaction is rolled back and StoreError is raised.
        """
        await self._guard(self._execute_batch(statements), "batch")

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self._engine.dispose()

    async def _execute(self, statement: Executable) -> ResultSet:
        async with self._engine.begin() as conn:
            result = await conn.execute(statement)
            if not result.returns_rows:
                return EMPTY_RESULT
            columns = list(result.keys())
            return ResultSet(columns=columns, rows=[tuple(row) for row in result.all()])

    async def _execute_batch(self, statements: Sequence[Executable]) -> None:
        async with self._engine.begin() as conn:
            for statement in statements:
                await conn.execute(statement)

    async def _guard(self, operation: Awaitable[T], name: str) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise StoreError(f"Store {name} timed out after {self._timeout:g}s") from e
        except SQLAlchemyError as e:
            # Prefer the driver message over SQLAlchemy's wrapper text.
            raise StoreError(str(getattr(e, "orig", None) or e)) from e
        except OSError as e:
            raise StoreError(f"Store connection failed: {e}") from e


def create_store(
    database_url: str,
    *,
    timeout: float = 5.0,
    echo: bool = False,
    connect_args: dict[str, object] | None = None,
) -> Store:
    """Create a Store with a fresh engine for the given async URL."""
    engine_kwargs: dict[str, Any] = {}
    if not database_url.startswith("sqlite"):
        engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)

    engine = create_async_engine(
        database_url,
        echo=echo,
        connect_args=connect_args or {},
        **engine_kwargs,
    )
    return Store(engine, timeout=timeout)


# Store (initialized on startup)
_store: Store | None = None


async def init_db() -> None:
    """Initialize the store from settings."""
    global _store

    settings = get_settings()
    _store = create_store(
        settings.async_database_url,
        timeout=settings.store_timeout_seconds,
        echo=settings.debug,
        connect_args=settings.store_connect_args,
    )


async def ping_db() -> None:
    """Round-trip a trivial query to validate connectivity."""
    await get_store().execute(text("SELECT 1"))


async def close_db() -> None:
    """Close the store's connection pool."""
    global _store
    if _store:
        await _store.dispose()
        _store = None


def get_store() -> Store:
    """Get the initialized store (also used as a FastAPI dependency)."""
    if _store is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _store
