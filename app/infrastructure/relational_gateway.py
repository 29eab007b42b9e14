"""
Infrastructure layer: relational store gateway.

Wraps a pooled SQLAlchemy async engine behind a narrow query interface:
parameterized statements, stored procedure calls and explicit transactions.
"""
import asyncio
import logging
import re
import ssl
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from app.config import settings
from app.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def create_engine_from_settings() -> AsyncEngine:
    """
    Build the pooled MySQL engine from settings.

    Returns:
        AsyncEngine with a bounded connection pool
    """
    connect_args: Dict[str, Any] = {}
    if settings.db_ssl:
        # Managed MySQL presents a certificate we do not pin
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = context

    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        connect_args=connect_args,
    )


def format_sql_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    Render a datetime as 'YYYY-MM-DD HH:MM:SS', which MySQL and SQLite both store as-is.

    Aware values are converted to UTC first; naive values are taken as already
    being in the server's zone.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _rows_as_dicts(result) -> List[Dict[str, Any]]:
    if not result.returns_rows:
        return []
    return [dict(row) for row in result.mappings().all()]


class Transaction:
    """
    Statements executed on one checked-out connection inside BEGIN/COMMIT.

    Obtained from RelationalGateway.transaction(); never constructed directly.
    """

    def __init__(self, connection: AsyncConnection, timeout: float):
        self.connection = connection
        self.timeout = timeout

    async def _execute(self, statement: str, params: Optional[Mapping[str, Any]]):
        return await asyncio.wait_for(
            self.connection.execute(text(statement), dict(params or {})),
            timeout=self.timeout,
        )

    async def execute(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> int:
        """Execute a statement and return the number of matched rows."""
        result = await self._execute(statement, params)
        return result.rowcount

    async def insert(self, statement: str, params: Optional[Mapping[str, Any]] = None) -> int:
        """Execute an INSERT and return the generated primary key."""
        result = await self._execute(statement, params)
        return result.lastrowid

    async def fetch_all(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Execute a query and return every row as a dict."""
        return _rows_as_dicts(await self._execute(statement, params))

    async def fetch_one(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute a query and return the first row, or None."""
        rows = await self.fetch_all(statement, params)
        return rows[0] if rows else None


class RelationalGateway:
    """
    Gateway to the relational store.

    Every call checks a connection out of the engine's pool and is bounded
    by `call_timeout`. Driver errors and timeouts surface as PersistenceError.
    """

    def __init__(self, engine: AsyncEngine, call_timeout: Optional[float] = None):
        """
        Initialize the gateway.

        Args:
            engine: Pooled async engine; its lifecycle belongs to the caller
            call_timeout: Seconds allowed per statement
        """
        self.engine = engine
        self.call_timeout = call_timeout if call_timeout is not None else settings.db_call_timeout

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """
        Run statements atomically.

        Commits when the block exits cleanly and rolls back on any exception.
        SQLAlchemy errors and timeouts are re-raised as PersistenceError;
        anything else raised inside the block propagates unchanged.

        Yields:
            Transaction bound to one pooled connection
        """
        try:
            async with self.engine.begin() as connection:
                yield Transaction(connection, self.call_timeout)
        except SQLAlchemyError as e:
            logger.error(f"Transaction rolled back: {e}")
            raise PersistenceError("Database error", str(e))
        except asyncio.TimeoutError:
            logger.error(f"Transaction rolled back after {self.call_timeout}s timeout")
            raise PersistenceError(
                "Database error", f"Database call exceeded {self.call_timeout}s"
            )

    async def fetch_all(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Run a read-only query.

        Args:
            statement: SQL with named bind parameters
            params: Bind values

        Returns:
            Rows as dictionaries
        """
        async with self.transaction() as tx:
            return await tx.fetch_all(statement, params)

    async def fetch_one(
        self, statement: str, params: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Run a read-only query and return the first row, or None."""
        rows = await self.fetch_all(statement, params)
        return rows[0] if rows else None

    async def call_procedure(
        self, name: str, params: Sequence[Any] = ()
    ) -> List[Dict[str, Any]]:
        """
        Invoke a stored procedure and return its first row-set.

        Args:
            name: Procedure name (must be a plain SQL identifier)
            params: Positional arguments

        Returns:
            Rows of the first result set as dictionaries

        Raises:
            ValueError: If `name` is not a plain identifier
            PersistenceError: If the call fails
        """
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid procedure name: {name!r}")

        placeholders = ", ".join(f":p{index}" for index in range(len(params)))
        bind = {f"p{index}": value for index, value in enumerate(params)}
        return await self.fetch_all(f"CALL {name}({placeholders})", bind)

    async def health_check(self) -> bool:
        """Return True when the database answers a trivial query."""
        try:
            await self.fetch_one("SELECT 1 AS ok")
        except PersistenceError as e:
            logger.warning(f"Database health check failed: {e.error}")
            return False
        return True

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
