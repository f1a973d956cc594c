"""
Base Database Connector

Abstract base class for database connectors. Provides a consistent async
interface for connecting to and querying the target database.

All connectors must implement:
- connect(): Establish connection with connection pooling
- execute(): Run queries with parameters and timeout
- close(): Clean up connections and pools

exec_select() is the read path used by the rest of the application. It
repeats the SELECT-only check as a second line of defense behind the
safety guard.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_SELECT_PREFIX = re.compile(r"^\s*select\b", re.IGNORECASE)


# ============================================================================
# Data Models
# ============================================================================


class QueryResult(BaseModel):
    """Result from query execution."""

    rows: list[dict[str, Any]] = Field(..., description="Query result rows, in order")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(default_factory=list, description="Column names")
    execution_time_ms: float = Field(default=0.0, description="Query execution time in ms")


class ConnectorError(Exception):
    """Base exception for connector errors."""

    pass


class ConnectionError(ConnectorError):
    """Error establishing or managing database connection."""

    pass


class ExecutionError(ConnectorError):
    """Error executing a statement (syntax, missing relation/column, guard rejection)."""

    pass


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Abstract base class for database connectors.

    Usage:
        connector = PostgresConnector(host="localhost", ...)
        await connector.connect()

        result = await connector.exec_select(
            "SELECT * FROM contacts WHERE id = $1", [123]
        )
        print(f"Found {result.row_count} rows")

        await connector.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        pool_size: int = 10,
        timeout: int = 30,
        **kwargs,
    ):
        """
        Initialize connector.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            pool_size: Connection pool size (default: 10)
            timeout: Query timeout in seconds (default: 30)
            **kwargs: Additional connector-specific parameters
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.pool_size = pool_size
        self.timeout = timeout
        self.kwargs = kwargs

        self._pool = None
        self._connected = False

        logger.info(f"Initialized {self.__class__.__name__} for {user}@{host}:{port}/{database}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish database connection and create connection pool.

        Should be idempotent.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
        timeout: int | None = None,
    ) -> QueryResult:
        """
        Execute a SQL statement without any policy check.

        Args:
            query: SQL query string (use $1, $2 for parameters)
            params: Query parameters (optional)
            timeout: Query timeout in seconds (overrides default)

        Raises:
            ExecutionError: If query execution fails
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close database connection and clean up pool. Safe to call twice."""
        pass

    async def exec_select(
        self,
        query: str,
        params: list[Any] | None = None,
        allow_writes: bool = False,
    ) -> QueryResult:
        """
        Execute a read statement.

        Args:
            query: SQL statement
            params: Bound parameters
            allow_writes: Skip the SELECT-only check

        Returns:
            QueryResult with rows in database order

        Raises:
            ExecutionError: If the statement is not a SELECT (and writes are
                not allowed) or execution fails
        """
        if not allow_writes and not _SELECT_PREFIX.match(query):
            logger.warning(
                "Rejected non-SELECT statement at connector",
                extra={"query": query[:200]},
            )
            raise ExecutionError("Guard: Only SELECT statements are allowed.")
        return await self.execute(query, params)

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected."""
        return self._connected

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        return False

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} {self.user}@{self.host}:{self.port}/{self.database} ({status})>"
