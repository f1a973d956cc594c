"""
PostgreSQL Connector

Async PostgreSQL connector using asyncpg.

Features:
- Connection pooling with asyncpg (checkout/return per statement)
- Parameterized query execution ($1, $2, ...)
- Per-statement timeout

Usage:
    connector = PostgresConnector(
        host="localhost",
        port=5432,
        database="sql_ai_db",
        user="sql_ai_user",
        password="secret",
    )

    await connector.connect()
    result = await connector.exec_select("SELECT * FROM contacts LIMIT 10")
    await connector.close()
"""

import logging
import time
from typing import Any, List, Optional

import asyncpg

from nl2sql.connectors.base import (
    BaseConnector,
    ConnectionError,
    ExecutionError,
    QueryResult,
)

logger = logging.getLogger(__name__)


class PostgresConnector(BaseConnector):
    """PostgreSQL database connector using an asyncpg pool."""

    async def connect(self) -> None:
        """
        Establish connection to PostgreSQL and create connection pool.

        Raises:
            ConnectionError: If connection fails
        """
        if self._connected and self._pool:
            logger.debug("Already connected, skipping connection")
            return

        try:
            logger.info(f"Connecting to PostgreSQL at {self.host}:{self.port}/{self.database}")

            self._pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                min_size=1,
                max_size=self.pool_size,
                command_timeout=self.timeout,
                **self.kwargs,
            )

            async with self._pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
                logger.info(f"Connected to PostgreSQL: {version.split(',')[0]}")

            self._connected = True

        except asyncpg.PostgresError as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e
        except OSError as e:
            logger.error(f"PostgreSQL unreachable: {e}")
            raise ConnectionError(f"Connection error: {e}") from e

    async def execute(
        self,
        query: str,
        params: Optional[List[Any]] = None,
        timeout: Optional[int] = None,
    ) -> QueryResult:
        """
        Execute a SQL query.

        Raises:
            ExecutionError: If query fails
            ConnectionError: If not connected
        """
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        start_time = time.perf_counter()
        query_timeout = timeout or self.timeout

        try:
            async with self._pool.acquire() as conn:
                if params:
                    rows = await conn.fetch(query, *params, timeout=query_timeout)
                else:
                    rows = await conn.fetch(query, timeout=query_timeout)

                result_rows = [dict(row) for row in rows]
                columns = list(rows[0].keys()) if rows else []

                execution_time_ms = (time.perf_counter() - start_time) * 1000

                logger.debug(
                    f"Query executed in {execution_time_ms:.2f}ms, "
                    f"returned {len(result_rows)} rows"
                )

                return QueryResult(
                    rows=result_rows,
                    row_count=len(result_rows),
                    columns=columns,
                    execution_time_ms=execution_time_ms,
                )

        except (asyncpg.QueryCanceledError, TimeoutError) as e:
            logger.error(f"Query timed out after {query_timeout}s: {query[:100]}...")
            raise ExecutionError(f"Query timeout ({query_timeout}s)") from e
        except asyncpg.PostgresError as e:
            logger.error(f"Query failed: {e}\nQuery: {query[:200]}...")
            raise ExecutionError(f"Query execution failed: {e}") from e

    async def close(self) -> None:
        """Close connection pool and clean up resources."""
        if not self._pool:
            logger.debug("No connection pool to close")
            return

        try:
            await self._pool.close()
            self._pool = None
            self._connected = False
            logger.info("PostgreSQL connection closed")
        except asyncpg.PostgresError as e:
            logger.error(f"Error closing connection: {e}")
            raise ConnectionError(f"Failed to close connection: {e}") from e
